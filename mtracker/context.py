import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from mtracker.config import Settings
from mtracker.events import EventBus
from mtracker.services import LiveSummary, ReportService, default_calculators
from mtracker.stores import BudgetStore, CurrencyStore, Session, TransactionStore
from mtracker.transforms import load_seed

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a screen needs, built once at start-up and passed around."""
    settings: Settings
    bus: EventBus
    session: Session
    transactions: TransactionStore
    budgets: BudgetStore
    currency: CurrencyStore
    seeded: Set[str] = field(default_factory=set)

    def sign_in(self, user_id: str) -> None:
        """Sign in, loading the seed file the first time a user is seen."""
        uid = (user_id or "").strip()
        if uid and self.settings.seed_path and uid not in self.seeded:
            transactions, budgets = load_seed(str(self.settings.seed_path))
            self.transactions.seed(uid, transactions)
            self.budgets.seed(uid, budgets)
            self.seeded.add(uid)
            logger.info("Loaded %d transactions and %d budgets from %s",
                        len(transactions), len(budgets), self.settings.seed_path)
        self.session.sign_in(uid)

    def reports(self) -> ReportService:
        return ReportService(default_calculators(self.settings.recent_limit, self.settings.activity_limit))

    def live_summary(self, period: Optional[str] = None) -> LiveSummary:
        kwargs = {"period": period} if period else {}
        return LiveSummary(self.bus, self.transactions.snapshot(), self.reports(), **kwargs)


def create_app_context(settings: Optional[Settings] = None, user_id: Optional[str] = None) -> AppContext:
    settings = settings or Settings()
    bus = EventBus()
    session = Session(bus)
    ctx = AppContext(
        settings=settings,
        bus=bus,
        session=session,
        transactions=TransactionStore(bus, session),
        budgets=BudgetStore(bus, session),
        currency=CurrencyStore(bus, settings.default_currency),
    )
    if user_id:
        ctx.sign_in(user_id)
    return ctx
