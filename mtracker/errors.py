class MTrackerError(Exception):
    """Base class for store and session failures."""


class NotSignedInError(MTrackerError):
    def __init__(self, message: str = "User not logged in"):
        super().__init__(message)


class TransactionNotFoundError(MTrackerError):
    def __init__(self, tx_id: str):
        super().__init__(f"Transaction with ID {tx_id} does not exist")
        self.tx_id = tx_id
