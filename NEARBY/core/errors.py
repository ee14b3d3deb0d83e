# file: NEARBY/core/errors.py


class StoreError(Exception):
    """A Firestore / Realtime Database call failed (network, permission, quota...)."""

    def __init__(self, message: str, operation: str = None):
        super().__init__(message)
        self.message = message
        self.operation = operation


class ConfirmationError(Exception):
    """Venue confirmation request that does not match the session state."""

    def __init__(self, message: str, status_code: int = 409):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
