from __future__ import annotations


class VoteAppError(ValueError):
    """
    Base for rejections raised by services.
    str(err) is safe to show to the user.
    """


class Unauthenticated(VoteAppError):
    def __init__(self, message: str = "Please start the bot in a private chat first.") -> None:
        super().__init__(message)


class Forbidden(VoteAppError):
    pass


class PhaseMismatch(VoteAppError):
    pass


class DuplicateConflict(VoteAppError):
    pass


class BudgetExceeded(VoteAppError):
    pass


class NotFound(VoteAppError):
    pass


class ExternalValidationFailed(VoteAppError):
    pass


class TransientStoreError(VoteAppError):
    def __init__(self, message: str = "Storage is busy, please try again.") -> None:
        super().__init__(message)
