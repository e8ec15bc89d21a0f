"""
Error taxonomy shared by the storage layer, the Title Hive engine and the routes.

Validation errors are raised before anything is written. Persistence errors mean the
write did not happen. Alert dispatch problems are never raised to callers; they are
logged and recorded in the delivery history instead.
"""
from __future__ import annotations


class BookDockerError(Exception):
    """Base class for application errors."""


class ValidationError(BookDockerError):
    """Bad input detected before any mutation. The message is shown to the user."""


class LimitExceededError(ValidationError):
    def __init__(self, kind: str, limit: int, message: str | None = None):
        self.kind = kind
        self.limit = limit
        super().__init__(message or f"You can have at most {limit} {kind}.")


class InvalidIsbnError(ValidationError):
    pass


class InvalidWantError(ValidationError):
    pass


class FeatureNotAvailableError(ValidationError):
    pass


class DuplicateEmailError(ValidationError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} already exists.")


class ExpertNotFoundError(BookDockerError):
    def __init__(self, expert_id: str):
        self.expert_id = expert_id
        super().__init__(f"Expert not found: {expert_id}")


class PersistenceError(BookDockerError):
    """The storage collaborator rejected or failed the write; nothing was committed."""


class AIServiceError(BookDockerError):
    """The AI collaborator failed to produce an answer."""


class PaymentError(BookDockerError):
    """The payment provider rejected or did not complete the order."""


__all__ = [
    "BookDockerError",
    "ValidationError",
    "LimitExceededError",
    "InvalidIsbnError",
    "InvalidWantError",
    "FeatureNotAvailableError",
    "DuplicateEmailError",
    "ExpertNotFoundError",
    "PersistenceError",
    "AIServiceError",
    "PaymentError",
]
