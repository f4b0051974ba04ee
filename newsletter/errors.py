"""Error taxonomy for the subscription endpoints.

Each endpoint raises exceptions from one closed hierarchy. The lower-level
failure that caused a variant travels along as ``__cause__`` (``raise ... from``)
so that the boundary handler can log the whole chain while the client only
sees a status code.
"""
from fastapi import status


class SubscriptionServiceError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


# ---------------------------------------------------------------------------
# POST /subscriptions
# ---------------------------------------------------------------------------


class SubscribeError(SubscriptionServiceError):
    message = "Failed to create a new subscriber."


class ValidationError(SubscribeError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid subscriber data."


class PoolError(SubscribeError):
    message = "Failed to acquire a database connection from the pool."


class InsertSubscriberError(SubscribeError):
    message = "Failed to insert new subscriber in the database."


class StoreTokenError(SubscribeError):
    message = "Failed to store the confirmation token for a new subscriber."


class TransactionCommitError(SubscribeError):
    message = "Failed to commit SQL transaction to store a new subscriber."


class SendEmailError(SubscribeError):
    message = "Failed to send a confirmation email."


# ---------------------------------------------------------------------------
# GET /subscriptions/confirm
# ---------------------------------------------------------------------------


class ConfirmError(SubscriptionServiceError):
    message = "Failed to confirm a pending subscriber."


class TokenNotFound(ConfirmError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "There is no subscriber associated with the provided token."


class ConfirmationLookupError(ConfirmError):
    message = "Failed to retrieve the subscriber id associated with the provided token."


class ConfirmationUpdateError(ConfirmError):
    message = "Failed to update the subscriber status to `confirmed`."


def error_chain(exc: BaseException) -> str:
    """Render an exception followed by every exception that caused it."""
    lines = [str(exc)]
    seen = {id(exc)}
    current = exc.__cause__ or exc.__context__
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        lines.append(f"Caused by:\n\t{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return "\n\n".join(lines)


def is_client_error(exc: SubscriptionServiceError) -> bool:
    return exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
