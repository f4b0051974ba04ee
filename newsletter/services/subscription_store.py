"""Atomic creation of a pending subscriber and its confirmation token."""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.domain import NewSubscriber
from newsletter.errors import (
    InsertSubscriberError,
    PoolError,
    StoreTokenError,
    TransactionCommitError,
)
from newsletter.models.subscription import Subscription, SubscriptionStatus, SubscriptionToken
from newsletter.services.tokens import generate_subscription_token
from newsletter.utils.redaction import redact_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingSubscription:
    subscriber_id: uuid.UUID
    token: str


async def create_pending_subscriber(db: AsyncSession, new_subscriber: NewSubscriber) -> PendingSubscription:
    """Insert a subscriber awaiting confirmation together with its token.

    Both rows are written inside one transaction: either both are committed
    or neither is. Each step that can fail raises its own error type with
    the database error attached as the cause.
    """
    try:
        # Acquires a pooled connection and begins the transaction
        await db.connection()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Could not start subscription transaction: {type(e).__name__}: {e}")
        raise PoolError() from e

    try:
        subscriber_id = await insert_subscriber(db, new_subscriber)
    except SQLAlchemyError as e:
        await _rollback(db)
        raise InsertSubscriberError() from e

    token = generate_subscription_token()
    try:
        await store_token(db, subscriber_id, token)
    except SQLAlchemyError as e:
        await _rollback(db)
        raise StoreTokenError() from e

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await _rollback(db)
        raise TransactionCommitError() from e

    logger.info(f"Stored pending subscriber {subscriber_id} for {redact_email(new_subscriber.email.value)}")
    return PendingSubscription(subscriber_id=subscriber_id, token=token)


async def insert_subscriber(db: AsyncSession, new_subscriber: NewSubscriber) -> uuid.UUID:
    subscriber = Subscription(
        id=uuid.uuid4(),
        email=new_subscriber.email.value,
        name=new_subscriber.name.value,
        subscribed_at=datetime.now(timezone.utc),
        status=SubscriptionStatus.PENDING_CONFIRMATION.value,
    )
    db.add(subscriber)
    await db.flush()
    return subscriber.id


async def store_token(db: AsyncSession, subscriber_id: uuid.UUID, token: str) -> None:
    db.add(SubscriptionToken(sub_token=token, sub_id=subscriber_id))
    await db.flush()


async def _rollback(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        # The connection is discarded on close; the original failure is what gets reported.
        logger.warning(f"Rollback of subscription transaction failed: {type(e).__name__}: {e}")
