"""Token lookup and the pending -> confirmed status transition."""
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.errors import ConfirmationLookupError, ConfirmationUpdateError
from newsletter.models.subscription import Subscription, SubscriptionStatus, SubscriptionToken
from newsletter.utils.redaction import redact_token

logger = logging.getLogger(__name__)


async def find_subscriber_id_by_token(db: AsyncSession, token: str) -> uuid.UUID | None:
    """Return the id of the subscriber a token was issued for, or None if unknown."""
    try:
        result = await db.execute(
            select(SubscriptionToken.sub_id).where(SubscriptionToken.sub_token == token)
        )
        subscriber_id = result.scalars().first()
    except SQLAlchemyError as e:
        logger.error(f"Token lookup for {redact_token(token)} failed: {type(e).__name__}: {e}")
        raise ConfirmationLookupError() from e
    return subscriber_id


async def confirm_subscriber(db: AsyncSession, subscriber_id: uuid.UUID) -> None:
    """Mark a subscriber as confirmed. Confirming twice is a no-op."""
    try:
        await db.execute(
            update(Subscription)
            .where(Subscription.id == subscriber_id)
            .values(status=SubscriptionStatus.CONFIRMED.value)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to confirm subscriber {subscriber_id}: {type(e).__name__}: {e}")
        raise ConfirmationUpdateError() from e
    logger.info(f"Subscriber {subscriber_id} confirmed")
