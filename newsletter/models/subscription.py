import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from newsletter.database import Base


class SubscriptionStatus(str, enum.Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    subscribed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    status = Column(String(32), nullable=False, default=SubscriptionStatus.PENDING_CONFIRMATION.value)


class SubscriptionToken(Base):
    __tablename__ = "subscription_tokens"

    sub_token = Column(Text, primary_key=True)
    sub_id = Column(Uuid(as_uuid=True), ForeignKey("subscriptions.id"), nullable=False, index=True)
