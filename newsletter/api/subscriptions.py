import httpx
import structlog
from fastapi import APIRouter, Depends, Form, Query, Response, status
from jinja2 import TemplateError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.config import Settings, get_settings
from newsletter.database import get_db
from newsletter.domain import InvalidSubscriberData, NewSubscriber
from newsletter.errors import SendEmailError, TokenNotFound, ValidationError
from newsletter.services.confirmation import confirm_subscriber, find_subscriber_id_by_token
from newsletter.services.email_client import EmailClient, get_email_client, send_confirmation_email
from newsletter.services.subscription_store import create_pending_subscriber
from newsletter.utils.redaction import redact_email

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("", status_code=status.HTTP_200_OK)
async def subscribe(
    name: str = Form(...),
    email: str = Form(...),
    db: AsyncSession = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
    settings: Settings = Depends(get_settings),
):
    """Register a pending subscriber and email them a confirmation link.

    The email is sent after the subscriber has been committed. If sending
    fails the stored subscriber stays pending and the client gets a 500.
    """
    structlog.contextvars.bind_contextvars(subscriber_email=redact_email(email))
    logger.info("Adding a new subscriber")

    try:
        new_subscriber = NewSubscriber.parse(name=name, email=email)
    except InvalidSubscriberData as e:
        raise ValidationError(str(e)) from e

    pending = await create_pending_subscriber(db, new_subscriber)

    try:
        await send_confirmation_email(email_client, new_subscriber, settings.app_base_url, pending.token)
    except (httpx.HTTPError, TemplateError) as e:
        raise SendEmailError() from e

    logger.info("New subscriber saved and confirmation email sent", subscriber_id=str(pending.subscriber_id))
    return Response(status_code=status.HTTP_200_OK)


@router.get("/confirm", status_code=status.HTTP_200_OK)
async def confirm(
    sub_token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Confirm the subscriber a token was issued for."""
    logger.info("Confirming a pending subscriber")

    subscriber_id = await find_subscriber_id_by_token(db, sub_token)
    if subscriber_id is None:
        raise TokenNotFound()

    await confirm_subscriber(db, subscriber_id)
    return Response(status_code=status.HTTP_200_OK)
