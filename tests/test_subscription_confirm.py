from unittest.mock import patch

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from newsletter.database import AsyncSessionLocal
from newsletter.models import Subscription, SubscriptionStatus

VALID_FORM = {"name": "le guin", "email": "ursula_le_guin@gmail.com"}


async def _status(email: str = VALID_FORM["email"]) -> str:
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Subscription.status).where(Subscription.email == email))
        return result.scalars().one()


async def _subscribe_and_get_token(client, email_server) -> str:
    response = await client.post("/subscriptions", data=VALID_FORM)
    assert response.status_code == 200
    html_link, _ = email_server.confirmation_links()
    return httpx.URL(html_link).params["sub_token"]


@pytest.mark.asyncio
async def test_confirmations_without_token_are_rejected_with_a_400(db, client):
    response = await client.get("/subscriptions/confirm")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_confirmations_with_an_empty_token_are_rejected_with_a_400(db, client):
    response = await client.get("/subscriptions/confirm", params={"sub_token": ""})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_confirmations_with_an_unknown_token_are_rejected(db, email_server, client):
    await client.post("/subscriptions", data=VALID_FORM)

    response = await client.get("/subscriptions/confirm", params={"sub_token": "A" * 25})

    assert response.status_code == 401
    assert await _status() == SubscriptionStatus.PENDING_CONFIRMATION.value


@pytest.mark.asyncio
async def test_the_link_returned_by_subscribe_returns_a_200_if_called(db, email_server, client):
    await client.post("/subscriptions", data=VALID_FORM)
    html_link, _ = email_server.confirmation_links()
    link = httpx.URL(html_link)
    assert link.host == "127.0.0.1"

    response = await client.get(link.path, params=link.params)

    assert response.status_code == 200
    assert response.content == b""


@pytest.mark.asyncio
async def test_clicking_on_the_confirmation_link_confirms_a_subscriber(db, email_server, client):
    token = await _subscribe_and_get_token(client, email_server)

    response = await client.get("/subscriptions/confirm", params={"sub_token": token})

    assert response.status_code == 200
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Subscription).where(Subscription.email == VALID_FORM["email"]))
        saved = result.scalars().one()
    assert saved.email == "ursula_le_guin@gmail.com"
    assert saved.name == "le guin"
    assert saved.status == "confirmed"


@pytest.mark.asyncio
async def test_confirming_twice_is_idempotent(db, email_server, client):
    token = await _subscribe_and_get_token(client, email_server)

    first = await client.get("/subscriptions/confirm", params={"sub_token": token})
    second = await client.get("/subscriptions/confirm", params={"sub_token": token})

    assert first.status_code == 200
    assert second.status_code == 200
    assert await _status() == SubscriptionStatus.CONFIRMED.value


@pytest.mark.asyncio
async def test_confirm_only_touches_the_matching_subscriber(db, email_server, client):
    token = await _subscribe_and_get_token(client, email_server)
    other = {"name": "octavia", "email": "octavia_butler@gmail.com"}
    assert (await client.post("/subscriptions", data=other)).status_code == 200

    await client.get("/subscriptions/confirm", params={"sub_token": token})

    assert await _status() == SubscriptionStatus.CONFIRMED.value
    assert await _status(other["email"]) == SubscriptionStatus.PENDING_CONFIRMATION.value


@pytest.mark.asyncio
async def test_confirm_returns_500_when_the_update_fails(db, email_server, client):
    token = await _subscribe_and_get_token(client, email_server)

    async def _failing_commit(self):
        raise OperationalError("UPDATE subscriptions ...", {}, Exception("database is locked"))

    with patch("sqlalchemy.ext.asyncio.AsyncSession.commit", _failing_commit):
        response = await client.get("/subscriptions/confirm", params={"sub_token": token})

    assert response.status_code == 500
    assert response.content == b""
    assert await _status() == SubscriptionStatus.PENDING_CONFIRMATION.value


@pytest.mark.asyncio
async def test_confirm_returns_500_when_the_lookup_fails(db, client):
    async def _failing_execute(self, *args, **kwargs):
        raise OperationalError("SELECT sub_id FROM subscription_tokens ...", {}, Exception("no such table"))

    with patch("sqlalchemy.ext.asyncio.AsyncSession.execute", _failing_execute):
        response = await client.get("/subscriptions/confirm", params={"sub_token": "A" * 25})

    assert response.status_code == 500
    assert b"subscription_tokens" not in response.content
