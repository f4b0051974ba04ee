import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("SQLITE_URL", "sqlite+aiosqlite:///./data/test.db")
os.environ.setdefault("APP_BASE_URL", "http://127.0.0.1:8000")
os.environ.setdefault("EMAIL_BASE_URL", "http://email.local")
os.environ.setdefault("EMAIL_SENDER", "newsletter@gmail.com")
os.environ.setdefault("EMAIL_AUTHORIZATION_TOKEN", "test-server-token")

LINK_PATTERN = re.compile(r"https?://[^\s\"'<>]+")


@pytest.fixture(scope="session")
def sqlite_db_path() -> Path:
    return Path("data/test.db")


@pytest.fixture(autouse=True, scope="session")
def _ensure_test_db_dir(sqlite_db_path: Path) -> None:
    sqlite_db_path.parent.mkdir(parents=True, exist_ok=True)
    if sqlite_db_path.exists():
        sqlite_db_path.unlink()


@pytest_asyncio.fixture
async def db():
    """Create the schema, hand the test an empty database, and clean up after it."""
    from sqlalchemy import delete

    from newsletter.database import AsyncSessionLocal, dispose_engine, init_db
    from newsletter.models import Subscription, SubscriptionToken

    async def _clear():
        async with AsyncSessionLocal() as session:
            await session.execute(delete(SubscriptionToken))
            await session.execute(delete(Subscription))
            await session.commit()

    await init_db()
    await _clear()
    yield
    # Tests may sabotage the schema; recreate anything that was dropped
    await init_db()
    await _clear()
    await dispose_engine()


@dataclass
class EmailServer:
    """Stand-in for the email delivery API, recording every request it receives."""

    status_code: int = 200
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"MessageID": "test"})

    def sent(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def confirmation_links(self, index: int = 0) -> tuple[str, str]:
        """Return the single link found in the HTML body and in the text body."""
        body = self.sent()[index]
        html_links = LINK_PATTERN.findall(body["HtmlBody"])
        text_links = LINK_PATTERN.findall(body["TextBody"])
        assert len(html_links) == 1, html_links
        assert len(text_links) == 1, text_links
        return html_links[0], text_links[0]


@pytest_asyncio.fixture
async def email_server():
    from newsletter.config import get_settings
    from newsletter.main import app
    from newsletter.services.email_client import EmailClient, get_email_client

    server = EmailServer()
    settings = get_settings()
    email_client = EmailClient(
        base_url=settings.email_base_url,
        sender=settings.email_sender_address(),
        authorization_token=settings.email_authorization_token,
        timeout=settings.email_timeout_seconds,
        transport=httpx.MockTransport(server.handler),
    )
    app.dependency_overrides[get_email_client] = lambda: email_client
    yield server
    app.dependency_overrides.pop(get_email_client, None)
    await email_client.aclose()


@pytest_asyncio.fixture
async def client():
    from newsletter.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
