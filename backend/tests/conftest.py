"""
Shared pytest fixtures for the ShareIn test suite.

Every test gets its own SQLite database in ``tmp_path`` plus in-memory
stand-ins for the object store and the mailer, injected through
``create_app``.
"""
import io

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from sharein.core.config import Settings
from sharein.core.database import init_models
from sharein.core.storage import StorageError
from sharein.main import create_app
from sharein.utils.email import MailError


class FakeStorage:
    """Records every call; flip the ``fail_*`` flags to simulate outages."""

    bucket = "test-bucket"

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_thumbnails = False
        self.fail_deletes: set[str] = set()
        self.retryable = False

    def initialize_bucket(self):
        pass

    def public_url(self, key: str) -> str:
        return f"https://objects.test/{self.bucket}/{key}"

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        self.calls.append(("upload", key))
        if self.fail_uploads or (self.fail_thumbnails and "/thumbnails/" in key):
            raise StorageError(f"upload of {key} failed", retryable=self.retryable)
        self.objects[key] = data
        return self.public_url(key)

    def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        if key in self.fail_deletes:
            raise StorageError(f"delete of {key} failed", retryable=self.retryable)
        self.objects.pop(key, None)

    def deleted_keys(self) -> list[str]:
        return [key for op, key in self.calls if op == "delete"]


class FakeMailer:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if self.fail:
            raise MailError("SendGrid API error: 500")
        self.sent.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        ACCESS_TOKEN_SECRET="test-access-secret",
        REFRESH_TOKEN_SECRET="test-refresh-secret",
        BCRYPT_ROUNDS=4,
        PUBLIC_BASE_URL="https://sharein.test",
        METRICS_ENABLED=False,
        CLEANUP_INTERVAL_SECONDS=0,
        CLEANUP_RETRY_BACKOFF_SECS=0.0,
        MAX_UPLOAD_SIZE=1024 * 1024,
    )


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
async def app(settings, storage, mailer):
    application = create_app(settings, storage=storage, mailer=mailer)
    await init_models(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def db(app):
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture
def png_bytes() -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (800, 400), color=(200, 30, 30)).save(out, format="PNG")
    return out.getvalue()


async def register(client: AsyncClient, email: str, password: str = "s3cret-pass", name: str | None = None) -> dict:
    """Sign up and return ``{"id", "token", "headers"}`` for the new user."""
    body = {"email": email, "password": password}
    if name:
        body["name"] = name
    resp = await client.post("/api/auth/signup", json=body)
    assert resp.status_code == 201, resp.text
    token = resp.json()["token"]
    headers = {"x-auth-token": token}
    check = await client.post("/api/auth/verify-token", headers=headers)
    assert check.status_code == 200, check.text
    return {"id": check.json()["userId"], "token": token, "headers": headers}


@pytest.fixture
def signup(client):
    async def _signup(email: str, **kwargs) -> dict:
        return await register(client, email, **kwargs)

    return _signup


@pytest.fixture
def upload(client):
    async def _upload(headers: dict, filename: str = "report.pdf", content: bytes = b"%PDF-1.4 test",
                      content_type: str = "application/pdf", **fields):
        data = {k: v for k, v in fields.items() if v is not None}
        return await client.post(
            "/api/files/upload",
            headers=headers,
            files={"file": (filename, content, content_type)},
            data=data,
        )

    return _upload
