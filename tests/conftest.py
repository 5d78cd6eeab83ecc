"""Shared test fixtures: isolated SQLite database, stores, fake identity, API client.

Every test gets a fresh in-memory database; the API client is pointed at it
by overriding the single `get_engine` dependency.
"""

import os

# Settings are read at import time; never touch a real database or secret.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("REQUIRE_SIGN_IN_FOR_ADD", "false")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel, Session

from storefront.core.config import get_settings
from storefront.database import build_engine, create_db_and_tables, get_engine
from storefront.main import app
from storefront.repositories.user_repo import UserRepository
from storefront.routers.cart import get_blob_storage
from storefront.schemas.cart import CartItemSnapshot
from storefront.services.cart_service import CartReconciliationService
from storefront.services.user_service import UserService
from storefront.stores.blob import MemoryBlobStorage
from storefront.stores.local import LocalCartStore
from storefront.stores.remote import RemoteCartStore


class FakeIdentity:
    """Identity boundary driven by the test.

    prompt_sign_in signs in as `sign_in_as` when set (user completed the
    dialog), otherwise resolves False (user dismissed it).
    """

    def __init__(self, user_id: str | None = None):
        self.user_id = user_id
        self.sign_in_as: str | None = None
        self.prompts: list[str | None] = []

    @property
    def is_signed_in(self) -> bool:
        return self.user_id is not None

    def sign_in(self, user_id: str) -> None:
        self.user_id = user_id

    def sign_out(self) -> None:
        self.user_id = None

    async def prompt_sign_in(self, message: str | None = None) -> bool:
        self.prompts.append(message)
        if self.sign_in_as:
            self.user_id = self.sign_in_as
            return True
        return False


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def provision(engine):
    """Create (or refresh) a user profile row, as sign-in does."""
    service = UserService(UserRepository())

    def _provision(auth_id: str, email: str | None = None):
        with Session(engine) as session:
            return service.sync_profile(
                session, auth_id=auth_id, email=email or f"{auth_id}@example.com"
            )

    return _provision


@pytest.fixture
def blob_storage():
    return MemoryBlobStorage()


@pytest.fixture
def local_store(blob_storage):
    return LocalCartStore(blob_storage, key="cart:guest-1")


@pytest.fixture
def remote_store(engine):
    return RemoteCartStore(engine)


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def cart_service(identity, local_store, remote_store):
    return CartReconciliationService(identity, local_store, remote_store)


@pytest.fixture
def make_item():
    def _make_item(product_id: str = "p1", price: int = 1299, **overrides):
        fields = {
            "product_id": product_id,
            "name": f"Product {product_id}",
            "unit_price_minor": price,
            "image_url": f"https://cdn.example.com/{product_id}.jpg",
            "category": "shirts",
        }
        fields.update(overrides)
        return CartItemSnapshot(**fields)

    return _make_item


# ---- API ----


@pytest.fixture
def client(engine, blob_storage):
    """FastAPI test client with DB engine and guest slots overridden."""
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def token_for():
    settings = get_settings()

    def _token_for(sub: str, **claims) -> dict[str, str]:
        payload = {"sub": sub, "email": f"{sub}@example.com", **claims}
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
        return {"Authorization": f"Bearer {token}"}

    return _token_for
