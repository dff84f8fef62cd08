"""Pytest configuration and shared fixtures."""

import itertools
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.dine.main import create_app
from src.dine.services.auth.exceptions import DuplicateUserError
from src.dine.services.auth.passwords import PasswordHasher
from src.dine.services.auth.tokens import TokenService
from src.dine.services.container import ServiceContainer
from src.dine.services.database.models import Page, Restaurant, User
from src.dine.services.database.repositories import normalize_email
from src.dine.services.geocoding import Coordinates
from src.dine.services.rate_limiter import limiter
from src.dine.services.storage.exceptions import (
    InvalidImageReferenceError,
    StorageDeleteFailedError,
    StorageWriteFailedError,
)

TEST_BUCKET = "restaurant-images"
SIGNED_URL_PREFIX = f"https://storage.test/storage/v1/object/sign/{TEST_BUCKET}/"


class InMemoryUserRepository:
    """UserRepository backed by a dict, with the same email uniqueness rule."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    async def get_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        email = normalize_email(email)
        return next((u for u in self.users.values() if u.email == email), None)

    async def create(self, email: str, password_hash: str) -> User:
        if await self.get_by_email(email) is not None:
            raise DuplicateUserError()
        user = User(
            id=str(uuid4()),
            email=normalize_email(email),
            password_hash=password_hash,
            created_at=datetime.now(UTC),
        )
        self.users[user.id] = user
        return user


class InMemoryRestaurantRepository:
    """RestaurantRepository backed by a dict; lists newest first."""

    def __init__(self) -> None:
        self.rows: dict[str, Restaurant] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()

    async def get(self, restaurant_id: str) -> Restaurant | None:
        return self.rows.get(restaurant_id)

    async def create(self, data: dict[str, Any]) -> Restaurant:
        record = Restaurant(id=str(uuid4()), **data)
        self.rows[record.id] = record
        self._order[record.id] = next(self._sequence)
        return record

    async def update(self, restaurant_id: str, data: dict[str, Any]) -> Restaurant | None:
        existing = self.rows.get(restaurant_id)
        if existing is None:
            return None
        updated = Restaurant.model_validate({**existing.model_dump(), **data})
        self.rows[restaurant_id] = updated
        return updated

    async def delete(self, restaurant_id: str) -> bool:
        self._order.pop(restaurant_id, None)
        return self.rows.pop(restaurant_id, None) is not None

    async def list(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        owner_id: str | None = None,
    ) -> Page:
        matches = list(self.rows.values())
        if owner_id is not None:
            matches = [r for r in matches if r.user_id == owner_id]
        if search:
            term = search.lower()
            matches = [
                r
                for r in matches
                if term in r.name.lower()
                or term in r.city.lower()
                or any(term in c.lower() for c in r.categories)
            ]
        matches.sort(key=lambda r: (r.created_at, self._order[r.id]), reverse=True)
        start = (page - 1) * limit
        return Page(items=matches[start : start + limit], total=len(matches))


class InMemoryMediaStore:
    """MediaStorage fake: keeps bytes in a dict and signs with a fixed prefix.

    Set ``fail_store_on`` / ``fail_delete_on`` to upload indexes or keys to
    simulate storage faults.
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_store_on: set[int] = set()
        self.fail_delete_on: set[str] = set()
        self.deleted: list[str] = []
        self.stored: list[str] = []
        self._counter = itertools.count()

    def build_key(self, owner_id: str, index: int) -> str:
        return f"restaurants/{owner_id}/{next(self._counter)}_{index}.jpg"

    async def store(self, data: bytes, key: str) -> None:
        index = int(key.rsplit("_", 1)[1].removesuffix(".jpg"))
        if index in self.fail_store_on:
            raise StorageWriteFailedError()
        self.objects[key] = data
        self.stored.append(key)

    async def sign(self, key: str) -> str:
        return f"{SIGNED_URL_PREFIX}{key}?token=signed"

    async def delete(self, key: str) -> None:
        if key in self.fail_delete_on:
            raise StorageDeleteFailedError()
        self.objects.pop(key, None)
        self.deleted.append(key)

    def key_from_signed_url(self, url: str) -> str:
        if not url.startswith(SIGNED_URL_PREFIX):
            raise InvalidImageReferenceError()
        return url[len(SIGNED_URL_PREFIX) :].split("?", 1)[0]


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Rate limits share in-memory state across tests; keep them off."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous


@pytest.fixture
def token_service() -> TokenService:
    """Token service with fixed test secrets."""
    return TokenService(access_secret="test-access-secret", refresh_secret="test-refresh-secret")


@pytest.fixture
def password_hasher() -> PasswordHasher:
    """Password hasher at the minimum cost factor."""
    return PasswordHasher(rounds=10)


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def restaurant_repository() -> InMemoryRestaurantRepository:
    return InMemoryRestaurantRepository()


@pytest.fixture
def media_store() -> InMemoryMediaStore:
    return InMemoryMediaStore()


@pytest.fixture
def geocoder() -> AsyncMock:
    """Geocoder returning a fixed point in Bengaluru."""
    mock = AsyncMock()
    mock.geocode.return_value = Coordinates(latitude=12.9716, longitude=77.5946)
    return mock


@pytest.fixture
def services(
    user_repository, restaurant_repository, token_service, password_hasher, geocoder, media_store
) -> ServiceContainer:
    """Service graph wired to in-memory fakes."""
    return ServiceContainer.compose(
        users=user_repository,
        restaurant_repository=restaurant_repository,
        tokens=token_service,
        passwords=password_hasher,
        geocoder=geocoder,
        media=media_store,
    )


@pytest.fixture
def client(services: ServiceContainer) -> TestClient:
    """
    Provide FastAPI test client for API testing.

    Returns:
        TestClient instance for making API requests

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    return TestClient(create_app(services))


@pytest.fixture
def owner(user_repository: InMemoryUserRepository) -> User:
    """A registered user (password hash is a placeholder)."""
    user = User(id=str(uuid4()), email="owner@example.com", password_hash="unused")
    user_repository.users[user.id] = user
    return user


@pytest.fixture
def owner_client(client: TestClient, owner: User, token_service: TokenService) -> TestClient:
    """Test client carrying the owner's access cookie."""
    client.cookies.set("accessToken", token_service.issue_access_token(owner.id))
    return client


@pytest.fixture
def restaurant_fields() -> dict[str, Any]:
    """Valid restaurant fields in their snake_case schema names."""
    return {
        "name": "Trattoria Roma",
        "categories": ["Italian", "Pizza"],
        "description": "Wood-fired pizza and fresh pasta",
        "address": "12 MG Road, Indiranagar",
        "city": "Bengaluru",
        "pin_code": "560038",
        "phone_number": "+919876543210",
        "website": "https://trattoria.example.com",
        "opening_time": "11:00",
        "closing_time": "23:00",
        "offers_delivery": True,
        "offers_dine_in": True,
        "offers_pickup": False,
    }
