"""Repository interfaces and their Supabase-backed implementations."""

import asyncio
import logging
from typing import Any, Protocol

from postgrest.exceptions import APIError

from src.dine.services.auth.exceptions import DuplicateUserError
from src.dine.services.database.models import Page, Restaurant, User
from src.dine.services.database.utils import SupabaseQueryBuilder

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
RESTAURANTS_TABLE = "restaurants"

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

# categories is a text[] column; PostgREST cannot ilike an array, so a
# denormalized copy is kept in categories_text for search.
RESTAURANT_SEARCH_COLUMNS = ["name", "city", "categories_text"]


class UserRepository(Protocol):
    """Credential store. Email uniqueness is enforced here."""

    async def get_by_id(self, user_id: str) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def create(self, email: str, password_hash: str) -> User: ...


class RestaurantRepository(Protocol):
    """Persistence for restaurant records."""

    async def get(self, restaurant_id: str) -> Restaurant | None: ...

    async def create(self, data: dict[str, Any]) -> Restaurant: ...

    async def update(self, restaurant_id: str, data: dict[str, Any]) -> Restaurant | None: ...

    async def delete(self, restaurant_id: str) -> bool: ...

    async def list(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        owner_id: str | None = None,
    ) -> Page: ...


def normalize_email(email: str) -> str:
    """Emails are compared and stored lower-cased."""
    return email.strip().lower()


class SupabaseUserRepository:
    """UserRepository over the Supabase users table.

    The table carries a unique index on email; a unique violation on insert
    is reported as DuplicateUserError so concurrent registrations cannot both
    succeed.
    """

    def __init__(self, db: SupabaseQueryBuilder) -> None:
        self.db = db

    async def get_by_id(self, user_id: str) -> User | None:
        row = await asyncio.to_thread(self.db.get_by_id, USERS_TABLE, user_id)
        return User.model_validate(row) if row else None

    async def get_by_email(self, email: str) -> User | None:
        row = await asyncio.to_thread(
            self.db.get_by_field, USERS_TABLE, "email", normalize_email(email)
        )
        return User.model_validate(row) if row else None

    async def create(self, email: str, password_hash: str) -> User:
        try:
            row = await asyncio.to_thread(
                self.db.insert_record,
                USERS_TABLE,
                {"email": normalize_email(email), "password_hash": password_hash},
            )
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.info("Duplicate email rejected by unique index")
                raise DuplicateUserError() from e
            raise
        if row is None:
            raise RuntimeError("Insert into users returned no row")
        return User.model_validate(row)


class SupabaseRestaurantRepository:
    """RestaurantRepository over the Supabase restaurants table."""

    def __init__(self, db: SupabaseQueryBuilder) -> None:
        self.db = db

    async def get(self, restaurant_id: str) -> Restaurant | None:
        row = await asyncio.to_thread(self.db.get_by_id, RESTAURANTS_TABLE, restaurant_id)
        return self._to_model(row) if row else None

    async def create(self, data: dict[str, Any]) -> Restaurant:
        row = await asyncio.to_thread(
            self.db.insert_record, RESTAURANTS_TABLE, self._to_row(data)
        )
        if row is None:
            raise RuntimeError("Insert into restaurants returned no row")
        return self._to_model(row)

    async def update(self, restaurant_id: str, data: dict[str, Any]) -> Restaurant | None:
        row = await asyncio.to_thread(
            self.db.update_record, RESTAURANTS_TABLE, restaurant_id, self._to_row(data)
        )
        return self._to_model(row) if row else None

    async def delete(self, restaurant_id: str) -> bool:
        return await asyncio.to_thread(self.db.delete_record, RESTAURANTS_TABLE, restaurant_id)

    async def list(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        owner_id: str | None = None,
    ) -> Page:
        filters = {"user_id": owner_id} if owner_id else None
        rows, total = await asyncio.to_thread(
            lambda: self.db.page_records(
                RESTAURANTS_TABLE,
                offset=(page - 1) * limit,
                limit=limit,
                filters=filters,
                search=search,
                search_columns=RESTAURANT_SEARCH_COLUMNS,
                order_by="created_at",
                order_desc=True,
            )
        )
        return Page(items=[self._to_model(row) for row in rows], total=total)

    @staticmethod
    def _to_row(data: dict[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for key, value in data.items():
            if key == "id":
                continue
            row[key] = value.isoformat() if hasattr(value, "isoformat") else value
        if "categories" in data:
            row["categories_text"] = " ".join(data["categories"])
        return row

    @staticmethod
    def _to_model(row: dict[str, Any]) -> Restaurant:
        fields = {k: v for k, v in row.items() if k != "categories_text"}
        fields["id"] = str(fields["id"])
        fields["user_id"] = str(fields["user_id"])
        return Restaurant.model_validate(fields)
