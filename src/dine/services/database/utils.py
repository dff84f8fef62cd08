"""PostgREST query helpers shared by the repositories."""

import re
from typing import Any
from uuid import UUID

from supabase import Client

from src.dine.services.database.connection import get_supabase_client

# Characters with meaning inside a PostgREST or=() filter expression.
_FILTER_SPECIAL_CHARS = re.compile(r"[,()*%\\\"]")


def sanitize_search_term(term: str) -> str:
    """
    Strip characters that would break out of a PostgREST ilike pattern.

    Args:
        term: Raw user-supplied search string

    Returns:
        Trimmed term safe to embed in an or=() filter (may be empty)

    Example:
        >>> sanitize_search_term(" pizza, (best) ")
        'pizza best'
    """
    return " ".join(_FILTER_SPECIAL_CHARS.sub(" ", term).split())


def is_valid_uuid(value: str) -> bool:
    """Whether value parses as a UUID (PostgREST rejects malformed uuid filters)."""
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _first(response: Any) -> dict[str, Any] | None:
    return response.data[0] if response.data else None


class SupabaseQueryBuilder:
    """
    Thin synchronous wrapper over the PostgREST table API.

    Id-keyed operations short-circuit on malformed ids (None / False) instead
    of sending a filter PostgREST would reject with a 400.
    """

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    def get_by_id(
        self, table: str, record_id: UUID | str, columns: str = "*"
    ) -> dict[str, Any] | None:
        """Row whose id equals record_id, or None."""
        if not is_valid_uuid(str(record_id)):
            return None
        return _first(self.client.table(table).select(columns).eq("id", str(record_id)).execute())

    def get_by_field(
        self, table: str, field: str, value: Any, columns: str = "*"
    ) -> dict[str, Any] | None:
        """First row where field == value, or None.

        >>> get_query_builder().get_by_field("users", "email", "owner@example.com")
        """
        return _first(
            self.client.table(table).select(columns).eq(field, value).limit(1).execute()
        )

    def page_records(
        self,
        table: str,
        *,
        offset: int,
        limit: int,
        filters: dict[str, Any] | None = None,
        search: str | None = None,
        search_columns: list[str] | None = None,
        order_by: str | None = None,
        order_desc: bool = True,
        columns: str = "*",
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Fetch one page of records together with the total match count.

        Search is a case-insensitive substring match OR-ed across
        search_columns; filters are AND-ed equality checks.

        Args:
            table: Table name
            offset: Number of records to skip
            limit: Maximum records to return
            filters: Dictionary of field:value pairs for filtering
            search: Optional search term
            search_columns: Columns the search term is matched against
            order_by: Column to order by
            order_desc: Order descending (default: True)
            columns: Columns to select (default: "*")

        Returns:
            Tuple of (records on this page, total matching records)

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> rows, total = builder.page_records(
            ...     "restaurants",
            ...     offset=10,
            ...     limit=10,
            ...     search="pizza",
            ...     search_columns=["name", "city"],
            ...     order_by="created_at",
            ... )
        """
        query = self.client.table(table).select(columns, count="exact")

        if filters:
            for field, value in filters.items():
                query = query.eq(field, value)

        term = sanitize_search_term(search) if search else ""
        if term and search_columns:
            query = query.or_(",".join(f'{col}.ilike."*{term}*"' for col in search_columns))

        if order_by:
            query = query.order(order_by, desc=order_desc)

        query = query.range(offset, offset + limit - 1)

        response = query.execute()
        return response.data, response.count or 0

    def insert_record(self, table: str, data: dict[str, Any]) -> dict[str, Any] | None:
        """
        Insert one row and return it as stored.

        Raises:
            postgrest.exceptions.APIError: On constraint violations (e.g. 23505 unique)
        """
        return _first(self.client.table(table).insert(data).execute())

    def update_record(
        self, table: str, record_id: UUID | str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Patch the row with this id; None when no row matched."""
        if not is_valid_uuid(str(record_id)):
            return None
        return _first(self.client.table(table).update(data).eq("id", str(record_id)).execute())

    def delete_record(self, table: str, record_id: UUID | str) -> bool:
        """Delete the row with this id; False when no row matched."""
        if not is_valid_uuid(str(record_id)):
            return False
        response = self.client.table(table).delete().eq("id", str(record_id)).execute()
        return bool(response.data)


def get_query_builder(client: Client | None = None) -> SupabaseQueryBuilder:
    """Query builder over client, or over the shared service-role client."""
    return SupabaseQueryBuilder(client)
