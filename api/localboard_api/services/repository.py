from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from localboard_api.core.auth import DeleteGrant, match_delete_credential
from localboard_api.core.config import get_settings
from localboard_api.services.filters import ListingFilterOptions, build_listing_filters
from localboard_api.services.lifecycle import (
    default_delete_after,
    generate_internal_id,
    reconcile_moderation_fields,
)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation collides with existing rows."""


class RepositoryForbiddenError(RepositoryError):
    """Raised when a supplied credential does not match the listing."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


@dataclass(frozen=True, slots=True)
class ListingTable:
    kind: str
    label: str
    table: str
    public_view: str
    category_type: str
    columns: tuple[str, ...]
    public_order_by: str
    neighborhood_order_by: str


LISTING_TABLES: dict[str, ListingTable] = {
    "events": ListingTable(
        kind="events",
        label="event",
        table="events",
        public_view="public_events",
        category_type="event_category",
        columns=(
            "title",
            "date",
            "time",
            "recurring",
            "date_list",
            "location",
            "description",
            "website",
            "categories",
            "image_url",
        ),
        public_order_by="l.date asc, l.created_at desc, l.id asc",
        neighborhood_order_by="l.date asc, l.id asc",
    ),
    "services": ListingTable(
        kind="services",
        label="service",
        table="services",
        public_view="public_services",
        category_type="service_category",
        columns=(
            "title",
            "owner",
            "description",
            "website",
            "contact_number",
            "contact_email",
            "categories",
            "image_url",
        ),
        public_order_by="l.title asc, l.created_at desc, l.id asc",
        neighborhood_order_by="l.title asc, l.id asc",
    ),
}

INTERNAL_COLUMNS = (
    "l.delete_after",
    "l.internal_id",
    "l.internal_creator_contact",
    "l.moderation_status::text as moderation_status",
    "l.moderation_reason",
)
UPDATABLE_EXTRA_COLUMNS = ("delete_after", "verified", "moderation_status", "moderation_reason")


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        service_ttl_days: int,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.service_ttl_days = max(1, service_ttl_days)
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def create_listing(self, kind: str, fields: dict[str, Any]) -> dict[str, Any]:
        target = self._table(kind)
        values = dict(fields)
        try:
            values["delete_after"] = default_delete_after(
                kind,
                fields,
                today=datetime.now(timezone.utc).date(),
                service_ttl_days=self.service_ttl_days,
            )
        except ValueError as exc:
            raise RepositoryValidationError(str(exc)) from exc
        values["internal_id"] = generate_internal_id()
        values.setdefault("categories", [])

        columns = [*target.columns, "neighborhood_id", "delete_after", "internal_id", "internal_creator_contact"]
        placeholders = [self._placeholder(target, column, index) for index, column in enumerate(columns, start=1)]

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    listing_id = await conn.fetchval(
                        f"""
                        insert into {target.table} ({", ".join(columns)}, verified, moderation_status)
                        values ({", ".join(placeholders)}, false, 'pending')
                        returning id
                        """,
                        *[values.get(column) for column in columns],
                    )
                    row = await self._fetch_listing_row(conn=conn, target=target, listing_id=listing_id, internal=True)
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryNotFoundError("neighborhood not found") from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {target.label} payload") from exc

        if not row:
            raise RepositoryConflictError(f"failed to create {target.label}")
        return self._listing_row_to_dict(row)

    async def get_listing(self, kind: str, listing_id: int) -> dict[str, Any]:
        target = self._table(kind)
        pool = await self._get_pool()
        row = await self._fetch_listing_row(conn=pool, target=target, listing_id=listing_id, internal=True)
        if not row:
            raise RepositoryNotFoundError(f"{target.label} not found")
        return self._listing_row_to_dict(row)

    async def get_public_listing(self, kind: str, listing_id: int) -> dict[str, Any]:
        target = self._table(kind)
        pool = await self._get_pool()
        row = await self._fetch_listing_row(conn=pool, target=target, listing_id=listing_id, internal=False)
        if not row:
            raise RepositoryNotFoundError(f"{target.label} not found")
        return self._listing_row_to_dict(row)

    async def update_listing(self, kind: str, listing_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        target = self._table(kind)
        try:
            supplied = reconcile_moderation_fields({key: value for key, value in fields.items() if value is not None})
        except ValueError as exc:
            raise RepositoryValidationError(str(exc)) from exc
        if not supplied:
            raise RepositoryValidationError("no fields to update")

        allowed = {*target.columns, *UPDATABLE_EXTRA_COLUMNS}
        unknown = sorted(set(supplied) - allowed)
        if unknown:
            raise RepositoryValidationError(f"fields cannot be updated: {', '.join(unknown)}")

        params: list[Any] = [listing_id]
        assignments: list[str] = []
        for column, value in supplied.items():
            params.append(value)
            assignments.append(f"{column} = {self._placeholder(target, column, len(params))}")

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    updated_id = await conn.fetchval(
                        f"""
                        update {target.table}
                        set {", ".join(assignments)}, updated_at = now()
                        where id = $1
                        returning id
                        """,
                        *params,
                    )
                    if updated_id is None:
                        raise RepositoryNotFoundError(f"{target.label} not found")
                    row = await self._fetch_listing_row(conn=conn, target=target, listing_id=listing_id, internal=True)
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {target.label} payload") from exc

        if not row:
            raise RepositoryNotFoundError(f"{target.label} not found")
        return self._listing_row_to_dict(row)

    async def delete_listing(self, kind: str, listing_id: int, credential: str) -> dict[str, Any]:
        target = self._table(kind)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                existing = await conn.fetchrow(
                    f"""
                    select id, title, internal_id, internal_creator_contact
                    from {target.table}
                    where id = $1
                    for update
                    """,
                    listing_id,
                )
                if not existing:
                    raise RepositoryNotFoundError(f"{target.label} not found")

                credential_kind = match_delete_credential(
                    credential,
                    internal_id=existing["internal_id"],
                    creator_contact=existing["internal_creator_contact"],
                )
                if credential_kind is None:
                    raise RepositoryForbiddenError("Unauthorized. Internal identifier does not match.")

                grant = DeleteGrant(listing_id=existing["id"], credential_kind=credential_kind)
                deleted = await conn.fetchrow(
                    f"delete from {target.table} where id = $1 returning id, title",
                    grant.listing_id,
                )

        if not deleted:
            raise RepositoryNotFoundError(f"{target.label} not found")
        return {
            "id": deleted["id"],
            "title": deleted["title"],
            "credential_kind": grant.credential_kind.value,
        }

    async def list_public_listings(self, kind: str, options: ListingFilterOptions) -> list[dict[str, Any]]:
        target = self._table(kind)
        clause = build_listing_filters(kind, options)
        params = [*clause.params, options.limit, options.offset]
        limit_token = f"${len(params) - 1}"
        offset_token = f"${len(params)}"

        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {self._select_columns(target, internal=False)}
            from {target.public_view} l
            join neighborhoods n on n.id = l.neighborhood_id
            join cities c on c.id = n.city_id
            {clause.where_sql}
            order by {target.public_order_by}
            limit {limit_token}
            offset {offset_token}
            """,
            *params,
        )
        return [self._listing_row_to_dict(row) for row in rows]

    async def list_neighborhood_listings(
        self,
        kind: str,
        neighborhood_id: int,
        category: str | None = None,
    ) -> list[dict[str, Any]]:
        target = self._table(kind)
        pool = await self._get_pool()
        exists = await pool.fetchval("select 1 from neighborhoods where id = $1", neighborhood_id)
        if not exists:
            raise RepositoryNotFoundError("neighborhood not found")

        rows = await pool.fetch(
            f"""
            select {self._select_columns(target, internal=False)}
            from {target.public_view} l
            join neighborhoods n on n.id = l.neighborhood_id
            join cities c on c.id = n.city_id
            where l.neighborhood_id = $1
              and ($2::text is null or $2::text = any(l.categories::text[]))
            order by {target.neighborhood_order_by}
            """,
            neighborhood_id,
            category,
        )
        return [self._listing_row_to_dict(row) for row in rows]

    async def list_pending_listings(self, kind: str, limit: int | None = None) -> list[dict[str, Any]]:
        target = self._table(kind)
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {self._select_columns(target, internal=True)}
            from {target.table} l
            join neighborhoods n on n.id = l.neighborhood_id
            join cities c on c.id = n.city_id
            where l.moderation_status = 'pending'
              and l.verified = false
            order by l.created_at asc, l.id asc
            limit $1
            """,
            limit,
        )
        return [self._listing_row_to_dict(row) for row in rows]

    async def record_moderation_outcome(
        self,
        kind: str,
        listing_id: int,
        *,
        verified: bool,
        status: str,
        reason: str | None,
    ) -> None:
        target = self._table(kind)
        pool = await self._get_pool()
        updated_id = await pool.fetchval(
            f"""
            update {target.table}
            set
              verified = $2,
              moderation_status = $3::moderation_status,
              moderation_reason = $4,
              updated_at = now()
            where id = $1
            returning id
            """,
            listing_id,
            verified,
            status,
            reason,
        )
        if updated_id is None:
            raise RepositoryNotFoundError(f"{target.label} not found")

    async def delete_expired_listings(self, kind: str, *, today: date) -> int:
        target = self._table(kind)
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"delete from {target.table} where delete_after < $1 returning id",
            today,
        )
        return len(rows)

    async def list_cities(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch("select id, city, state from cities order by state, city")
        return [dict(row) for row in rows]

    async def list_neighborhoods(self, *, city: str | None = None) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            """
            select
              n.id,
              n.neighborhood,
              n.city_id,
              n.macro_neighborhood,
              n.created_at,
              n.updated_at,
              c.city,
              c.state
            from neighborhoods n
            join cities c on c.id = n.city_id
            where ($1::text is null or lower(c.city) = lower($1::text))
            order by c.state, c.city, n.neighborhood
            """,
            city,
        )
        return [dict(row) for row in rows]

    async def get_neighborhood(self, neighborhood_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await self._fetch_neighborhood_row(conn=pool, neighborhood_id=neighborhood_id)
        if not row:
            raise RepositoryNotFoundError("neighborhood not found")
        return dict(row)

    async def create_neighborhood(
        self,
        *,
        neighborhood: str,
        city: str,
        state: str,
        macro_neighborhood: str | None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    city_id = await conn.fetchval(
                        """
                        insert into cities (city, state)
                        values ($1, $2)
                        on conflict (city, state) do update set updated_at = cities.updated_at
                        returning id
                        """,
                        city,
                        state,
                    )
                    neighborhood_id = await conn.fetchval(
                        """
                        insert into neighborhoods (neighborhood, city_id, macro_neighborhood)
                        values ($1, $2, $3)
                        returning id
                        """,
                        neighborhood,
                        city_id,
                        macro_neighborhood,
                    )
                    row = await self._fetch_neighborhood_row(conn=conn, neighborhood_id=neighborhood_id)
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("Neighborhood already exists in this city and state") from exc

        if not row:
            raise RepositoryConflictError("failed to create neighborhood")
        return dict(row)

    async def _fetch_listing_row(
        self,
        *,
        conn: asyncpg.Connection | asyncpg.Pool,
        target: ListingTable,
        listing_id: int,
        internal: bool,
    ) -> asyncpg.Record | None:
        source = target.table if internal else target.public_view
        return await conn.fetchrow(
            f"""
            select {self._select_columns(target, internal=internal)}
            from {source} l
            join neighborhoods n on n.id = l.neighborhood_id
            join cities c on c.id = n.city_id
            where l.id = $1
            """,
            listing_id,
        )

    @staticmethod
    async def _fetch_neighborhood_row(
        *,
        conn: asyncpg.Connection | asyncpg.Pool,
        neighborhood_id: int,
    ) -> asyncpg.Record | None:
        return await conn.fetchrow(
            """
            select
              n.id,
              n.neighborhood,
              n.city_id,
              n.macro_neighborhood,
              n.created_at,
              n.updated_at,
              c.city,
              c.state
            from neighborhoods n
            join cities c on c.id = n.city_id
            where n.id = $1
            """,
            neighborhood_id,
        )

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("LB_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _table(kind: str) -> ListingTable:
        target = LISTING_TABLES.get(kind)
        if target is None:
            raise RepositoryValidationError(f"unknown listing kind: {kind}")
        return target

    @staticmethod
    def _placeholder(target: ListingTable, column: str, index: int) -> str:
        casts = {
            "categories": f"::{target.category_type}[]",
            "date_list": "::date[]",
            "moderation_status": "::moderation_status",
        }
        return f"${index}{casts.get(column, '')}"

    @staticmethod
    def _select_columns(target: ListingTable, *, internal: bool) -> str:
        columns = ["l.id"]
        for column in target.columns:
            if column == "categories":
                columns.append("coalesce(l.categories::text[], '{}') as categories")
            elif column == "date_list":
                columns.append("coalesce(l.date_list, '{}') as date_list")
            else:
                columns.append(f"l.{column}")
        columns.extend(
            [
                "l.neighborhood_id",
                "l.verified",
                "l.created_at",
                "l.updated_at",
                "n.neighborhood",
                "n.macro_neighborhood",
                "c.city",
                "c.state",
            ]
        )
        if internal:
            columns.extend(INTERNAL_COLUMNS)
        return ",\n              ".join(columns)

    @staticmethod
    def _listing_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        data = dict(row)
        data["categories"] = list(data.get("categories") or [])
        if "date_list" in data:
            data["date_list"] = list(data["date_list"] or [])
        return data


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        service_ttl_days=settings.service_default_ttl_days,
    )
