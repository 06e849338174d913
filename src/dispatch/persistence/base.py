"""Shared plumbing for Supabase-backed repositories."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ..db.supabase import get_supabase_client
from ..services.routing.errors import StoreError

logger = logging.getLogger(__name__)


class SupabaseRepository:
    """Thin wrapper around a Supabase client that turns driver failures into ``StoreError``."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        client = self._client or get_supabase_client()
        if client is None:
            raise StoreError(
                "Supabase is not configured. Set DISPATCH_SUPABASE_URL and DISPATCH_SUPABASE_KEY."
            )
        return client

    def table(self, name: str):
        return self.client.table(name)

    def execute(self, query, action: str) -> list[dict[str, Any]]:
        """Run a query builder and return its rows."""
        try:
            response = query.execute()
        except APIError as exc:
            logger.error(f"Supabase rejected {action}: {exc.message}")
            raise StoreError(f"Failed to {action}: {exc.message}") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Supabase unreachable during {action}: {exc}")
            raise StoreError(f"Failed to {action}: database is unreachable ({exc})") from exc
        return list(response.data or []) if response is not None else []
