"""Backend lookups used to resolve an actor: member, organization, role."""
import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

from supabase import Client

from soluly.core.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


class ActorLoader(Protocol):
    async def fetch_member(self, auth_user_id: str) -> Optional[Dict[str, Any]]: ...

    async def fetch_organization(self, organization_id: str) -> Optional[Dict[str, Any]]: ...

    async def fetch_role(self, role_id: str) -> Optional[Dict[str, Any]]: ...


class SupabaseActorLoader:
    """Reads team_members, organizations and roles. Returns None for a missing row."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _first(self, table: str, column: str, value: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table(table)\
                .select("*")\
                .eq(column, value)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error reading {table} where {column}={value}: {e}")
            raise ConnectivityError(f"Failed to load {table}") from e
        if not result.data:
            return None
        return result.data[0]

    async def fetch_member(self, auth_user_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._first, "team_members", "auth_user_id", auth_user_id)

    async def fetch_organization(self, organization_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._first, "organizations", "id", organization_id)

    async def fetch_role(self, role_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._first, "roles", "id", role_id)
