"""
Session / actor context.

Resolves (member, organization, role) for an authenticated user once per
session and caches the snapshot until it is invalidated (sign-out, token
expiry, role edit) or its TTL elapses.

State machine:

    UNINITIALIZED -> RESOLVING -> RESOLVED(actor) | RESOLVED(None) | FAILED(error)
    RESOLVED/FAILED -> UNINITIALIZED on invalidate()

A refresh (explicit or after the TTL) keeps the state RESOLVED and serves the
previous snapshot until the new one commits; `refreshing` reports it is in
flight. Only invalidate() blanks the snapshot.

RESOLVED(None) is a valid terminal state: the user has no organization yet.
A missing or unreadable role resolves to an actor holding the zero-permission
matrix. Only timeouts and connectivity failures on the member lookup end in
FAILED.
"""
import asyncio
import logging
import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from soluly.core.exceptions import ConnectivityError, SessionError, TimedOut
from soluly.modules.authorization import evaluator, scope
from soluly.modules.authorization.models import Actor, RoleSnapshot
from soluly.modules.session.loader import ActorLoader

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class SessionContext:
    def __init__(
        self,
        auth_user_id: str,
        loader: ActorLoader,
        timeout: float = 10.0,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.auth_user_id = auth_user_id
        self.loader = loader
        self.timeout = timeout
        self.ttl = ttl
        self._clock = clock
        self.state = SessionState.UNINITIALIZED
        self.actor: Optional[Actor] = None
        self.error: Optional[SessionError] = None
        self._resolved_at: Optional[float] = None
        self._task: Optional[asyncio.Future] = None
        self._generation = 0

    @property
    def is_resolved(self) -> bool:
        return self.state is SessionState.RESOLVED

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def refreshing(self) -> bool:
        """A new snapshot is loading while the previous one is still served."""
        return self.is_resolved and self.in_flight

    def idle_expired(self) -> bool:
        """Nothing in flight and nothing worth keeping: failed, or resolved past the TTL."""
        if self.in_flight:
            return False
        return self.state is SessionState.FAILED or (self.is_resolved and self._expired())

    def _expired(self) -> bool:
        if not self.ttl or self._resolved_at is None:
            return False
        return self._clock() - self._resolved_at >= self.ttl

    async def resolve(self) -> Optional[Actor]:
        """Return the cached snapshot, resolving it first if needed."""
        if self.state is SessionState.RESOLVED and not self._expired():
            return self.actor
        return await self._join_or_start()

    async def refresh(self) -> Optional[Actor]:
        """Re-run resolution. Joins a resolution that is already in flight."""
        return await self._join_or_start()

    def invalidate(self) -> None:
        """Drop the snapshot. A resolution already in flight will not write its result."""
        self._generation += 1
        self.state = SessionState.UNINITIALIZED
        self.actor = None
        self.error = None
        self._resolved_at = None
        self._task = None

    def holds_role(self, role_id: str) -> bool:
        if self.actor is None:
            return False
        if self.actor.role_id == role_id:
            return True
        return self.actor.role is not None and self.actor.role.id == role_id

    async def _join_or_start(self) -> Optional[Actor]:
        task = self._task
        if task is None or task.done():
            if not self.is_resolved:
                self.state = SessionState.RESOLVING
            task = asyncio.ensure_future(self._run(self._generation))
            self._task = task
        # shield: a cancelled caller must not cancel the resolution other callers share
        return await asyncio.shield(task)

    async def _run(self, generation: int) -> Optional[Actor]:
        try:
            actor = await self._load()
        except SessionError as e:
            self._fail(generation, e)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error resolving session for {self.auth_user_id}")
            error = ConnectivityError("Failed to load user data")
            self._fail(generation, error)
            raise error from e
        if generation == self._generation:
            self.actor = actor
            self.error = None
            self.state = SessionState.RESOLVED
            self._resolved_at = self._clock()
        else:
            logger.debug(f"Discarding stale resolution for {self.auth_user_id}")
        return actor

    def _fail(self, generation: int, error: SessionError) -> None:
        if generation == self._generation:
            self.state = SessionState.FAILED
            self.error = error
            self.actor = None

    async def _step(self, name: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out resolving {name} for {self.auth_user_id}")
            raise TimedOut(f"Timed out resolving {name}") from e

    async def _load(self) -> Optional[Actor]:
        member = await self._step("member", self.loader.fetch_member(self.auth_user_id))
        if not member or not member.get("organization_id"):
            logger.info(f"No team member found for {self.auth_user_id}")
            return None

        organization = None
        try:
            organization = await self._step(
                "organization", self.loader.fetch_organization(member["organization_id"])
            )
        except ConnectivityError as e:
            logger.warning(f"Organization lookup failed for member {member['id']}: {e}")

        role = None
        role_id = member.get("role_id")
        if role_id:
            row = None
            try:
                row = await self._step("role", self.loader.fetch_role(role_id))
            except ConnectivityError as e:
                logger.warning(f"Role lookup failed for member {member['id']}: {e}")
            if row is None:
                logger.warning(f"Role {role_id} not resolved for member {member['id']}; using zero permissions")
            else:
                role = RoleSnapshot.from_row(row)

        return Actor.from_rows(member, organization, role)

    # Read API for request handlers. Unresolved contexts deny.

    @property
    def current_actor(self) -> Optional[Actor]:
        return self.actor if self.is_resolved else None

    def has_permission(self, resource: Any, action: Any) -> bool:
        return evaluator.can(self.current_actor, resource, action)

    def can_view_own(self, resource: Any) -> bool:
        return evaluator.can_view_own_only(self.current_actor, resource)

    def has_full_project_access(self) -> bool:
        return scope.has_full_project_access(self.current_actor)

    def has_project_access(self, project_id: Optional[str]) -> bool:
        return scope.has_project_access(self.current_actor, project_id)

    @property
    def allowed_project_ids(self) -> Optional[List[str]]:
        return scope.allowed_project_ids(self.current_actor)

    async def refresh_user_data(self) -> None:
        await self.refresh()


class SessionRegistry:
    """
    Process-local registry of session contexts keyed by auth user id.

    Adding a context first prunes idle ones (failed, or resolved past the TTL);
    past max_size the oldest contexts are evicted.
    """

    def __init__(
        self,
        loader_factory: Callable[[], ActorLoader],
        timeout: float = 10.0,
        ttl: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader_factory = loader_factory
        self._loader: Optional[ActorLoader] = None
        self.timeout = timeout
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._contexts: Dict[str, SessionContext] = {}

    def get(self, auth_user_id: str) -> SessionContext:
        with self._lock:
            context = self._contexts.get(auth_user_id)
            if context is None:
                if self._loader is None:
                    self._loader = self._loader_factory()
                evicted = self._prune_locked()
                context = SessionContext(
                    auth_user_id, self._loader, timeout=self.timeout, ttl=self.ttl, clock=self._clock
                )
                self._contexts[auth_user_id] = context
            else:
                evicted = []
        for stale in evicted:
            stale.invalidate()
        if evicted:
            logger.debug(f"Pruned {len(evicted)} cached session(s)")
        return context

    def _prune_locked(self) -> List[SessionContext]:
        evicted = []
        for user_id, context in list(self._contexts.items()):
            if context.idle_expired():
                evicted.append(self._contexts.pop(user_id))
        if self.max_size:
            # dicts keep insertion order, so the first keys are the oldest
            while len(self._contexts) >= self.max_size:
                oldest = next(iter(self._contexts))
                evicted.append(self._contexts.pop(oldest))
        return evicted

    def invalidate_user(self, auth_user_id: str) -> None:
        with self._lock:
            context = self._contexts.pop(auth_user_id, None)
        if context is not None:
            context.invalidate()
            logger.debug(f"Invalidated session for {auth_user_id}")

    def invalidate_role(self, role_id: str) -> int:
        """Drop every snapshot holding role_id, plus any resolution still in flight."""
        with self._lock:
            contexts = list(self._contexts.values())
        count = 0
        for context in contexts:
            if context.holds_role(role_id) or context.in_flight:
                context.invalidate()
                count += 1
        if count:
            logger.info(f"Invalidated {count} session(s) after change to role {role_id}")
        return count

    def clear(self) -> None:
        with self._lock:
            contexts = list(self._contexts.values())
            self._contexts.clear()
        for context in contexts:
            context.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)


_registry: Optional[SessionRegistry] = None
_registry_lock = threading.Lock()


def get_session_registry() -> SessionRegistry:
    global _registry
    with _registry_lock:
        if _registry is None:
            from soluly.config import settings
            from soluly.database.supabase_client import get_service_supabase
            from soluly.modules.session.loader import SupabaseActorLoader

            _registry = SessionRegistry(
                lambda: SupabaseActorLoader(get_service_supabase()),
                timeout=settings.auth_timeout_seconds,
                ttl=settings.actor_cache_ttl_seconds or None,
                max_size=settings.session_registry_max_size or None,
            )
        return _registry


def set_session_registry(registry: Optional[SessionRegistry]) -> None:
    global _registry
    with _registry_lock:
        _registry = registry
