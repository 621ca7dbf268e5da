import hashlib
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from supabase import Client

from soluly.config.settings import settings
from soluly.modules.auth.schemas import LoginRequest, TokenResponse

logger = logging.getLogger(__name__)


class TokenCache:
    """
    Short-lived map of bearer token -> Supabase user.

    Parallel requests carrying the same token would otherwise each call
    Supabase Auth. Keys are token hashes so raw JWTs are never held.
    """

    def __init__(self, ttl_seconds: float, max_size: int):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self.key(token)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            user_data, expiry = entry
            if time.monotonic() >= expiry:
                del self._entries[key]
                return None
            return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        now = time.monotonic()
        with self._lock:
            if len(self._entries) >= self.max_size:
                self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
            if len(self._entries) < self.max_size:
                self._entries[self.key(token)] = (user_data, now + self.ttl_seconds)

    def forget(self, token: str) -> None:
        with self._lock:
            self._entries.pop(self.key(token), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


token_cache = TokenCache(settings.auth_user_cache_ttl_seconds, settings.auth_user_cache_max_size)


def _login_error(message: str) -> HTTPException:
    lowered = message.lower()
    if "email not confirmed" in lowered:
        return HTTPException(
            status_code=401,
            detail="Please confirm your email address before signing in."
        )
    if "invalid" in lowered or "credentials" in lowered:
        return HTTPException(status_code=401, detail="Invalid email or password")
    logger.error(f"Sign-in failed: {message}")
    return HTTPException(status_code=500, detail="Sign-in failed")


class AuthService:
    """Supabase Auth wrapper: sign-in, token verification, sign-out."""

    def __init__(self, supabase: Client, cache: TokenCache = token_cache):
        self.supabase = supabase
        self.cache = cache

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            raise _login_error(str(e))

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info(f"User {auth_response.user.id} signed in")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Verify a bearer token against Supabase Auth and return the user"""
        cached = self.cache.get(token)
        if cached is not None:
            return cached

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.debug(f"Token verification failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = user_response.user if user_response else None
        if not user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        self.cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        """Forget the token locally; Supabase JWTs stay valid until they expire"""
        self.cache.forget(token)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed, continuing with local cleanup: {e}")
            return False
