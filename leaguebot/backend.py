"""HTTP client for the league backend.

Wraps the two kinds of backend calls leaguebot makes: exchanging the
service identity for an opaque token, and authenticated GETs against
the event API. Successful payloads are returned as parsed JSON; the
backend reports failures as ``{"comment": "..."}`` with a non-2xx
status, which become BackendError (or AuthError for the token call).

Key classes:
    BackendClient: Owns the aiohttp session and request plumbing.
    UserInfo, LeagueMember, LeagueInfo: Pydantic models for the
        payloads commands render.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import aiohttp
import structlog
from pydantic import BaseModel, Field

from .exceptions import AuthError, BackendError, ErrorCategory

logger = structlog.get_logger("leaguebot.backend")

AUTH_PATH = "/api/auth/getToken"
EVENT_PATH = "/api/event"


class UserInfo(BaseModel):
    """Payload of ``user/getInfo``."""

    username: str
    pfp: Optional[str] = None
    points_accumulated: float = 0
    solved: int = 0
    gain_rate: float = 0
    league_participation: List[Any] = Field(default_factory=list)
    cf_handle: Optional[str] = None
    cf_rating: Optional[int] = None
    rating: Optional[int] = None


class LeagueMember(BaseModel):
    """One member row from ``league/getMembers`` or ``league/getInfo``."""

    username: str = ""
    team: Optional[str] = None
    points: float = 0
    streak_cnt: int = 0
    problems_solved: int = 0


class LeagueInfo(BaseModel):
    """Payload of ``league/getInfo``."""

    league_name: str
    teams: List[str] = Field(default_factory=list)
    members: List[LeagueMember] = Field(default_factory=list)
    start_time: Optional[int] = None
    end_time: Optional[int] = None


def _comment_from(body: str) -> str:
    """Extract the ``comment`` field from an error body, if present."""
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()[:200]
    if isinstance(data, dict) and data.get("comment"):
        return str(data["comment"])
    return ""


def _token_from(body: str) -> str:
    """Extract the token from an authentication response body.

    The backend returns the token as a JSON string; a ``{"token": ..}``
    object or a bare text body are accepted as well.
    """
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and isinstance(data.get("token"), str):
        return data["token"]
    return ""


class BackendClient:
    """Async client for the league backend.

    Args:
        api_url: Base URL of the backend (no trailing slash).
        timeout: Total timeout in seconds per request.
    """

    def __init__(self, api_url: str, timeout: int = 30):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        parsed = urlparse(self.api_url)
        if self.api_url and not parsed.hostname:
            raise ValueError("API URL must have a valid hostname")
        if parsed.hostname and parsed.hostname not in ("127.0.0.1", "localhost", "::1") \
                and parsed.scheme != "https":
            logger.warning("insecure_api_url", host=parsed.hostname)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the shared HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def authenticate(self, username: str, password: str) -> str:
        """Exchange the service identity for a bearer token.

        Raises:
            AuthError: On a non-2xx status, an empty token, or any
                transport failure.
        """
        url = f"{self.api_url}{AUTH_PATH}"
        try:
            session = await self._get_session()
            async with session.post(
                url, json={"username": username, "password": password}
            ) as resp:
                body = await resp.text()
                if resp.status != 200:
                    comment = _comment_from(body)
                    logger.warning("auth_rejected", status=resp.status, comment=comment)
                    raise AuthError(
                        f"Error code: {resp.status}. Comment: {comment}",
                        status=resp.status,
                        category=ErrorCategory.PERMANENT,
                    )
        except asyncio.TimeoutError as e:
            logger.warning("auth_timeout", timeout=self.timeout)
            raise AuthError("Authentication timed out") from e
        except aiohttp.ClientError as e:
            logger.warning("auth_connection_error", error=str(e))
            raise AuthError(f"Authentication failed: {e}") from e

        token = _token_from(body)
        if not token:
            raise AuthError("Authentication returned no token", status=resp.status)
        return token

    async def get(self, path: str, params: Dict[str, str], token: str) -> Any:
        """Issue an authenticated GET against ``/api/event/<path>``.

        Args:
            path: Endpoint below the event API, e.g. "league/join".
            params: Query parameters.
            token: Credential sent in the ``Authentication`` header.

        Returns:
            Parsed JSON body, or None for an empty body.

        Raises:
            BackendError: On a non-2xx status or a transport failure.
        """
        url = f"{self.api_url}{EVENT_PATH}/{path.lstrip('/')}"
        try:
            session = await self._get_session()
            async with session.get(
                url, params=params, headers={"Authentication": token}
            ) as resp:
                body = await resp.text()
                if not 200 <= resp.status < 300:
                    comment = _comment_from(body)
                    logger.info(
                        "backend_error_response",
                        path=path,
                        status=resp.status,
                        comment=comment,
                    )
                    raise BackendError(comment, status=resp.status)
        except asyncio.TimeoutError as e:
            logger.warning("backend_timeout", path=path, timeout=self.timeout)
            raise BackendError(category=ErrorCategory.TRANSIENT) from e
        except aiohttp.ClientError as e:
            logger.warning("backend_connection_error", path=path, error=str(e))
            raise BackendError(category=ErrorCategory.TRANSIENT) from e

        logger.debug("backend_response", path=path, status=resp.status, length=len(body))
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError:
            return body
