"""Canonical Pydantic models shared across all routerkit modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Session models** -- the credentials flowing through the request pipeline:
    :class:`Token`, :class:`TokenResponse`, and
    :class:`AuthorizationRequirement`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RefreshConfig`, :class:`RequestConfig`, :class:`OutputConfig`,
    :class:`GlobalConfig`, and :class:`Profile`.

Request vocabulary (:class:`HTTPMethod`, :class:`ContentType`) lives here
too so that configuration and routers agree on the same enums.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_REFRESH_LOOKAHEAD = timedelta(seconds=300)
"""A token expiring within this window is refreshed before use."""


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Request vocabulary ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods a router may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"


class ContentType(str, enum.Enum):
    """Body encodings understood by :meth:`~routerkit.router.APIRouter.encode_body`."""

    JSON = "application/json"
    FORM = "application/x-www-form-urlencoded"
    OCTET_STREAM = "application/octet-stream"
    TEXT = "text/plain"


class AuthorizationRequirement(str, enum.Enum):
    """Which credential, if any, a request must carry.

    ``NONE`` sends the request unsigned, ``ACCESS_TOKEN`` attaches the
    (possibly refreshed) access credential, and ``REFRESH_TOKEN`` attaches
    the refresh credential, as used by the refresh endpoint itself.
    """

    NONE = "none"
    ACCESS_TOKEN = "access"
    REFRESH_TOKEN = "refresh"


# --- Session models ---


class Token(BaseModel):
    """An access/refresh credential pair with an optional expiry.

    Tokens are immutable; a refresh produces a new instance. A token with
    ``refresh_token=None`` can never be refreshed, and a token with
    ``expires_at=None`` never needs refreshing on its own (a 401 can still
    force one).

    Example::

        Token(
            access_token="A1",
            refresh_token="R1",
            expires_at=utcnow() + timedelta(hours=1),
        )
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def needs_refresh(
        self,
        now: datetime,
        lookahead: timedelta = DEFAULT_REFRESH_LOOKAHEAD,
    ) -> bool:
        """Return True when the token expires before ``now + lookahead``.

        The comparison is strict: a token expiring exactly at the end of
        the window is still considered fresh.

        Args:
            now: The current time. Naive values are treated as UTC.
            lookahead: How far ahead of expiry a refresh is triggered.
        """
        if self.expires_at is None:
            return False
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return self.expires_at < now + lookahead

    def expires_in(self, now: datetime) -> Optional[timedelta]:
        """Time left until expiry, negative once expired, or None without an expiry."""
        if self.expires_at is None:
            return None
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return self.expires_at - now


class TokenResponse(BaseModel):
    """Body returned by a token refresh endpoint.

    Accepts the common spellings of each field (``access_token``,
    ``access``, ``accessToken`` and so on) so that one refresher works
    against most servers. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(
        validation_alias=AliasChoices("access_token", "access", "accessToken"),
    )
    refresh_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("refresh_token", "refresh", "refreshToken"),
    )
    expires_in: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("expires_in", "expiresInS", "expiresIn"),
        description="Lifetime of the access token in seconds",
    )

    def to_token(self, now: datetime, previous: Optional[Token] = None) -> Token:
        """Build a :class:`Token`, keeping the previous refresh credential if none was issued.

        Args:
            now: Time the response was received, used to compute ``expires_at``.
            previous: The token that was refreshed.

        Returns:
            The new :class:`Token`.
        """
        refresh_token = self.refresh_token
        if refresh_token is None and previous is not None:
            refresh_token = previous.refresh_token
        expires_at = None
        if self.expires_in is not None:
            expires_at = now + timedelta(seconds=self.expires_in)
        return Token(
            access_token=self.access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )


# --- Configuration models ---


class RefreshConfig(BaseModel):
    """Where and how a profile's session is refreshed."""

    path: str = Field(default="/auth/refresh", description="Refresh endpoint path")
    method: HTTPMethod = Field(default=HTTPMethod.POST)
    lookahead_seconds: int = Field(
        default=300,
        ge=0,
        description="Refresh tokens expiring within this many seconds",
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call in a profile."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True)


class OutputConfig(BaseModel):
    """Default output preferences for the ``routerkit`` command."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/routerkit/config.json``.

    Loaded and saved by :func:`~routerkit.config.load_global_config` and
    :func:`~routerkit.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~routerkit.config.resolve_config`
    for the full precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    A profile names one API host and bundles the refresh endpoint and
    request settings used to talk to it. Its session token is stored
    separately by :class:`~routerkit.auth.token_store.FileTokenStore`.

    See Also:
        :func:`~routerkit.config.load_profile`: Deserialise a profile by name.
        :func:`~routerkit.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(description="Scheme and host every router is resolved against")
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    default_headers: dict[str, str] = Field(default_factory=dict)
