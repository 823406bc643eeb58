"""Declarative endpoint descriptions.

An :class:`APIRouter` describes one endpoint -- path, method, headers,
query, body, authorization requirement and the models its response decodes
into -- without knowing anything about tokens or transports. The
:class:`~routerkit.client.executor.RequestExecutor` turns a router into a
fresh :class:`httpx.Request` for every attempt, signs it, sends it, and
hands the body back to :meth:`APIRouter.decode`.

Example::

    @dataclass
    class GetUser(APIRouter):
        path: str = "/users/me"
        auth: AuthorizationRequirement = AuthorizationRequirement.ACCESS_TOKEN
        response_model: Any = User

    user = await executor.execute(GetUser())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from routerkit.exceptions import DecodeError, RouterError, TokenNotRefreshableError
from routerkit.models import (
    AuthorizationRequirement,
    ContentType,
    HTTPMethod,
    Token,
    TokenResponse,
)


def join_path(*parts: str) -> str:
    """Join URL path fragments, dropping empty components.

    ``join_path("/v1/", "", "/users")`` returns ``"/v1/users"``. The result
    always starts with a slash.
    """
    segments = [seg for part in parts for seg in part.split("/") if seg]
    return "/" + "/".join(segments)


def with_bearer_token(request: httpx.Request, token: str) -> httpx.Request:
    """Set ``Authorization: Bearer <token>`` on *request* and return it."""
    request.headers["Authorization"] = f"Bearer {token}"
    return request


@dataclass
class APIRouter:
    """One endpoint, ready to be built into an :class:`httpx.Request`.

    Subclass it with field defaults for fixed endpoints, or instantiate it
    directly for ad-hoc calls.

    Attributes:
        path: Path relative to the host; joined onto the base URL's own path.
        method: HTTP method.
        auth: Which credential the request must carry.
        headers: Per-request headers, applied over :attr:`default_headers`.
        query: Query parameters. ``None`` values are dropped.
        body: Request body, encoded according to :attr:`content_type`.
        content_type: Body encoding.
        hostname: Overrides the executor's base URL for this endpoint.
        response_model: Type the body is validated into. ``None`` decodes
            plain JSON and ``bytes`` returns the raw body. Every other type,
            ``str`` included, is parsed from JSON.
        header_model: Pydantic model the response headers are validated into.
            Header names are lower-cased before validation.
        timeout: Per-request timeout in seconds, overriding the client's.
    """

    path: str
    method: HTTPMethod = HTTPMethod.GET
    auth: AuthorizationRequirement = AuthorizationRequirement.NONE
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    content_type: ContentType = ContentType.JSON
    hostname: Optional[str] = None
    response_model: Any = None
    header_model: Optional[type[BaseModel]] = None
    timeout: Optional[float] = None

    default_headers: ClassVar[dict[str, str]] = {"Accept": "application/json"}

    # --- Building ---

    def url(self, base_url: Optional[str] = None) -> httpx.URL:
        """Resolve the absolute URL of this endpoint.

        Args:
            base_url: Fallback host used when :attr:`hostname` is unset.

        Raises:
            RouterError: No hostname is available or it is not an absolute URL.
        """
        host = self.hostname or base_url
        if not host:
            raise RouterError(f"No hostname for {self.method.value} {self.path}")
        try:
            base = httpx.URL(host)
        except httpx.InvalidURL as exc:
            raise RouterError(f"Invalid hostname {host!r}: {exc}") from exc
        if not base.scheme or not base.host:
            raise RouterError(f"Hostname {host!r} must include scheme and host")
        return base.copy_with(path=join_path(base.path, self.path))

    def encode_body(self) -> Optional[bytes]:
        """Encode :attr:`body` according to :attr:`content_type`.

        Raises:
            RouterError: The body type does not fit the content type.
        """
        if self.body is None:
            return None
        if self.content_type is ContentType.JSON:
            try:
                return to_json(self.body, by_alias=True)
            except PydanticSerializationError as exc:
                raise RouterError(f"Cannot encode body as JSON: {exc}") from exc
        if self.content_type is ContentType.FORM:
            if isinstance(self.body, BaseModel):
                fields = self.body.model_dump(by_alias=True, exclude_none=True)
            elif isinstance(self.body, dict):
                fields = self.body
            else:
                raise RouterError("Form bodies must be a dict or a pydantic model")
            return urlencode(fields, doseq=True).encode()
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode()
        raise RouterError(
            f"{self.content_type.value} bodies must be bytes or str, "
            f"got {type(self.body).__name__}"
        )

    def build_request(
        self,
        base_url: Optional[str] = None,
        extra_headers: Optional[dict[str, str]] = None,
    ) -> httpx.Request:
        """Build an unsigned :class:`httpx.Request` for this endpoint.

        Header precedence, lowest first: :attr:`default_headers`,
        *extra_headers* (usually a profile's defaults), :attr:`headers`.
        """
        headers = {**self.default_headers, **(extra_headers or {}), **self.headers}
        content = self.encode_body()
        if content is not None:
            headers.setdefault("Content-Type", self.content_type.value)
        params = {k: v for k, v in self.query.items() if v is not None}
        extensions = {}
        if self.timeout is not None:
            extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()
        return httpx.Request(
            self.method.value,
            self.url(base_url),
            params=params or None,
            headers=headers,
            content=content,
            extensions=extensions,
        )

    # --- Decoding ---

    def decode(self, content: bytes) -> Any:
        """Decode a response body into :attr:`response_model`.

        Raises:
            DecodeError: The body is not valid for the model.
        """
        model = self.response_model
        if model is bytes:
            return content
        if model is None:
            if not content.strip():
                return None
            try:
                return json.loads(content)
            except ValueError as exc:
                raise DecodeError(f"Response is not valid JSON: {exc}") from exc
        try:
            return TypeAdapter(model).validate_json(content or b"null")
        except ValidationError as exc:
            raise DecodeError(
                f"Response does not match {getattr(model, '__name__', model)}: {exc}"
            ) from exc

    def decode_headers(self, headers: httpx.Headers) -> Any:
        """Decode response headers into :attr:`header_model`, or a plain dict."""
        values = {key.lower(): value for key, value in headers.items()}
        if self.header_model is None:
            return values
        try:
            return self.header_model.model_validate(values)
        except ValidationError as exc:
            raise DecodeError(
                f"Response headers do not match {self.header_model.__name__}: {exc}"
            ) from exc


@dataclass
class RefreshTokenRouter(APIRouter):
    """The refresh endpoint, called with the refresh credential as bearer.

    Built from the token being refreshed with :meth:`for_token`; the
    credential is set directly so refreshing never re-enters the signer.
    """

    path: str = "/auth/refresh"
    method: HTTPMethod = HTTPMethod.POST
    response_model: Any = TokenResponse

    @classmethod
    def for_token(
        cls,
        token: Token,
        path: str = "/auth/refresh",
        method: HTTPMethod = HTTPMethod.POST,
    ) -> "RefreshTokenRouter":
        if not token.refresh_token:
            raise TokenNotRefreshableError()
        return cls(
            path=path,
            method=method,
            headers={"Authorization": f"Bearer {token.refresh_token}"},
        )
