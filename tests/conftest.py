"""Shared test fixtures for routerkit.

Provides isolated config directories, output state management, a frozen
clock, scripted transports and refreshers, and a factory assembling the
full signing/retry pipeline around them. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from routerkit.auth.provider import TokenProvider
from routerkit.auth.refresher import TokenRefresher
from routerkit.auth.signer import RequestSigner
from routerkit.auth.token_store import MemoryTokenStore, TokenStore
from routerkit.client.events import EventObserver
from routerkit.client.executor import RequestExecutor
from routerkit.client.service import APIService
from routerkit.client.transport import Transport
from routerkit.models import Profile, RequestConfig, Token
from routerkit.output import OutputFormat, OutputManager, reset_output, set_output

BASE_URL = "https://api.example.com"
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


def make_token(
    access: str = "A1",
    refresh: Optional[str] = "R1",
    expires_in: Optional[float] = 3600,
    now: datetime = T0,
) -> Token:
    expires_at = now + timedelta(seconds=expires_in) if expires_in is not None else None
    return Token(access_token=access, refresh_token=refresh, expires_at=expires_at)


@pytest.fixture
def token_factory() -> Callable[..., Token]:
    """Build tokens relative to the frozen clock's start time."""
    return make_token


# ---------------------------------------------------------------------------
# Scripted collaborators
# ---------------------------------------------------------------------------


class StubRefresher(TokenRefresher):
    """Refresher returning A2/R2, A3/R3, ... and counting calls.

    Set :attr:`gate` to hold refreshes until the event is set, and
    :attr:`error` to make them fail.
    """

    def __init__(self, clock: FrozenClock, lifetime: float = 3600) -> None:
        super().__init__()
        self.clock = clock
        self.lifetime = lifetime
        self.calls = 0
        self.received: list[Token] = []
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None

    async def refresh(self, token: Token) -> Token:
        self.calls += 1
        self.received.append(token)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        n = self.calls + 1
        return Token(
            access_token=f"A{n}",
            refresh_token=f"R{n}",
            expires_at=self.clock() + timedelta(seconds=self.lifetime),
        )


@pytest.fixture
def refresher(clock: FrozenClock) -> StubRefresher:
    return StubRefresher(clock)


Step = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class ScriptedTransport(Transport):
    """Transport replaying a fixed list of responses or exceptions, recording every request."""

    def __init__(self, *steps: Step) -> None:
        self.steps = list(steps)
        self.requests: list[httpx.Request] = []

    async def send(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.steps:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(request)
        return step

    @property
    def authorizations(self) -> list[Optional[str]]:
        return [r.headers.get("Authorization") for r in self.requests]


@pytest.fixture
def scripted_transport() -> type[ScriptedTransport]:
    return ScriptedTransport


class RecordingObserver(EventObserver):
    """Observer keeping every event as ``(name, payload)``."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_request_sent(self, request: httpx.Request) -> None:
        self.events.append(("sent", request))

    def on_response_received(self, request: httpx.Request, response: httpx.Response) -> None:
        self.events.append(("received", response.status_code))

    def on_response_decoded(self, value: Any) -> None:
        self.events.append(("decoded", value))

    def on_unauthorized_session_ended(self, router: Any) -> None:
        self.events.append(("session_ended", router))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@dataclass
class Pipeline:
    """A fully wired executor plus handles on every collaborator."""

    transport: ScriptedTransport
    store: TokenStore
    refresher: StubRefresher
    observer: RecordingObserver
    provider: TokenProvider
    signer: RequestSigner
    executor: RequestExecutor
    logouts: list[None] = field(default_factory=list)


@pytest.fixture
def pipeline(clock: FrozenClock, refresher: StubRefresher) -> Callable[..., Pipeline]:
    """Factory wiring transport -> service -> provider -> signer -> executor.

    Usage::

        p = pipeline(httpx.Response(200, json="ok"), token=make_token())
    """

    def _build(*steps: Step, token: Optional[Token] = None) -> Pipeline:
        transport = ScriptedTransport(*steps)
        store = MemoryTokenStore(token)
        observer = RecordingObserver()
        service = APIService(transport, base_url=BASE_URL, observer=observer)
        provider = TokenProvider(store, refresher, clock=clock)
        signer = RequestSigner(provider)
        executor = RequestExecutor(service, signer, provider)
        built = Pipeline(transport, store, refresher, observer, provider, signer, executor)
        store.subscribe(lambda t: built.logouts.append(None) if t is None else None)
        return built

    return _build


# ---------------------------------------------------------------------------
# Profile / config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_profile() -> Profile:
    return Profile(
        name="test-api",
        base_url=BASE_URL,
        request=RequestConfig(timeout=5, verify_ssl=False),
    )


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    forces the XDG layout on every platform, clears all ROUTERKIT_*
    environment variables and changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("routerkit.config._is_xdg_platform", lambda: True)
    for var in ["ROUTERKIT_PROFILE", "ROUTERKIT_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output / CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
