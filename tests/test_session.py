"""Tests for the Session facade wiring a profile into the request pipeline."""

from __future__ import annotations

import httpx
import pytest

from conftest import BASE_URL, RecordingObserver, ScriptedTransport, make_token
from routerkit.auth.token_store import FileTokenStore, MemoryTokenStore
from routerkit.client.transport import Transport
from routerkit.config import get_tokens_dir
from routerkit.exceptions import UnauthorizedSessionError
from routerkit.models import AuthorizationRequirement, Profile, RefreshConfig
from routerkit.router import APIRouter
from routerkit.session import Session

ME = APIRouter("/me", auth=AuthorizationRequirement.ACCESS_TOKEN)


def _session(profile, *steps, token=None, clock=None, observer=None):
    transport = ScriptedTransport(*steps)
    session = Session(
        profile,
        store=MemoryTokenStore(token),
        transport=transport,
        observer=observer,
        clock=clock,
    )
    return session, transport


class TestWiring:
    def test_default_store_is_per_profile_file(self, isolated_config, sample_profile):
        session = Session(sample_profile, transport=ScriptedTransport())
        assert isinstance(session.tokens.store, FileTokenStore)
        assert session.tokens.store.path == get_tokens_dir() / "test-api.json"

    def test_login_persists_to_file(self, isolated_config, sample_profile):
        session = Session(sample_profile, transport=ScriptedTransport())
        session.login(make_token())
        assert session.is_logged_in
        assert FileTokenStore("test-api").read() == make_token()

        session.logout()
        assert not FileTokenStore("test-api").is_logged_in

    def test_refresh_lookahead_from_profile(self, sample_profile):
        profile = sample_profile.model_copy(
            update={"refresh": RefreshConfig(lookahead_seconds=60)}
        )
        session, _ = _session(profile)
        assert session.refresher.lookahead.total_seconds() == 60


class TestRequests:
    @pytest.mark.asyncio
    async def test_execute_signs_with_stored_token(self, sample_profile, clock):
        session, transport = _session(
            sample_profile, httpx.Response(200, json={"id": 1}), token=make_token(), clock=clock
        )
        assert await session.execute(ME) == {"id": 1}
        assert transport.authorizations == ["Bearer A1"]
        assert str(transport.requests[0].url) == f"{BASE_URL}/me"

    @pytest.mark.asyncio
    async def test_profile_default_headers_sent(self, clock):
        profile = Profile(
            name="h", base_url=BASE_URL, default_headers={"X-Tenant": "acme"}
        )
        session, transport = _session(profile, httpx.Response(204))
        await session.execute_void(APIRouter("/ping"))
        assert transport.requests[0].headers["X-Tenant"] == "acme"

    @pytest.mark.asyncio
    async def test_stale_token_refreshed_through_profile_endpoint(self, clock):
        profile = Profile(
            name="r",
            base_url=f"{BASE_URL}/v1",
            refresh=RefreshConfig(path="/oauth/refresh"),
        )
        session, transport = _session(
            profile,
            httpx.Response(200, json={"access_token": "A2", "expires_in": 3600}),
            httpx.Response(200, json={"id": 1}),
            token=make_token(expires_in=30),
            clock=clock,
        )
        assert await session.execute(ME) == {"id": 1}

        refresh, call = transport.requests
        assert refresh.method == "POST"
        assert refresh.url.path == "/v1/oauth/refresh"
        assert transport.authorizations == ["Bearer R1", "Bearer A2"]
        assert call.url.path == "/v1/me"
        assert session.tokens.token.refresh_token == "R1"

    @pytest.mark.asyncio
    async def test_rejected_session_is_logged_out(self, sample_profile, clock):
        observer = RecordingObserver()
        session, _ = _session(
            sample_profile,
            httpx.Response(401),
            httpx.Response(200, json={"access_token": "A2"}),
            httpx.Response(401),
            token=make_token(),
            clock=clock,
            observer=observer,
        )
        with pytest.raises(UnauthorizedSessionError):
            await session.execute(ME)
        assert not session.is_logged_in
        assert observer.names()[-1] == "session_ended"

    @pytest.mark.asyncio
    async def test_execute_with_headers(self, sample_profile, clock):
        session, _ = _session(
            sample_profile,
            httpx.Response(200, json=[1], headers={"X-Total": "1"}),
        )
        body, headers = await session.execute_with_headers(APIRouter("/items"))
        assert body == [1]
        assert headers["x-total"] == "1"

    @pytest.mark.asyncio
    async def test_signed_request_is_not_sent(self, sample_profile, clock):
        session, transport = _session(sample_profile, token=make_token(), clock=clock)
        request = await session.signed_request(ME)
        assert request.headers["Authorization"] == "Bearer A1"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_signed_request_auth_override(self, sample_profile, clock):
        session, _ = _session(sample_profile, token=make_token(), clock=clock)
        request = await session.signed_request(ME, AuthorizationRequirement.NONE)
        assert "Authorization" not in request.headers


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, sample_profile):
        class ClosingTransport(Transport):
            closed = False

            async def send(self, request):  # pragma: no cover - never called
                raise AssertionError

            async def aclose(self):
                self.closed = True

        transport = ClosingTransport()
        async with Session(sample_profile, store=MemoryTokenStore(), transport=transport):
            pass
        assert transport.closed
