"""
Integration tests for the terminology session flow.

The authenticator, session cache and gateway run for real against an
in-process fake of the auth endpoint and the terminology server.
"""

import asyncio
import json
from datetime import timedelta

import httpx
import pytest

from shared.errors import AuthError
from shared.metrics import MetricsCollector
from service_terminology.app.adapters.terminology_gateway import TerminologyGateway
from service_terminology.app.auth.authenticator import Authenticator
from service_terminology.app.auth.session_cache import SessionCache

AUTH_URL = "https://ims.example.org/api/"
BASE_URL = "https://snowstorm.example.org/snowstorm/snomed-ct/"


class FakeTerminologyPlatform:
    """Auth endpoint plus terminology server sharing one session store."""

    def __init__(self, password="secret"):
        self.password = password
        self.logins = 0
        self.valid_token = None
        self.data_requests = []

    def expire_sessions(self):
        self.valid_token = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == AUTH_URL + "authenticate":
            return self._authenticate(request)

        self.data_requests.append(request)
        if request.headers.get("Cookie") != self.valid_token:
            return httpx.Response(403, json={"message": "Access denied"})
        return httpx.Response(200, json={"items": [{"conceptId": "404684003"}], "total": 1})

    def _authenticate(self, request: httpx.Request) -> httpx.Response:
        credentials = json.loads(request.content)
        if credentials["password"] != self.password:
            return httpx.Response(401)

        self.logins += 1
        session = f"s{self.logins}"
        self.valid_token = f"SESSION={session};XSRF-TOKEN=x{self.logins};"
        return httpx.Response(
            200,
            headers=[
                ("Set-Cookie", f"SESSION={session}; Path=/; HttpOnly"),
                ("Set-Cookie", f"XSRF-TOKEN=x{self.logins}; Path=/"),
            ],
        )


@pytest.fixture
def platform():
    return FakeTerminologyPlatform()


@pytest.fixture
def metrics():
    return MetricsCollector("terminology")


def build_gateway(platform, metrics, password="secret"):
    transport = httpx.MockTransport(platform)
    authenticator = Authenticator(client=httpx.AsyncClient(transport=transport))
    cache = SessionCache(
        authenticator, AUTH_URL, "service-user", password,
        ttl=timedelta(hours=24), metrics=metrics,
    )
    return TerminologyGateway(
        BASE_URL, cache,
        client=httpx.AsyncClient(transport=transport),
        metrics=metrics,
    )


class TestTerminologyFlow:
    """Integration tests for login, expiry recovery and sharing of sessions."""

    @pytest.mark.asyncio
    async def test_login_then_query(self, platform, metrics):
        gateway = build_gateway(platform, metrics)

        data = await gateway.get_json("MAIN/concepts", params={"term": "finding"})

        assert data["total"] == 1
        assert platform.logins == 1
        assert platform.data_requests[0].headers["Cookie"] == "SESSION=s1;XSRF-TOKEN=x1;"

    @pytest.mark.asyncio
    async def test_server_side_expiry_recovered_transparently(self, platform, metrics):
        gateway = build_gateway(platform, metrics)
        await gateway.get("MAIN/concepts")

        platform.expire_sessions()
        response = await gateway.get("MAIN/concepts")

        assert response.status_code == 200
        assert platform.logins == 2
        assert [r.headers["Cookie"] for r in platform.data_requests] == [
            "SESSION=s1;XSRF-TOKEN=x1;",
            "SESSION=s1;XSRF-TOKEN=x1;",
            "SESSION=s2;XSRF-TOKEN=x2;",
        ]
        assert metrics.get_sample_value("terminology_logins_total", outcome="success") == 2.0
        assert metrics.get_sample_value("terminology_auth_retries_total", method="GET") == 1.0

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_login(self, platform, metrics):
        gateway = build_gateway(platform, metrics)

        responses = await asyncio.gather(*[gateway.get(f"MAIN/concepts/{n}") for n in range(10)])

        assert all(response.status_code == 200 for response in responses)
        assert platform.logins == 1

    @pytest.mark.asyncio
    async def test_concurrent_expiry_refreshes_once(self, platform, metrics):
        gateway = build_gateway(platform, metrics)
        await gateway.get("MAIN/concepts")
        platform.expire_sessions()

        responses = await asyncio.gather(*[gateway.get(f"MAIN/concepts/{n}") for n in range(5)])

        assert all(response.status_code == 200 for response in responses)
        assert platform.logins == 2

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, platform, metrics):
        gateway = build_gateway(platform, metrics, password="wrong")

        with pytest.raises(AuthError) as exc_info:
            await gateway.get("MAIN/concepts")

        assert exc_info.value.status_code == 401
        assert platform.data_requests == []
        assert gateway.session_cache.session is None
        assert metrics.get_sample_value("terminology_logins_total", outcome="failure") == 1.0
