from __future__ import annotations

import base64
import json

import httpx
import pytest

from aims_client.aims import AimsClient
from aims_client.domain.descriptor import RequestDescriptor
from aims_client.domain.ports.al_client import AlClientProtocol
from aims_client.infra.http.al_client import AlApiClient, ApiError


def make_client(transport: httpx.AsyncBaseTransport, *, authToken: str | None = "tok") -> AlApiClient:
    return AlApiClient(
        baseUrl="https://api.cloudinsight.alertlogic.com/",
        authToken=authToken,
        transport=transport,
    )


def test_client_satisfies_protocol():
    client = make_client(httpx.MockTransport(lambda r: httpx.Response(200)))
    assert isinstance(client, AlClientProtocol)


@pytest.mark.asyncio
async def test_fetch_builds_account_scoped_url_and_headers():
    seen: dict = {}

    def responder(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["token"] = request.headers.get("X-AIMS-Auth-Token")
        return httpx.Response(200, json={"id": "12345678", "name": "Company"})

    async with make_client(httpx.MockTransport(responder)) as client:
        aims = AimsClient(client)
        data = await aims.get_account_details("12345678")

    assert data == {"id": "12345678", "name": "Company"}
    assert seen["method"] == "GET"
    assert seen["url"] == "https://api.cloudinsight.alertlogic.com/aims/v1/12345678/account"
    assert seen["token"] == "tok"


@pytest.mark.asyncio
async def test_fetch_sends_query_params():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/aims/v1/12345678/accounts/managed"
        assert request.url.params["active"] == "true"
        return httpx.Response(200, json={"accounts": []})

    async with make_client(httpx.MockTransport(responder)) as client:
        data = await AimsClient(client).get_managed_accounts("12345678", {"active": "true"})

    assert data == {"accounts": []}


@pytest.mark.asyncio
async def test_unscoped_path_has_no_account_segment():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/aims/v1/token_info"
        assert "X-AIMS-Auth-Token" not in request.headers
        return httpx.Response(200, json={"user": {"id": "U1"}})

    async with make_client(httpx.MockTransport(responder), authToken=None) as client:
        data = await AimsClient(client).token_info()

    assert data == {"user": {"id": "U1"}}


@pytest.mark.asyncio
async def test_set_sends_put_with_json_body():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.url.path == "/aims/v1/reset_password/69EtspCz3c4"
        assert json.loads(request.content.decode("utf-8")) == {"password": "hunter2"}
        return httpx.Response(204)

    async with make_client(httpx.MockTransport(responder)) as client:
        result = await AimsClient(client).reset_with_token("69EtspCz3c4", "hunter2")

    assert result is None


@pytest.mark.asyncio
async def test_post_and_delete_verbs():
    calls: list[tuple[str, str, bytes]] = []

    def responder(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"ok": True})

    async with make_client(httpx.MockTransport(responder)) as client:
        aims = AimsClient(client)
        await aims.update_role_name(42, "R1", "Viewer")
        await aims.delete_role(42, "R1")

    assert calls[0][0] == "POST"
    assert calls[0][1] == "/aims/v1/42/roles/R1"
    assert json.loads(calls[0][2]) == {"name": "Viewer"}
    assert calls[1][:2] == ("DELETE", "/aims/v1/42/roles/R1")


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["ops#1@company.com", "ops?x@company.com"])
async def test_url_delimiters_in_identifier_stay_in_path(email):
    seen: dict = {}

    def responder(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["query"] = request.url.query
        return httpx.Response(204)

    async with make_client(httpx.MockTransport(responder)) as client:
        await AimsClient(client).delete_mfa(email)

    assert seen["path"] == f"/aims/v1/user/mfa/{email}"
    assert seen["query"] == b""


@pytest.mark.asyncio
async def test_reset_token_with_question_mark_is_sent_escaped():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.url.raw_path == b"/aims/v1/reset_password/ab%3Fcd"
        return httpx.Response(204)

    async with make_client(httpx.MockTransport(responder)) as client:
        assert await AimsClient(client).reset_with_token("ab?cd", "hunter2") is None


@pytest.mark.asyncio
async def test_authenticate_uses_basic_auth_and_mfa_body():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/aims/v1/authenticate"
        expected = base64.b64encode(b"admin@company.com:hunter2").decode("ascii")
        assert request.headers["authorization"] == f"Basic {expected}"
        assert json.loads(request.content) == {"mfa_code": "123456"}
        return httpx.Response(200, json={"authentication": {"token": "new-token"}})

    async with make_client(httpx.MockTransport(responder)) as client:
        data = await AimsClient(client).authenticate(None, "admin@company.com", "hunter2", "123456")

    assert data == {"authentication": {"token": "new-token"}}


@pytest.mark.asyncio
async def test_http_error_raises_api_error_with_snippet():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text='{"error":"role not found"}')

    async with make_client(httpx.MockTransport(responder)) as client:
        with pytest.raises(ApiError) as exc:
            await AimsClient(client).get_global_role("missing")

    assert exc.value.code == "HTTP_404"
    assert exc.value.status_code == 404
    assert exc.value.retryable is False
    assert "role not found" in (exc.value.body_snippet or "")


@pytest.mark.asyncio
async def test_server_error_is_marked_retryable_but_not_retried():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503, text="unavailable")

    async with make_client(httpx.MockTransport(responder)) as client:
        with pytest.raises(ApiError) as exc:
            await AimsClient(client).get_global_roles()

    assert exc.value.retryable is True
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_network_error_maps_to_network_error_code():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with make_client(httpx.MockTransport(responder)) as client:
        with pytest.raises(ApiError) as exc:
            await AimsClient(client).token_info()

    assert exc.value.code == "NETWORK_ERROR"
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json_raises():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json")

    async with make_client(httpx.MockTransport(responder)) as client:
        with pytest.raises(ApiError) as exc:
            await client.fetch(RequestDescriptor(service_name="aims", path="/roles"))

    assert exc.value.code == "INVALID_JSON"


def test_build_path_uses_api_version():
    client = AlApiClient(baseUrl="https://api.local", apiVersion="v2")
    descriptor = RequestDescriptor(service_name="aims", path="/roles/R1", account_id=7)

    assert client.buildPath(descriptor) == "/aims/v2/7/roles/R1"
