"""Tests for the Vortex client against a stubbed HTTP transport."""

import json
from typing import Callable, List

import httpx
import pytest

from vortex_client import (
    AcceptUser,
    InvalidKeyPrefix,
    MissingRequiredClaim,
    Vortex,
    VortexApiError,
    VortexSettings,
)
from vortex_client.encoding import base64url_decode


API_KEY = "VRTX.AAAAAAAAAAAAAAAAAAAAAA.secret123"
BASE_URL = "https://api.test/api/v1"

INVITATION = {
    "id": "inv-123",
    "accountId": "acc-1",
    "clickThroughs": 2,
    "createdAt": "2025-01-15T12:00:00.000Z",
    "deactivated": False,
    "deliveryCount": 1,
    "deliveryTypes": ["email"],
    "foreignCreatorId": "user-456",
    "invitationType": "single_use",
    "status": "delivered",
    "target": [{"type": "email", "value": "invitee@example.com"}],
    "views": 3,
    "widgetConfigurationId": "wc-1",
    "projectId": "proj-1",
    "groups": [
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "accountId": "acc-1",
            "groupId": "workspace-123",
            "type": "workspace",
            "name": "My Workspace",
            "createdAt": "2025-01-01T00:00:00.000Z",
        }
    ],
    "accepts": [],
    "expired": False,
}


class Recorder:
    """Collects requests and answers each with the same canned response."""

    def __init__(self, response: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []
        self._response = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._response(request)


def _client(recorder: Recorder, **kwargs) -> Vortex:
    transport = httpx.MockTransport(recorder)
    return Vortex(
        API_KEY,
        base_url=BASE_URL + "/",
        transport=transport,
        async_transport=transport,
        **kwargs,
    )


def _json(body, status_code: int = 200) -> Recorder:
    return Recorder(lambda request: httpx.Response(status_code, json=body))


class TestConstruction:
    def test_malformed_key_rejected(self) -> None:
        with pytest.raises(InvalidKeyPrefix):
            Vortex("NOPE.AAAAAAAAAAAAAAAAAAAAAA.secret123")

    def test_base_url_trailing_slash(self) -> None:
        assert _client(_json({})).base_url == BASE_URL

    def test_from_settings(self) -> None:
        settings = VortexSettings(api_key=API_KEY, base_url="https://eu.api.test/api/v1", timeout=2.0)
        client = Vortex.from_settings(settings)
        assert client.base_url == "https://eu.api.test/api/v1"
        assert client.api_key == API_KEY


class TestGenerateJwt:
    def test_uses_clock(self) -> None:
        client = _client(_json({}), clock=lambda: 1700000000)
        token = client.generate_jwt({"id": "user-123", "email": "user@example.com"})
        assert token.endswith(".evDYWmtCPBLL9_n07bjoWphZI1C8jsEbX7XjtFQh_zg")

    def test_legacy_shape(self) -> None:
        client = _client(_json({}), clock=lambda: 1700000000)
        token = client.generate_legacy_jwt(
            "user-123",
            identifiers=[{"type": "email", "value": "user@example.com"}],
            groups=[{"type": "workspace", "group_id": "ws-1", "name": "Main Workspace"}],
            role="admin",
        )
        assert token.endswith(".w-rTJ3VavggGJJWc16n1r43xQ8UTLAehLKgmLr2ElFk")

    def test_missing_email(self) -> None:
        with pytest.raises(MissingRequiredClaim):
            _client(_json({})).generate_jwt({"id": "user-123"})

    def test_keyword_claims_do_not_change_issue_time(self) -> None:
        client = _client(_json({}), clock=lambda: 1700000000)
        token = client.generate_jwt({"id": "user-123", "email": "user@example.com"}, now=5)

        payload = json.loads(base64url_decode(token.split(".")[1]))
        assert payload["now"] == 5
        assert payload["expires"] == 1700003600


class TestRequests:
    def test_headers(self) -> None:
        recorder = _json(INVITATION)
        _client(recorder).get_invitation_sync("inv-123")

        request = recorder.requests[0]
        assert request.headers["x-api-key"] == API_KEY
        assert request.headers["x-vortex-sdk-name"] == "vortex-python-client"
        assert request.headers["User-Agent"].startswith("vortex-python-client/")

    def test_get_invitation_sync(self) -> None:
        recorder = _json(INVITATION)
        invitation = _client(recorder).get_invitation_sync("inv-123")

        assert recorder.requests[0].method == "GET"
        assert recorder.requests[0].url.path == "/api/v1/invitations/inv-123"
        assert invitation.id == "inv-123"
        assert invitation.click_throughs == 2
        assert invitation.target[0].value == "invitee@example.com"
        assert invitation.groups[0].group_id == "workspace-123"

    @pytest.mark.asyncio
    async def test_get_invitations_by_target(self) -> None:
        recorder = _json({"invitations": [INVITATION]})
        async with _client(recorder) as client:
            invitations = await client.get_invitations_by_target("email", "invitee@example.com")

        params = recorder.requests[0].url.params
        assert params["targetType"] == "email"
        assert params["targetValue"] == "invitee@example.com"
        assert [inv.id for inv in invitations] == ["inv-123"]

    def test_get_invitations_by_group_without_invitations(self) -> None:
        recorder = _json({})
        assert _client(recorder).get_invitations_by_group_sync("team", "t-1") == []
        assert recorder.requests[0].url.path == "/api/v1/invitations/by-group/team/t-1"

    def test_revoke_empty_response(self) -> None:
        recorder = Recorder(lambda request: httpx.Response(204))
        assert _client(recorder).revoke_invitation_sync("inv-123") == {}
        assert recorder.requests[0].method == "DELETE"

    @pytest.mark.asyncio
    async def test_delete_invitations_by_group(self) -> None:
        recorder = _json({"success": True})
        async with _client(recorder) as client:
            result = await client.delete_invitations_by_group("team", "t-1")

        assert result == {"success": True}
        assert recorder.requests[0].method == "DELETE"

    @pytest.mark.asyncio
    async def test_reinvite(self) -> None:
        recorder = _json(INVITATION)
        async with _client(recorder) as client:
            invitation = await client.reinvite("inv-123")

        assert recorder.requests[0].url.path == "/api/v1/invitations/inv-123/reinvite"
        assert invitation.status == "delivered"


class TestAcceptInvitations:
    def test_sends_user(self) -> None:
        recorder = _json({"ok": True})
        _client(recorder).accept_invitation_sync(
            "inv-123", AcceptUser(email="user@example.com", name="Jane")
        )

        request = recorder.requests[0]
        assert request.url.path == "/api/v1/invitations/accept"
        assert json.loads(request.content) == {
            "invitationIds": ["inv-123"],
            "user": {"email": "user@example.com", "name": "Jane"},
        }

    @pytest.mark.asyncio
    async def test_phone_only(self) -> None:
        recorder = _json({"ok": True})
        async with _client(recorder) as client:
            await client.accept_invitations(["inv-1", "inv-2"], {"phone": "+15555550100"})

        assert json.loads(recorder.requests[0].content)["user"] == {"phone": "+15555550100"}

    def test_requires_email_or_phone_before_sending(self) -> None:
        recorder = _json({"ok": True})
        with pytest.raises(MissingRequiredClaim):
            _client(recorder).accept_invitations_sync(["inv-123"], {"name": "Jane"})
        assert recorder.requests == []


class TestCreateInvitation:
    def test_camel_case_body(self) -> None:
        recorder = _json(
            {
                "id": "inv-123",
                "shortLink": "https://vrtx.ly/abc",
                "status": "queued",
                "createdAt": "2025-01-15T12:00:00.000Z",
            }
        )
        result = _client(recorder).create_invitation_sync(
            widget_configuration_id="wc-1",
            target={"type": "email", "value": "invitee@example.com"},
            inviter={"user_id": "user-456"},
            groups=[{"type": "team", "group_id": "team-789", "name": "Engineering"}],
            subtype="pymk",
            unfurl_config={"title": "Join us", "site_name": "Acme"},
        )

        assert json.loads(recorder.requests[0].content) == {
            "widgetConfigurationId": "wc-1",
            "target": {"type": "email", "value": "invitee@example.com"},
            "inviter": {"userId": "user-456"},
            "groups": [{"type": "team", "groupId": "team-789", "name": "Engineering"}],
            "subtype": "pymk",
            "unfurlConfig": {"title": "Join us", "siteName": "Acme"},
        }
        assert result.short_link == "https://vrtx.ly/abc"


class TestAutojoin:
    def test_get_quotes_path_segments(self) -> None:
        recorder = _json({"autojoinDomains": [{"id": "d-1", "domain": "acme.com"}], "invitation": None})
        result = _client(recorder).get_autojoin_domains_sync("organization", "acme org")

        assert recorder.requests[0].url.raw_path == (
            b"/api/v1/invitations/by-scope/organization/acme%20org/autojoin"
        )
        assert result.autojoin_domains[0].domain == "acme.com"
        assert result.invitation is None

    @pytest.mark.asyncio
    async def test_configure(self) -> None:
        recorder = _json({"autojoinDomains": [], "invitation": INVITATION})
        async with _client(recorder) as client:
            result = await client.configure_autojoin(
                scope="acme-org",
                scope_type="organization",
                domains=["acme.com"],
                widget_id="w-1",
            )

        assert json.loads(recorder.requests[0].content) == {
            "scope": "acme-org",
            "scopeType": "organization",
            "domains": ["acme.com"],
            "widgetId": "w-1",
        }
        assert result.invitation is not None
        assert result.invitation.id == "inv-123"


class TestErrors:
    def test_api_error_message(self) -> None:
        recorder = _json({"error": "Invitation not found"}, status_code=404)
        with pytest.raises(VortexApiError) as exc_info:
            _client(recorder).get_invitation_sync("missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Invitation not found"

    def test_api_error_without_json(self) -> None:
        recorder = Recorder(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(VortexApiError, match="status 502"):
            _client(recorder).revoke_invitation_sync("inv-123")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(Recorder(refuse)) as client:
            with pytest.raises(VortexApiError) as exc_info:
                await client.get_invitation("inv-123")

        assert exc_info.value.status_code is None
        assert not isinstance(exc_info.value, ValueError)
