import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import httpx

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, VortexSettings
from .errors import MissingRequiredClaim, VortexApiError
from .tokens import TokenMinter
from .types import (
    AcceptUser,
    AutojoinDomainsResponse,
    ConfigureAutojoinRequest,
    CreateInvitationGroup,
    CreateInvitationRequest,
    CreateInvitationResponse,
    CreateInvitationTarget,
    Group,
    Identifier,
    Invitation,
    Inviter,
    UnfurlConfig,
    User,
)

logger = logging.getLogger(__name__)

SDK_NAME = "vortex-python-client"


def _get_version() -> str:
    """Lazy import of version to avoid circular import"""
    from . import __version__

    return __version__


def _segment(value: str) -> str:
    return quote(value, safe="")


class Vortex:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Vortex client

        Args:
            api_key: Your Vortex API key
            base_url: Base URL for Vortex API (default: https://api.vortexsoftware.com/api/v1)
            timeout: Timeout in seconds for API requests
            clock: Time source for token issue times
            transport: Optional httpx transport for the synchronous client
            async_transport: Optional httpx transport for the async client

        Raises:
            VortexTokenError: If the API key is malformed
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._minter = TokenMinter(api_key, clock=clock)
        self._client = httpx.AsyncClient(timeout=timeout, transport=async_transport)
        self._sync_client = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Optional[VortexSettings] = None, **kwargs: Any) -> "Vortex":
        """Build a client from ``VORTEX_*`` environment settings"""
        if settings is None:
            settings = VortexSettings()  # type: ignore[call-arg]
        return cls(
            settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            **kwargs,
        )

    # --- Tokens ---

    def generate_jwt(self, user: Union[User, Dict], **extra: Any) -> str:
        """
        Generate a JWT token for a user

        Args:
            user: User object or dict with 'id', 'email', and optional 'user_name',
                  'user_avatar_url', 'admin_scopes', 'allowed_email_domains'
            **extra: Additional properties to include in JWT payload

        Returns:
            JWT token string

        Raises:
            MissingRequiredClaim: If the user id or email is missing
            VortexTokenError: If a user field has the wrong type

        Example:
            user = {'id': 'user-123', 'email': 'user@example.com', 'admin_scopes': ['autojoin']}
            jwt = vortex.generate_jwt(user=user)

            # With additional claims
            jwt = vortex.generate_jwt(user=user, role='admin', department='Engineering')
        """
        return self._minter.mint(user, extra=extra)

    def generate_legacy_jwt(
        self,
        user_id: str,
        identifiers: List[Union[Identifier, Dict[str, str]]],
        groups: Optional[List[Union[Group, Dict[str, Any]]]] = None,
        role: Optional[str] = None,
    ) -> str:
        """
        Generate a JWT token in the legacy identifiers/groups format

        Use this only for integrations built against that format; the claims
        are laid out differently from generate_jwt() and the two are not
        interchangeable.

        Example:
            jwt = vortex.generate_legacy_jwt(
                user_id="user-123",
                identifiers=[{"type": "email", "value": "user@example.com"}],
                groups=[{"type": "workspace", "group_id": "ws-1", "name": "Main Workspace"}],
                role="admin",
            )
        """
        return self._minter.mint_legacy(user_id, identifiers, groups, role)

    # --- Transport ---

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "User-Agent": f"{SDK_NAME}/{_get_version()}",
            "x-vortex-sdk-name": SDK_NAME,
            "x-vortex-sdk-version": _get_version(),
        }

    def _handle_response(self, method: str, endpoint: str, response: httpx.Response) -> Dict:
        if response.status_code >= 400:
            try:
                error_message = response.json().get(
                    "error", f"API request failed with status {response.status_code}"
                )
            except (ValueError, AttributeError):
                error_message = f"API request failed with status {response.status_code}"

            logger.warning(
                "[Vortex SDK] %s %s failed with status %s",
                method,
                endpoint,
                response.status_code,
            )
            raise VortexApiError(error_message, response.status_code)

        # DELETE requests may return 204 or an empty 200
        if response.status_code == 204 or not response.content:
            return {}

        return response.json()  # type: ignore[no-any-return]

    async def _vortex_api_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Dict:
        """
        Make an API request to Vortex

        Raises:
            VortexApiError: If the request fails or the API returns an error status
        """
        try:
            response = await self._client.request(
                method=method,
                url=f"{self.base_url}{endpoint}",
                json=data,
                params=params,
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            logger.warning("[Vortex SDK] %s %s failed: %s", method, endpoint, e)
            raise VortexApiError(f"Request failed: {e}") from e

        return self._handle_response(method, endpoint, response)

    def _vortex_api_request_sync(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Dict:
        """Synchronous counterpart of _vortex_api_request()"""
        try:
            response = self._sync_client.request(
                method=method,
                url=f"{self.base_url}{endpoint}",
                json=data,
                params=params,
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            logger.warning("[Vortex SDK] %s %s failed: %s", method, endpoint, e)
            raise VortexApiError(f"Request failed: {e}") from e

        return self._handle_response(method, endpoint, response)

    # --- Invitations ---

    async def get_invitations_by_target(
        self, target_type: str, target_value: str
    ) -> List[Invitation]:
        """
        Get invitations for a specific target

        Args:
            target_type: Type of target (email or phone)
            target_value: Target value
        """
        response = await self._vortex_api_request(
            "GET",
            "/invitations",
            params={"targetType": target_type, "targetValue": target_value},
        )
        return [Invitation(**inv) for inv in response.get("invitations", [])]

    def get_invitations_by_target_sync(
        self, target_type: str, target_value: str
    ) -> List[Invitation]:
        response = self._vortex_api_request_sync(
            "GET",
            "/invitations",
            params={"targetType": target_type, "targetValue": target_value},
        )
        return [Invitation(**inv) for inv in response.get("invitations", [])]

    async def get_invitation(self, invitation_id: str) -> Invitation:
        response = await self._vortex_api_request(
            "GET", f"/invitations/{_segment(invitation_id)}"
        )
        return Invitation(**response)

    def get_invitation_sync(self, invitation_id: str) -> Invitation:
        response = self._vortex_api_request_sync(
            "GET", f"/invitations/{_segment(invitation_id)}"
        )
        return Invitation(**response)

    async def revoke_invitation(self, invitation_id: str) -> Dict:
        return await self._vortex_api_request(
            "DELETE", f"/invitations/{_segment(invitation_id)}"
        )

    def revoke_invitation_sync(self, invitation_id: str) -> Dict:
        return self._vortex_api_request_sync(
            "DELETE", f"/invitations/{_segment(invitation_id)}"
        )

    @staticmethod
    def _accept_body(
        invitation_ids: List[str], user: Union[AcceptUser, Dict[str, Any]]
    ) -> Dict[str, Any]:
        if isinstance(user, dict):
            user = AcceptUser(**user)

        if not user.email and not user.phone:
            raise MissingRequiredClaim(
                "email", "User must have either email or phone"
            )

        return {
            "invitationIds": invitation_ids,
            "user": user.model_dump(exclude_none=True),
        }

    async def accept_invitations(
        self,
        invitation_ids: List[str],
        user: Union[AcceptUser, Dict[str, Any]],
    ) -> Dict:
        """
        Accept multiple invitations

        Args:
            invitation_ids: List of invitation IDs to accept
            user: User object (or dict) with email and/or phone, and optional name

        Raises:
            MissingRequiredClaim: If the user has neither email nor phone

        Example:
            user = AcceptUser(email="user@example.com", name="John Doe")
            result = await client.accept_invitations(["inv-123"], user)
        """
        data = self._accept_body(invitation_ids, user)
        return await self._vortex_api_request("POST", "/invitations/accept", data=data)

    def accept_invitations_sync(
        self,
        invitation_ids: List[str],
        user: Union[AcceptUser, Dict[str, Any]],
    ) -> Dict:
        data = self._accept_body(invitation_ids, user)
        return self._vortex_api_request_sync("POST", "/invitations/accept", data=data)

    async def accept_invitation(
        self, invitation_id: str, user: Union[AcceptUser, Dict[str, Any]]
    ) -> Dict:
        """Accept a single invitation"""
        return await self.accept_invitations([invitation_id], user)

    def accept_invitation_sync(
        self, invitation_id: str, user: Union[AcceptUser, Dict[str, Any]]
    ) -> Dict:
        return self.accept_invitations_sync([invitation_id], user)

    async def get_invitations_by_group(
        self, group_type: str, group_id: str
    ) -> List[Invitation]:
        response = await self._vortex_api_request(
            "GET",
            f"/invitations/by-group/{_segment(group_type)}/{_segment(group_id)}",
        )
        return [Invitation(**inv) for inv in response.get("invitations", [])]

    def get_invitations_by_group_sync(
        self, group_type: str, group_id: str
    ) -> List[Invitation]:
        response = self._vortex_api_request_sync(
            "GET",
            f"/invitations/by-group/{_segment(group_type)}/{_segment(group_id)}",
        )
        return [Invitation(**inv) for inv in response.get("invitations", [])]

    async def delete_invitations_by_group(self, group_type: str, group_id: str) -> Dict:
        """Delete all invitations for a specific group"""
        return await self._vortex_api_request(
            "DELETE",
            f"/invitations/by-group/{_segment(group_type)}/{_segment(group_id)}",
        )

    def delete_invitations_by_group_sync(self, group_type: str, group_id: str) -> Dict:
        return self._vortex_api_request_sync(
            "DELETE",
            f"/invitations/by-group/{_segment(group_type)}/{_segment(group_id)}",
        )

    async def reinvite(self, invitation_id: str) -> Invitation:
        """Send an invitation again"""
        response = await self._vortex_api_request(
            "POST", f"/invitations/{_segment(invitation_id)}/reinvite"
        )
        return Invitation(**response)

    def reinvite_sync(self, invitation_id: str) -> Invitation:
        response = self._vortex_api_request_sync(
            "POST", f"/invitations/{_segment(invitation_id)}/reinvite"
        )
        return Invitation(**response)

    @staticmethod
    def _create_body(
        widget_configuration_id: str,
        target: Union[CreateInvitationTarget, Dict[str, str]],
        inviter: Union[Inviter, Dict[str, str]],
        groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]],
        source: Optional[str],
        subtype: Optional[str],
        template_variables: Optional[Dict[str, str]],
        metadata: Optional[Dict[str, Any]],
        unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]],
    ) -> Dict[str, Any]:
        request = CreateInvitationRequest(
            widget_configuration_id=widget_configuration_id,
            target=CreateInvitationTarget(**target) if isinstance(target, dict) else target,
            inviter=Inviter(**inviter) if isinstance(inviter, dict) else inviter,
            groups=(
                [CreateInvitationGroup(**g) if isinstance(g, dict) else g for g in groups]
                if groups
                else None
            ),
            source=source,
            subtype=subtype,
            template_variables=template_variables,
            metadata=metadata,
            unfurl_config=(
                UnfurlConfig(**unfurl_config)
                if isinstance(unfurl_config, dict)
                else unfurl_config
            ),
        )
        return request.model_dump(by_alias=True, exclude_none=True)

    async def create_invitation(
        self,
        widget_configuration_id: str,
        target: Union[CreateInvitationTarget, Dict[str, str]],
        inviter: Union[Inviter, Dict[str, str]],
        groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]] = None,
        source: Optional[str] = None,
        subtype: Optional[str] = None,
        template_variables: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]] = None,
    ) -> CreateInvitationResponse:
        """
        Create an invitation from your backend.

        Uses the API key directly, no user JWT is required. Useful for
        server-side flows such as "People You May Know" or admin-initiated
        invitations.

        Args:
            widget_configuration_id: The widget configuration ID to use
            target: Who is being invited ('email', 'phone' or 'internal' plus value)
            inviter: The inviting user; 'user_id' is required
            groups: Optional groups/scopes to associate with the invitation
            source: Optional source for analytics (defaults to 'api' server-side)
            subtype: Optional analytics segment (e.g. 'pymk')
            template_variables: Optional template variables for email customization
            metadata: Optional metadata passed through to webhooks
            unfurl_config: Optional Open Graph settings for the invitation link

        Example:
            result = await vortex.create_invitation(
                widget_configuration_id="widget-config-123",
                target={"type": "email", "value": "invitee@example.com"},
                inviter={"user_id": "user-456", "user_email": "inviter@example.com"},
                groups=[{"type": "team", "group_id": "team-789", "name": "Engineering"}],
            )
        """
        data = self._create_body(
            widget_configuration_id, target, inviter, groups, source, subtype,
            template_variables, metadata, unfurl_config,
        )
        response = await self._vortex_api_request("POST", "/invitations", data=data)
        return CreateInvitationResponse(**response)

    def create_invitation_sync(
        self,
        widget_configuration_id: str,
        target: Union[CreateInvitationTarget, Dict[str, str]],
        inviter: Union[Inviter, Dict[str, str]],
        groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]] = None,
        source: Optional[str] = None,
        subtype: Optional[str] = None,
        template_variables: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]] = None,
    ) -> CreateInvitationResponse:
        """See create_invitation()"""
        data = self._create_body(
            widget_configuration_id, target, inviter, groups, source, subtype,
            template_variables, metadata, unfurl_config,
        )
        response = self._vortex_api_request_sync("POST", "/invitations", data=data)
        return CreateInvitationResponse(**response)

    # --- Autojoin ---

    async def get_autojoin_domains(
        self, scope_type: str, scope: str
    ) -> AutojoinDomainsResponse:
        """
        Get autojoin domains configured for a scope

        Args:
            scope_type: The type of scope (e.g., "organization", "team")
            scope: The scope identifier (your group ID)
        """
        response = await self._vortex_api_request(
            "GET",
            f"/invitations/by-scope/{_segment(scope_type)}/{_segment(scope)}/autojoin",
        )
        return AutojoinDomainsResponse(**response)

    def get_autojoin_domains_sync(
        self, scope_type: str, scope: str
    ) -> AutojoinDomainsResponse:
        response = self._vortex_api_request_sync(
            "GET",
            f"/invitations/by-scope/{_segment(scope_type)}/{_segment(scope)}/autojoin",
        )
        return AutojoinDomainsResponse(**response)

    async def configure_autojoin(
        self,
        scope: str,
        scope_type: str,
        domains: List[str],
        widget_id: str,
        scope_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AutojoinDomainsResponse:
        """
        Sync the autojoin domains of a scope

        Domains not in ``domains`` are removed; an empty list deactivates the
        scope's autojoin invitation.
        """
        request = ConfigureAutojoinRequest(
            scope=scope,
            scope_type=scope_type,
            domains=domains,
            widget_id=widget_id,
            scope_name=scope_name,
            metadata=metadata,
        )
        response = await self._vortex_api_request(
            "POST",
            "/invitations/autojoin",
            data=request.model_dump(by_alias=True, exclude_none=True),
        )
        return AutojoinDomainsResponse(**response)

    def configure_autojoin_sync(
        self,
        scope: str,
        scope_type: str,
        domains: List[str],
        widget_id: str,
        scope_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AutojoinDomainsResponse:
        request = ConfigureAutojoinRequest(
            scope=scope,
            scope_type=scope_type,
            domains=domains,
            widget_id=widget_id,
            scope_name=scope_name,
            metadata=metadata,
        )
        response = self._vortex_api_request_sync(
            "POST",
            "/invitations/autojoin",
            data=request.model_dump(by_alias=True, exclude_none=True),
        )
        return AutojoinDomainsResponse(**response)

    async def close(self) -> None:
        """Close the HTTP client"""
        await self._client.aclose()

    def close_sync(self) -> None:
        """Close the synchronous HTTP client"""
        self._sync_client.close()

    async def __aenter__(self) -> "Vortex":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __enter__(self) -> "Vortex":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close_sync()
