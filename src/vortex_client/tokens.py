"""
Token minting

Tokens are HS256 JWTs signed with a key derived from the API key, so any
Vortex SDK given the same key, claims and timestamp produces the same token.

API key format: ``VRTX.<base64url(16-byte id)>.<secret>``
"""

import functools
import hashlib
import hmac
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .encoding import base64url_decode, base64url_encode, canonical_json
from .errors import (
    InvalidKeyFormat,
    InvalidKeyIdLength,
    InvalidKeyPrefix,
    MissingRequiredClaim,
    VortexTokenError,
)
from .types import Group, Identifier, TokenHeader, User

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "VRTX"
TOKEN_TTL_SECONDS = 3600

_ID_GROUPS = (4, 2, 2, 2, 6)


def parse_api_key(api_key: str) -> Tuple[bytes, str]:
    """
    Split an API key into its 16-byte id and its secret

    Raises:
        InvalidKeyFormat: If the key is not three dot-separated segments
        InvalidKeyPrefix: If the key does not start with ``VRTX``
        InvalidKeyIdLength: If the id segment does not decode to 16 bytes
    """
    parts = api_key.split(".")
    if len(parts) != 3:
        raise InvalidKeyFormat(
            f"Invalid API key format. Expected: {API_KEY_PREFIX}.{{encodedId}}.{{key}}"
        )

    prefix, encoded_id, secret = parts

    if prefix != API_KEY_PREFIX:
        raise InvalidKeyPrefix(f"Invalid API key prefix. Expected: {API_KEY_PREFIX}")

    try:
        id_bytes = base64url_decode(encoded_id)
    except ValueError as e:
        raise InvalidKeyFormat(f"Invalid API key id encoding: {e}") from e

    if len(id_bytes) != 16:
        raise InvalidKeyIdLength(
            f"Invalid API key id length: expected 16 bytes, got {len(id_bytes)}"
        )

    if not secret:
        raise InvalidKeyFormat("Invalid API key format: empty secret")

    return id_bytes, secret


def render_canonical_id(id_bytes: bytes) -> str:
    """Render 16 bytes as a lowercase hyphenated id, every group big-endian"""
    if len(id_bytes) != 16:
        raise InvalidKeyIdLength(
            f"Invalid id length: expected 16 bytes, got {len(id_bytes)}"
        )

    groups = []
    offset = 0
    for size in _ID_GROUPS:
        groups.append(id_bytes[offset : offset + size].hex())
        offset += size
    return "-".join(groups)


@functools.lru_cache(maxsize=128)
def derive_signing_key(secret: Union[str, bytes], canonical_id: str) -> bytes:
    """HMAC-SHA256 of the canonical id, keyed by the API key secret"""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return hmac.new(secret, canonical_id.encode("utf-8"), hashlib.sha256).digest()


def _to_model(model: Any, claims: Dict[str, Any]) -> Any:
    try:
        return model(**claims)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise VortexTokenError(f"Invalid {model.__name__} claims: {fields}") from e


def build_header(canonical_id: str, now: int) -> TokenHeader:
    return TokenHeader(iat=now, kid=canonical_id)


def build_payload(
    user: Union[User, Dict],
    now: int,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the claims for the user token shape

    Claim order is part of the signed bytes: userId, userEmail, userName,
    userAvatarUrl, adminScopes, allowedEmailDomains, expires, then extra
    claims in the order given. Absent optional claims are left out entirely.

    Raises:
        MissingRequiredClaim: If the user id or email is missing
        VortexTokenError: If a claim has the wrong type
    """
    if isinstance(user, dict):
        if not user.get("id"):
            raise MissingRequiredClaim("id", "User must have an id")
        user = _to_model(User, user)

    if not user.id:
        raise MissingRequiredClaim("id", "User must have an id")
    if not user.email:
        raise MissingRequiredClaim("email", "User must have an email")

    payload: Dict[str, Any] = {
        "userId": user.id,
        "userEmail": user.email,
    }

    if user.user_name:
        payload["userName"] = user.user_name

    if user.user_avatar_url:
        payload["userAvatarUrl"] = user.user_avatar_url

    # An empty list is still a supplied value
    if user.admin_scopes is not None:
        payload["adminScopes"] = user.admin_scopes

    if user.allowed_email_domains is not None:
        payload["allowedEmailDomains"] = user.allowed_email_domains

    payload["expires"] = now + TOKEN_TTL_SECONDS

    if user.model_extra:
        payload.update(user.model_extra)

    if extra:
        payload.update(extra)

    return payload


def build_legacy_payload(
    user_id: str,
    identifiers: List[Union[Identifier, Dict[str, str]]],
    groups: Optional[List[Union[Group, Dict[str, Any]]]],
    role: Optional[str],
    now: int,
) -> Dict[str, Any]:
    """
    Build the claims for the legacy identifier/group token shape

    The order userId, groups, role, expires, identifiers is fixed; verifiers
    already deployed against this shape depend on it.

    Raises:
        MissingRequiredClaim: If the user id or every identifier is missing
        VortexTokenError: If an identifier or group is malformed
    """
    if not user_id:
        raise MissingRequiredClaim("userId", "User id is required")
    if not identifiers:
        raise MissingRequiredClaim(
            "identifiers", "At least one identifier (email or sms) is required"
        )

    identifier_models = [
        _to_model(Identifier, i) if isinstance(i, dict) else i for i in identifiers
    ]
    group_models = [
        _to_model(Group, g) if isinstance(g, dict) else g for g in groups or []
    ]

    payload: Dict[str, Any] = {
        "userId": user_id,
        "groups": [g.model_dump(by_alias=True, exclude_none=True) for g in group_models],
    }
    if role is not None:
        payload["role"] = role
    payload["expires"] = now + TOKEN_TTL_SECONDS
    payload["identifiers"] = [i.model_dump() for i in identifier_models]

    return payload


def sign(signing_key: bytes, header: TokenHeader, payload: Dict[str, Any]) -> str:
    header_b64 = base64url_encode(canonical_json(header.model_dump()))
    payload_b64 = base64url_encode(canonical_json(payload))

    to_sign = f"{header_b64}.{payload_b64}"
    signature = hmac.new(signing_key, to_sign.encode("utf-8"), hashlib.sha256).digest()

    return f"{to_sign}.{base64url_encode(signature)}"


class TokenMinter:
    """
    Mints signed tokens for one API key

    The key is parsed once, so a malformed key fails at construction.
    Instances hold no mutable state and can be shared across threads.

    Args:
        api_key: Your Vortex API key
        clock: Returns the current time in seconds since the epoch
    """

    def __init__(self, api_key: str, clock: Callable[[], float] = time.time):
        id_bytes, self._secret = parse_api_key(api_key)
        self.kid = render_canonical_id(id_bytes)
        self._clock = clock

    def _now(self, now: Optional[int]) -> int:
        return int(self._clock()) if now is None else int(now)

    def mint(
        self,
        user: Union[User, Dict],
        now: Optional[int] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Mint a token for the user claims shape

        Args:
            user: User object or dict with 'id', 'email', and optional
                  'user_name', 'user_avatar_url', 'admin_scopes',
                  'allowed_email_domains'
            now: Issue time in seconds since the epoch (default: the clock)
            extra: Additional claims appended to the payload, in order
        """
        issued_at = self._now(now)
        payload = build_payload(user, issued_at, extra)
        signing_key = derive_signing_key(self._secret, self.kid)

        logger.debug("[Vortex SDK] Minting token for kid=%s", self.kid)
        return sign(signing_key, build_header(self.kid, issued_at), payload)

    def mint_legacy(
        self,
        user_id: str,
        identifiers: List[Union[Identifier, Dict[str, str]]],
        groups: Optional[List[Union[Group, Dict[str, Any]]]] = None,
        role: Optional[str] = None,
        now: Optional[int] = None,
    ) -> str:
        """Mint a token for the legacy identifier/group claims shape"""
        issued_at = self._now(now)
        payload = build_legacy_payload(user_id, identifiers, groups, role, issued_at)
        signing_key = derive_signing_key(self._secret, self.kid)

        logger.debug("[Vortex SDK] Minting legacy token for kid=%s", self.kid)
        return sign(signing_key, build_header(self.kid, issued_at), payload)


def mint(
    api_key: str,
    user: Union[User, Dict],
    now: int,
    extra: Optional[Mapping[str, Any]] = None,
) -> str:
    """Mint a user-shape token for ``api_key`` at a fixed time"""
    return TokenMinter(api_key).mint(user, now=now, extra=extra)
