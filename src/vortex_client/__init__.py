"""
Vortex Python Client

A Python client for Vortex invitation management and JWT generation.
"""

from .client import Vortex
from .config import VortexSettings
from .errors import (
    InvalidKeyFormat,
    InvalidKeyIdLength,
    InvalidKeyPrefix,
    MissingRequiredClaim,
    VortexApiError,
    VortexError,
    VortexTokenError,
)
from .tokens import TokenMinter
from .types import (
    AcceptUser,
    AutojoinDomain,
    AutojoinDomainsResponse,
    CreateInvitationGroup,
    CreateInvitationResponse,
    CreateInvitationTarget,
    Group,
    Identifier,
    Invitation,
    InvitationGroup,
    InvitationTarget,
    Inviter,
    UnfurlConfig,
    User,
)

__version__ = "0.1.0"
__author__ = "TeamVortexSoftware"
__email__ = "support@vortexsoftware.com"

__all__ = [
    "Vortex",
    "VortexSettings",
    "TokenMinter",
    "User",
    "Identifier",
    "Group",
    "AcceptUser",
    "Invitation",
    "InvitationGroup",
    "InvitationTarget",
    "CreateInvitationTarget",
    "CreateInvitationGroup",
    "CreateInvitationResponse",
    "Inviter",
    "UnfurlConfig",
    "AutojoinDomain",
    "AutojoinDomainsResponse",
    "VortexError",
    "VortexTokenError",
    "InvalidKeyFormat",
    "InvalidKeyPrefix",
    "InvalidKeyIdLength",
    "MissingRequiredClaim",
    "VortexApiError",
]
