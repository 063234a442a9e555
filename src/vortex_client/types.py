from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Token claims ---


class User(BaseModel):
    """
    User claims for JWT generation

    Any field not declared here is carried into the JWT payload as an
    additional claim, after the standard ones.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    email: Optional[str] = None
    user_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("user_name", "userName", "name")
    )
    user_avatar_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("user_avatar_url", "userAvatarUrl", "avatar_url"),
    )
    admin_scopes: Optional[List[str]] = Field(
        None, validation_alias=AliasChoices("admin_scopes", "adminScopes")
    )
    allowed_email_domains: Optional[List[str]] = Field(
        None,
        validation_alias=AliasChoices("allowed_email_domains", "allowedEmailDomains"),
    )


class Identifier(BaseModel):
    """Identifier structure for legacy JWT generation"""

    type: Literal["email", "sms"]
    value: str


class Group(BaseModel):
    """Group structure for legacy JWT generation"""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    id: Optional[str] = None  # Legacy field (deprecated, use group_id)
    group_id: Optional[str] = Field(None, alias="groupId")
    name: str


class TokenHeader(BaseModel):
    # Field order is the serialized order
    iat: int
    alg: Literal["HS256"] = "HS256"
    typ: Literal["JWT"] = "JWT"
    kid: str


# --- Invitations ---


class AcceptUser(BaseModel):
    """User accepting an invitation. Requires either email or phone"""

    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None


class InvitationTarget(_ApiModel):
    type: Literal["email", "phone", "share", "internal"]
    value: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class InvitationGroup(_ApiModel):
    """
    Invitation group from API responses
    This matches the MemberGroups table structure from the API
    """

    id: str  # Vortex internal UUID
    account_id: str
    group_id: str  # Customer's group ID
    type: str  # Group type (e.g., "workspace", "team")
    name: str
    created_at: str  # ISO 8601 timestamp


class InvitationAcceptance(_ApiModel):
    id: str
    account_id: str
    project_id: str
    accepted_at: str
    target: Optional[InvitationTarget] = None


class Invitation(_ApiModel):
    id: str
    account_id: str = ""
    click_throughs: int = 0
    configuration_attributes: Optional[Dict[str, Any]] = None
    attributes: Optional[Dict[str, Any]] = None
    created_at: str = ""
    deactivated: bool = False
    delivery_count: int = 0
    delivery_types: List[str] = []
    foreign_creator_id: str = ""
    invitation_type: Optional[Literal["single_use", "multi_use", "autojoin"]] = None
    modified_at: Optional[str] = None
    status: str = ""
    target: List[InvitationTarget] = []
    views: int = 0
    widget_configuration_id: str = ""
    deployment_id: str = ""
    project_id: str = ""
    groups: List[InvitationGroup] = []
    accepts: List[InvitationAcceptance] = []
    scope: Optional[str] = None
    scope_type: Optional[str] = None
    expired: bool = False
    expires: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    pass_through: Optional[str] = None
    source: Optional[str] = None
    subtype: Optional[str] = None  # e.g. "pymk", "find-friends"
    creator_name: Optional[str] = None
    creator_avatar_url: Optional[str] = None


# --- Backend invitation creation ---


class CreateInvitationTarget(_ApiModel):
    """Who is being invited: email address, phone number, or internal user ID"""

    type: Literal["email", "phone", "internal"]
    value: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Inviter(_ApiModel):
    user_id: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    user_avatar_url: Optional[str] = None


class CreateInvitationGroup(_ApiModel):
    type: str  # e.g. "team", "organization"
    group_id: str
    name: str


class UnfurlConfig(_ApiModel):
    """Open Graph metadata for link previews of the invitation link"""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None  # must be HTTPS
    type: Optional[str] = None
    site_name: Optional[str] = None


class CreateInvitationRequest(_ApiModel):
    widget_configuration_id: str
    target: CreateInvitationTarget
    inviter: Inviter
    groups: Optional[List[CreateInvitationGroup]] = None
    source: Optional[str] = None
    subtype: Optional[str] = None
    template_variables: Optional[Dict[str, str]] = None
    metadata: Optional[Dict[str, Any]] = None
    unfurl_config: Optional[UnfurlConfig] = None


class CreateInvitationResponse(_ApiModel):
    id: str
    short_link: str
    status: str
    created_at: str


# --- Autojoin ---


class AutojoinDomain(_ApiModel):
    id: str
    domain: str


class AutojoinDomainsResponse(_ApiModel):
    autojoin_domains: List[AutojoinDomain] = []
    invitation: Optional[Invitation] = None


class ConfigureAutojoinRequest(_ApiModel):
    scope: str
    scope_type: str
    scope_name: Optional[str] = None
    domains: List[str]
    widget_id: str
    metadata: Optional[Dict[str, Any]] = None
