"""
Identity Domain Model

Defines the resolved caller identity, its role grants and the credential it is resolved from.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RoleGrant(BaseModel):
    """
    Role Grant

    Capability tuple binding a group to a collection or record id.
    """

    # Collection service id or record id
    service: Any = Field(..., description="Service Reference")
    group: Any = Field(None, description="Group")
    category: Optional[str] = Field(None, description="Service Category")
    can_read: bool = Field(False, validation_alias=AliasChoices("can_read", "canRead"))
    can_create: bool = Field(False, validation_alias=AliasChoices("can_create", "canCreate"))
    can_update: bool = Field(False, validation_alias=AliasChoices("can_update", "canUpdate"))
    can_delete: bool = Field(False, validation_alias=AliasChoices("can_delete", "canDelete"))

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

    def allows(self, action: str) -> bool:
        """Return the capability bit for an action (read/create/update/delete)"""
        return bool(getattr(self, f"can_{action}", False))

    def matches(self, *refs: Any) -> bool:
        """Return True if the grant's service equals any of the references"""
        service = str(self.service)
        return any(ref is not None and str(ref) == service for ref in refs)


class Identity(BaseModel):
    """
    Resolved Identity

    Either active and identified, or the request is rejected.
    """

    active: bool = Field(..., description="User Active")
    user_id: Any = Field(..., description="User ID")
    is_admin: bool = Field(False, description="Administrator")
    group: Any = Field(None, description="Default Group")
    groups: tuple[Any, ...] = Field(default_factory=tuple, description="Groups")
    role_grants: tuple[RoleGrant, ...] = Field(default_factory=tuple, description="Role Grants")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def scope_key(self) -> str:
        """Stable marker of the caller, used to separate cached results per caller"""
        return f"user:{self.user_id}"


class UserInfo(BaseModel):
    """Already authenticated user descriptor (server-side sessions)"""

    user_id: Any = Field(..., validation_alias=AliasChoices("user_id", "userId"))
    is_active: bool = Field(False, validation_alias=AliasChoices("is_active", "isActive"))

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True, populate_by_name=True)


class Credential(BaseModel):
    """Bearer token or user descriptor presented with a request"""

    token: Optional[str] = None
    user_info: Optional[UserInfo] = None

    @property
    def is_empty(self) -> bool:
        return not self.token and self.user_info is None
