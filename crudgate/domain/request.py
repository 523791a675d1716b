"""
Request Domain Model

Defines the raw CRUD parameters accepted from callers and the normalized request
every pipeline stage works with.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from crudgate.domain.identity import Credential, UserInfo


class Action(str, Enum):
    """Permission-checked actions"""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CrudParams(BaseModel):
    """
    CRUD Request Parameters

    Every field also accepts the camelCase parameter name used by existing callers
    (coll, actionParams, queryParams, existParams, projectParams, sortParams, docId,
    userInfo, parentColl, childColl, recursiveDelete).
    """

    # Target collection
    collection: str = Field("", validation_alias=AliasChoices("collection", "coll"))
    # Records to create/update
    items: list[dict[str, Any]] = Field(
        default_factory=list, validation_alias=AliasChoices("items", "actionParams")
    )
    # Query filter (update/delete by filter, query)
    filter: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("filter", "queryParams")
    )
    # Existence probes, checked for duplicates before a write
    probes: list[dict[str, Any]] = Field(
        default_factory=list, validation_alias=AliasChoices("probes", "existParams")
    )
    projection: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("projection", "projectParams")
    )
    sort: Union[dict[str, int], list[tuple[str, int]]] = Field(
        default_factory=dict, validation_alias=AliasChoices("sort", "sortParams")
    )
    # Targeted record ids
    doc_ids: list[Any] = Field(default_factory=list, validation_alias=AliasChoices("doc_ids", "docId"))
    token: Optional[str] = None
    user_info: Optional[UserInfo] = Field(None, validation_alias=AliasChoices("user_info", "userInfo"))
    skip: int = 0
    # 0 means "up to the maximum query limit"
    limit: int = 0
    parent_collections: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("parent_collections", "parentColl")
    )
    child_collections: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("child_collections", "childColl")
    )
    recursive_delete: bool = Field(
        False, validation_alias=AliasChoices("recursive_delete", "recursiveDelete")
    )

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    @field_validator("doc_ids", mode="before")
    @classmethod
    def _wrap_single_id(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        if isinstance(v, (list, tuple)):
            return list(v)
        return [v]

    @field_validator("user_info", mode="before")
    @classmethod
    def _empty_user_info(cls, v: Any) -> Any:
        # Callers send "" or {} when no session exists
        if not v:
            return None
        return v

    @field_validator("skip", "limit", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def credential(self) -> Credential:
        return Credential(token=self.token or None, user_info=self.user_info)


@dataclass(frozen=True)
class CrudRequest:
    """
    Normalized CRUD Request

    Produced by the ParamNormalizer: ids are ObjectIds, `_id` is stripped from the
    filter, sort is an ordered list of (field, direction) pairs and pagination is clamped.
    """

    collection: str
    items: tuple[dict[str, Any], ...] = ()
    filter: dict[str, Any] = field(default_factory=dict)
    probes: tuple[dict[str, Any], ...] = ()
    projection: dict[str, Any] = field(default_factory=dict)
    sort: tuple[tuple[str, int], ...] = ()
    doc_ids: tuple[Any, ...] = ()
    skip: int = 0
    limit: int = 10000
    parent_collections: tuple[str, ...] = ()
    child_collections: tuple[str, ...] = ()
    recursive_delete: bool = False
    credential: Credential = field(default_factory=Credential)

    def cache_material(self) -> dict[str, Any]:
        """Fields that identify the result set of a query"""
        return {
            "collection": self.collection,
            "filter": self.filter,
            "doc_ids": list(self.doc_ids),
            "projection": self.projection,
            "sort": [list(pair) for pair in self.sort],
            "skip": self.skip,
            "limit": self.limit,
        }
