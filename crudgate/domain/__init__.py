"""
Domain Model Module Initialization
"""

from crudgate.domain.audit import AuditAction, AuditLogCreate, AuditLogModel
from crudgate.domain.cache import CacheEntry
from crudgate.domain.identity import Credential, Identity, RoleGrant, UserInfo
from crudgate.domain.record import Record
from crudgate.domain.request import Action, CrudParams, CrudRequest
from crudgate.domain.result import CrudResult, ResultKind

__all__ = [
    # Audit
    "AuditAction",
    "AuditLogCreate",
    "AuditLogModel",
    # Cache
    "CacheEntry",
    # Identity
    "Credential",
    "Identity",
    "RoleGrant",
    "UserInfo",
    # Record
    "Record",
    # Request
    "Action",
    "CrudParams",
    "CrudRequest",
    # Result
    "CrudResult",
    "ResultKind",
]
