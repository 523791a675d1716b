"""
Service Layer Module Initialization
"""

from crudgate.services.access_resolver import AccessResolver
from crudgate.services.audit_logger import AuditLogger
from crudgate.services.cache_coordinator import CacheCoordinator
from crudgate.services.crud_service import CrudService
from crudgate.services.integrity_checker import IntegrityChecker
from crudgate.services.param_normalizer import Operation, ParamNormalizer
from crudgate.services.permission_engine import AuthTarget, PermissionEngine, ReadScope

__all__ = [
    "AccessResolver",
    "AuditLogger",
    "AuthTarget",
    "CacheCoordinator",
    "CrudService",
    "IntegrityChecker",
    "Operation",
    "ParamNormalizer",
    "PermissionEngine",
    "ReadScope",
]
