"""
Document Store Backed Repository Implementation Module Initialization
"""

from crudgate.repositories.storage.audit_repo import DocumentAuditLogRepository

__all__ = [
    "DocumentAuditLogRepository",
]
