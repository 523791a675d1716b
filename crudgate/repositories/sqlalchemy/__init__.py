"""
SQLAlchemy Repository Implementation Module Initialization
"""

from crudgate.repositories.sqlalchemy.audit_repo import SQLAlchemyAuditLogRepository

__all__ = [
    "SQLAlchemyAuditLogRepository",
]
