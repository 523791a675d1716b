"""
Record Domain Model

A record is a plain mapping of field name to value stored in one collection.
"""

from typing import Any

Record = dict[str, Any]

# System fields
ID_FIELD = "_id"
CREATED_BY = "createdBy"
CREATED_AT = "createdAt"
UPDATED_BY = "updatedBy"
UPDATED_AT = "updatedAt"
PARENT_ID = "parentId"

# Admin flag carried by user records: user["profile"]["isAdmin"]
PROFILE_FIELD = "profile"
ADMIN_FLAG = "isAdmin"


def get_path(record: Record, path: str, default: Any = None) -> Any:
    """Read a dotted field path from a record"""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def is_admin_record(user: Record) -> bool:
    """Return the admin flag of a user record"""
    profile = user.get(PROFILE_FIELD)
    if isinstance(profile, dict):
        return bool(profile.get(ADMIN_FLAG, False))
    return False
