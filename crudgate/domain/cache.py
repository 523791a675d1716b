"""
Cache Domain Model

Defines cached query results.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """Cached Query Result"""

    collection: str = Field(..., description="Collection")
    key: str = Field(..., description="Normalized Request Key")
    value: list[dict[str, Any]] = Field(default_factory=list, description="Records")
    expires_at: Optional[datetime] = Field(None, description="Expiration Time")

    model_config = ConfigDict(arbitrary_types_allowed=True)
