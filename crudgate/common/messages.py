"""
Message Catalog

Maps result kinds/codes to display templates. Templates use str.format
placeholders filled from the details mapping; unknown placeholders render empty.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_TEMPLATES: dict[str, str] = {
    "success": "Request completed successfully",
    "from_cache": "Record(s) returned from cache",
    "created": "{count} record(s) created successfully",
    "updated": "{count} record(s) updated successfully",
    "deleted": "{count} record(s) deleted successfully",
    "loaded": "{count} record(s) loaded successfully",
    "stream": "Record stream opened",
    "not_found": "{message}",
    "validation_error": "{message}",
    "unauthorized": "{message}",
    "token_expired": "{message}",
    "record_exists": "{message}",
    "has_sub_items": "{message}",
    "write_failure": "{message}",
    "read_failure": "{message}",
}


class _Defaulting(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass(frozen=True)
class DisplayMessage:
    """Rendered message for a result kind"""

    kind: str
    text: str


class MessageCatalog:
    """
    Message Catalog

    Renders display messages; `overrides` replace individual default templates.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self.templates = dict(DEFAULT_TEMPLATES)
        if overrides:
            self.templates.update(overrides)

    def format_message(self, kind: str, details: Optional[Mapping[str, Any]] = None) -> DisplayMessage:
        """
        Render the template registered for `kind`

        Args:
            kind: Result kind or error code
            details: Placeholder values

        Returns:
            DisplayMessage: Rendered message; falls back to details["message"] or the kind itself
        """
        values = _Defaulting(details or {})
        template = self.templates.get(kind)
        if template is None:
            return DisplayMessage(kind=kind, text=str(values.get("message") or kind))
        return DisplayMessage(kind=kind, text=template.format_map(values))
