"""
JSON envelope shared by every control endpoint.

    Success  →  {"success": true,  "data": {...}}
    Error    →  {"success": false, "error": "..."}

Errors are carried inside a 200 response; the HTTP status only reflects
transport-level problems.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Success:
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": dict(self.data)}


@dataclass(frozen=True)
class Error:
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


Envelope = Union[Success, Error]
