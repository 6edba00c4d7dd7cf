"""Service error body models."""

import json
from dataclasses import dataclass
from typing import Any


@dataclass
class ErrorBody:
    """Error payload returned by cloud management and data-plane services.

    Two shapes are recognized:

    - ARM envelope: ``{"error": {"code": ..., "message": ..., "details": [...]}}``
    - Flat: ``{"code": ..., "message": ...}``
    """

    code: str | None = None  # Provider-specific error code, e.g. "ResourceNotFound"
    message: str | None = None  # Human-readable explanation
    target: str | None = None  # Offending property or resource, if reported
    details: list[dict[str, Any]] | None = None

    @classmethod
    def parse(cls, body: bytes) -> "ErrorBody | None":
        """Parse an error payload from raw response bytes.

        Args:
            body: Raw response body

        Returns:
            ErrorBody object or None if the body is empty, not JSON, or
            carries neither a code nor a message. Non-object entries of
            ``details`` are dropped.
        """
        if not body:
            return None

        try:
            data = json.loads(body)
        except (ValueError, RecursionError):
            return None

        if not isinstance(data, dict):
            return None

        # ARM wraps the payload in an "error" member
        inner = data.get("error")
        if isinstance(inner, dict):
            data = inner

        code = data.get("code")
        message = data.get("message")
        if code is None and message is None:
            return None

        details = data.get("details")
        if isinstance(details, list):
            details = [detail for detail in details if isinstance(detail, dict)]
        return cls(
            code=str(code) if code is not None else None,
            message=str(message) if message is not None else None,
            target=data.get("target"),
            details=details if isinstance(details, list) and details else None,
        )

    def to_exception_message(self, status_code: int) -> str:
        """Convert the error body to an exception message."""
        lines = []

        if self.code and self.message:
            lines.append(f"HTTP {status_code} ({self.code}): {self.message}")
        elif self.code:
            lines.append(f"HTTP {status_code} ({self.code})")
        else:
            lines.append(f"HTTP {status_code}: {self.message}")

        if self.target:
            lines.append(f"Target: {self.target}")

        if self.details:
            lines.append("Details:")
            for detail in self.details:
                lines.append(f"  - {detail.get('code')}: {detail.get('message')}")

        return "\n".join(lines)
