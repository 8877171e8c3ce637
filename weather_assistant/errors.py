from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    """An error that maps directly to an HTTP response `{"error": ..., "details": ...}`."""

    def __init__(self, status_code: int, error: str, *, details: Optional[Any] = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class UpstreamError(ApiError):
    """A non-2xx reply from the weather or geocoding provider, carrying the upstream status."""

    def __init__(self, upstream: str, status_code: int, error: str, *, details: Optional[Any] = None) -> None:
        super().__init__(status_code, error, details=details)
        self.upstream = upstream
