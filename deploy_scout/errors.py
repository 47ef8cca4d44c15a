"""deploy_scout.errors: exceptions surfaced by an analysis to its caller.

Each class carries the HTTP status a transport wrapper should answer with.
Per-page failures (fetch errors, malformed HTML) never leave the core.
"""
from __future__ import annotations

from typing import Optional

__all__ = (
    "DeployScoutError",
    "InvalidUrlError",
    "NoPagesReachableError",
    "AnalysisTimeoutError",
)


class DeployScoutError(Exception):
    """Base class of every error raised by an analysis."""

    http_status: int = 500


class InvalidUrlError(DeployScoutError):
    """The start or installer URL failed the safety validation."""

    http_status = 400

    def __init__(self, url: str, reason: str = "only public http(s) URLs are allowed") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid or unsafe URL {url!r}: {reason}")


class NoPagesReachableError(DeployScoutError):
    """The start page could not be fetched even once."""

    http_status = 502

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Could not fetch {url!r}; no documentation pages were reachable")


class AnalysisTimeoutError(DeployScoutError):
    """The caller-side timeout elapsed before the analysis finished."""

    http_status = 504

    def __init__(self, timeout: Optional[float]) -> None:
        self.timeout = timeout
        super().__init__(f"Analysis did not finish within {timeout} seconds")
