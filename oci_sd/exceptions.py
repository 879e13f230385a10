"""Custom exception hierarchy for the OCI discovery adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .discovery.models import TargetGroup


class DiscoveryError(Exception):
    """Base exception for all adapter errors."""


class ConfigError(DiscoveryError):
    """Invalid or missing configuration."""


class ProviderError(DiscoveryError):
    """Error communicating with the OCI APIs."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RefreshError(DiscoveryError):
    """A refresh cycle failed.

    ``step`` names the pipeline stage that failed; ``groups`` holds whatever
    was built before the failure.
    """

    def __init__(self, message: str, groups: list[TargetGroup] | None = None, step: str = ""):
        super().__init__(message)
        self.step = step
        self.groups = list(groups or [])
