"""Data models for instances, listing pages and emitted target groups."""

from __future__ import annotations

from dataclasses import dataclass, field

LIFECYCLE_RUNNING = "RUNNING"


@dataclass(frozen=True)
class Instance:
    """A running compute instance as seen during one refresh cycle."""

    instance_id: str
    display_name: str
    compartment_id: str
    private_ip: str = ""  # filled in by the network resolver; may stay empty
    freeform_tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InstancePage:
    """One page of a ListInstances call.

    ``next_page`` is None when there are no more pages. Any string, including
    the empty string, is a cursor that must be sent with the next request.
    """

    instances: list[Instance] = field(default_factory=list)
    next_page: str | None = None


@dataclass
class TargetGroup:
    """A Prometheus target group: one address plus its labels."""

    source: str
    targets: list[dict[str, str]] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def addresses(self) -> list[str]:
        return [t.get("__address__", "") for t in self.targets]

    def to_file_sd(self) -> dict:
        """Render as one entry of a Prometheus file_sd document."""
        return {"targets": self.addresses, "labels": dict(self.labels)}
