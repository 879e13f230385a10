"""OCI discovery package: provider Protocol and public exports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import InstancePage


@runtime_checkable
class OCIProvider(Protocol):
    """Capabilities the refresh engine needs from an OCI client.

    Every method raises ProviderError when the underlying call fails.
    """

    def list_child_compartment_ids(self, parent_id: str) -> list[str]:
        """Return the ids of the compartments directly beneath ``parent_id``."""
        ...

    def get_compartment_name(self, compartment_id: str) -> str:
        ...

    def list_instances(
        self,
        compartment_id: str,
        display_name: str | None = None,
        page: str | None = None,
    ) -> InstancePage:
        """Return one page of RUNNING instances, optionally filtered by exact display name."""
        ...

    def list_vnic_ids(self, instance_id: str, compartment_id: str) -> list[str]:
        """Return the VNIC ids attached to an instance, in attachment order."""
        ...

    def get_vnic_private_ip(self, vnic_id: str) -> str | None:
        ...
