"""Deterministic in-memory OCIProvider for tests and offline runs."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import ProviderError
from .models import LIFECYCLE_RUNNING, Instance, InstancePage


@dataclass
class StaticInstance:
    """An instance record as the fake OCI account stores it."""

    instance_id: str
    display_name: str
    compartment_id: str
    lifecycle_state: str = LIFECYCLE_RUNNING
    freeform_tags: dict[str, str] = field(default_factory=dict)
    # Private IPs of the attached VNICs in attachment order; None = VNIC without one
    vnic_ips: list[str | None] = field(default_factory=list)


class StaticClient:
    """Serves compartments and instances from memory, mimicking OCI list semantics.

    ``page_size`` splits instance listings into pages linked by opaque cursors.
    ``fail_on`` names methods that raise ProviderError, to simulate outages.
    """

    def __init__(
        self,
        compartments: dict[str, str] | None = None,
        children: dict[str, list[str]] | None = None,
        instances: list[StaticInstance] | None = None,
        page_size: int = 0,
    ):
        self.compartments = dict(compartments or {})
        self.children = {k: list(v) for k, v in (children or {}).items()}
        self.instances = list(instances or [])
        self.page_size = page_size
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []

    def _check(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.fail_on:
            raise ProviderError(f"simulated failure in {method}")

    def list_child_compartment_ids(self, parent_id: str) -> list[str]:
        self._check("list_child_compartment_ids", parent_id)
        return list(self.children.get(parent_id, []))

    def get_compartment_name(self, compartment_id: str) -> str:
        self._check("get_compartment_name", compartment_id)
        try:
            return self.compartments[compartment_id]
        except KeyError:
            raise ProviderError(f"compartment {compartment_id} not found", status_code=404) from None

    def list_instances(
        self,
        compartment_id: str,
        display_name: str | None = None,
        page: str | None = None,
    ) -> InstancePage:
        self._check("list_instances", compartment_id, display_name, page)
        matching = [
            Instance(
                instance_id=i.instance_id,
                display_name=i.display_name,
                compartment_id=i.compartment_id,
                freeform_tags=dict(i.freeform_tags),
            )
            for i in self.instances
            if i.compartment_id == compartment_id
            and i.lifecycle_state == LIFECYCLE_RUNNING
            and (display_name is None or i.display_name == display_name)
        ]
        if self.page_size <= 0:
            return InstancePage(instances=matching)

        start = 0
        if page is not None:
            offset = page.removeprefix("page-")
            if offset == page or not offset.isdecimal():
                raise ProviderError(f"unknown page cursor {page!r}")
            start = int(offset)
        end = start + self.page_size
        next_page = f"page-{end}" if end < len(matching) else None
        return InstancePage(instances=matching[start:end], next_page=next_page)

    def list_vnic_ids(self, instance_id: str, compartment_id: str) -> list[str]:
        self._check("list_vnic_ids", instance_id, compartment_id)
        for inst in self.instances:
            if inst.instance_id == instance_id:
                return [f"{instance_id}/vnic/{n}" for n in range(len(inst.vnic_ips))]
        return []

    def get_vnic_private_ip(self, vnic_id: str) -> str | None:
        self._check("get_vnic_private_ip", vnic_id)
        instance_id, _, index = vnic_id.rpartition("/vnic/")
        for inst in self.instances:
            if inst.instance_id == instance_id:
                return inst.vnic_ips[int(index)]
        raise ProviderError(f"vnic {vnic_id} not found", status_code=404)
