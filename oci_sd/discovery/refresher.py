"""One full discovery cycle: compartments -> instances -> private IPs -> target groups."""

from __future__ import annotations

import dataclasses
import logging
import time

from ..exceptions import ProviderError, RefreshError
from ..metrics import MetricsSink
from . import OCIProvider
from .compartments import resolve_compartments
from .instances import DEFAULT_MAX_PAGES, list_instances
from .labels import build_target_group
from .models import TargetGroup
from .network import resolve_private_ip

logger = logging.getLogger(__name__)


class Refresher:
    """Builds a complete snapshot of target groups from OCI.

    Compartments and instances are processed one at a time in provider order,
    which fixes the order of the returned groups.
    """

    def __init__(
        self,
        provider: OCIProvider,
        metrics: MetricsSink,
        *,
        compartment_id: str = "",
        root_compartment_id: str = "",
        display_name: str = "",
        port: int = 80,
        max_pages: int = DEFAULT_MAX_PAGES,
    ):
        self._provider = provider
        self._metrics = metrics
        self._compartment_id = compartment_id
        self._root_compartment_id = root_compartment_id
        self._display_name = display_name or None
        self._port = port
        self._max_pages = max_pages

    def refresh(self) -> list[TargetGroup]:
        """Run one cycle, recording its duration and counting it if it fails.

        Raises RefreshError on the first failing step; its ``groups`` attribute
        holds the groups built before the failure.
        """
        start = time.monotonic()
        try:
            return self._refresh()
        except Exception:
            self._metrics.inc_refresh_failures()
            raise
        finally:
            self._metrics.observe_refresh_duration(time.monotonic() - start)

    def _refresh(self) -> list[TargetGroup]:
        groups: list[TargetGroup] = []

        try:
            compartment_ids = resolve_compartments(
                self._provider, self._compartment_id, self._root_compartment_id,
            )
        except ProviderError as exc:
            raise RefreshError(
                f"error retrieving compartment ids from OCI: {exc}", groups, step="compartment_ids",
            ) from exc

        for compartment_id in compartment_ids:
            try:
                compartment_name = self._provider.get_compartment_name(compartment_id)
            except ProviderError as exc:
                raise RefreshError(
                    f"error retrieving compartment name for {compartment_id} from OCI: {exc}",
                    groups, step="compartment_name",
                ) from exc

            try:
                instances = list_instances(
                    self._provider, compartment_id, self._display_name, max_pages=self._max_pages,
                )
            except ProviderError as exc:
                raise RefreshError(
                    f"error retrieving targets in {compartment_id} from OCI: {exc}",
                    groups, step="instances",
                ) from exc

            for instance in instances:
                try:
                    private_ip = resolve_private_ip(
                        self._provider, instance.instance_id, compartment_id,
                    )
                except ProviderError as exc:
                    raise RefreshError(
                        f"error resolving private ip of {instance.instance_id} from OCI: {exc}",
                        groups, step="private_ip",
                    ) from exc
                if not private_ip:
                    logger.warning(
                        "Instance %s has no private IP, emitting target with empty host",
                        instance.instance_id,
                        extra={"compartment_id": compartment_id},
                    )
                instance = dataclasses.replace(instance, private_ip=private_ip)
                groups.append(build_target_group(instance, compartment_name, self._port))

        logger.debug(
            "Refreshed %d compartment(s)", len(compartment_ids),
            extra={"total_targets": len(groups)},
        )
        return groups
