"""OCI SDK client for compartments, running instances and their VNICs."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

import oci

from ..config import OCIConfig
from ..exceptions import ProviderError
from .models import LIFECYCLE_RUNNING, Instance, InstancePage

logger = logging.getLogger(__name__)

_OCI_ERRORS = (
    oci.exceptions.ServiceError,
    oci.exceptions.ClientError,
    oci.exceptions.RequestException,
)


class OCIClient:
    """OCIProvider backed by the identity, compute and virtual network SDK clients."""

    def __init__(self, oci_config: OCIConfig):
        self._config = oci_config
        timeout = oci_config.request_timeout_seconds

        client_kwargs: dict[str, Any] = {"timeout": (min(timeout, 10.0), timeout)}
        try:
            if oci_config.use_instance_principals:
                signer = oci.auth.signers.InstancePrincipalsSecurityTokenSigner()
                sdk_config: dict[str, Any] = {"region": signer.region}
                client_kwargs["signer"] = signer
            else:
                sdk_config = oci.config.from_file(
                    file_location=os.path.expanduser(oci_config.config_file),
                    profile_name=oci_config.profile,
                )
                oci.config.validate_config(sdk_config)
        except Exception as exc:
            # The instance principal signer raises plain requests/HTTP errors
            # when the metadata service is unreachable.
            mode = "instance principals" if oci_config.use_instance_principals else "config file"
            raise ProviderError(f"error connecting to api using {mode}: {exc}") from exc

        self._identity = oci.identity.IdentityClient(sdk_config, **client_kwargs)
        self._compute = oci.core.ComputeClient(sdk_config, **client_kwargs)
        self._network = oci.core.VirtualNetworkClient(sdk_config, **client_kwargs)

    # ── Compartments ────────────────────────────────────────────────

    def list_child_compartment_ids(self, parent_id: str) -> list[str]:
        response = self._call(
            "listing compartments",
            oci.pagination.list_call_get_all_results,
            self._identity.list_compartments,
            compartment_id=parent_id,
            lifecycle_state="ACTIVE",
        )
        return [c.id for c in response.data]

    def get_compartment_name(self, compartment_id: str) -> str:
        response = self._call(
            "getting compartment",
            self._identity.get_compartment,
            compartment_id,
        )
        return response.data.name

    # ── Instances ───────────────────────────────────────────────────

    def list_instances(
        self,
        compartment_id: str,
        display_name: str | None = None,
        page: str | None = None,
    ) -> InstancePage:
        kwargs: dict[str, Any] = {
            "compartment_id": compartment_id,
            "lifecycle_state": LIFECYCLE_RUNNING,
        }
        if display_name is not None:
            kwargs["display_name"] = display_name
        if page is not None:
            kwargs["page"] = page

        response = self._call("listing instances", self._compute.list_instances, **kwargs)
        instances = [
            Instance(
                instance_id=item.id,
                display_name=item.display_name,
                compartment_id=item.compartment_id,
                freeform_tags=dict(item.freeform_tags or {}),
            )
            for item in response.data
        ]
        return InstancePage(instances=instances, next_page=response.next_page)

    # ── Network ─────────────────────────────────────────────────────

    def list_vnic_ids(self, instance_id: str, compartment_id: str) -> list[str]:
        response = self._call(
            "retrieving vnic attachments",
            oci.pagination.list_call_get_all_results,
            self._compute.list_vnic_attachments,
            compartment_id=compartment_id,
            instance_id=instance_id,
        )
        return [a.vnic_id for a in response.data if a.vnic_id]

    def get_vnic_private_ip(self, vnic_id: str) -> str | None:
        response = self._call("retrieving vnic", self._network.get_vnic, vnic_id)
        return response.data.private_ip

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _call(action: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke an SDK call, converting SDK failures into ProviderError."""
        try:
            return func(*args, **kwargs)
        except _OCI_ERRORS as exc:
            status = getattr(exc, "status", None)
            logger.debug("OCI call failed while %s", action, exc_info=True)
            raise ProviderError(f"error {action} from OCI: {exc}", status_code=status) from exc
