"""Tests for the OCI SDK-backed provider."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import oci
import pytest

from oci_sd.config import OCIConfig
from oci_sd.discovery import OCIProvider
from oci_sd.discovery.oci_client import OCIClient
from oci_sd.exceptions import ProviderError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _response(data, next_page=None):
    return SimpleNamespace(data=data, next_page=next_page)


def _sdk_instance(instance_id="ocid1.instance.oc1..a", tags=None):
    return SimpleNamespace(
        id=instance_id,
        display_name=f"vm-{instance_id[-1]}",
        compartment_id="ocid1.compartment.oc1..c",
        freeform_tags=tags,
    )


def _service_error(status=404):
    return oci.exceptions.ServiceError(status, "NotAuthorizedOrNotFound", {}, "not found")


def _make_client(config: OCIConfig | None = None) -> tuple[OCIClient, dict[str, MagicMock]]:
    """Build an OCIClient with every SDK client replaced by a mock."""
    sdk = {"identity": MagicMock(), "compute": MagicMock(), "network": MagicMock()}
    signer = MagicMock(region="eu-frankfurt-1")
    with patch("oci.auth.signers.InstancePrincipalsSecurityTokenSigner", return_value=signer), \
            patch("oci.identity.IdentityClient", return_value=sdk["identity"]), \
            patch("oci.core.ComputeClient", return_value=sdk["compute"]), \
            patch("oci.core.VirtualNetworkClient", return_value=sdk["network"]):
        client = OCIClient(config or OCIConfig(compartment_id="c1"))
    return client, sdk


@pytest.fixture(autouse=True)
def _direct_pagination():
    """Make list_call_get_all_results a single pass-through call."""
    with patch("oci.pagination.list_call_get_all_results", side_effect=lambda fn, *a, **kw: fn(*a, **kw)):
        yield


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestOCIClientSetup:
    def test_satisfies_provider_protocol(self):
        client, _ = _make_client()
        assert isinstance(client, OCIProvider)

    def test_instance_principals_signer_and_timeout(self):
        signer = MagicMock(region="eu-frankfurt-1")
        with patch("oci.auth.signers.InstancePrincipalsSecurityTokenSigner", return_value=signer), \
                patch("oci.identity.IdentityClient") as identity, \
                patch("oci.core.ComputeClient"), \
                patch("oci.core.VirtualNetworkClient"):
            OCIClient(OCIConfig(compartment_id="c1", request_timeout_seconds=30))

        args, kwargs = identity.call_args
        assert args[0] == {"region": "eu-frankfurt-1"}
        assert kwargs["signer"] is signer
        assert kwargs["timeout"] == (10.0, 30)

    def test_config_file_auth(self):
        sdk_config = {"region": "us-ashburn-1"}
        with patch("oci.config.from_file", return_value=sdk_config) as from_file, \
                patch("oci.config.validate_config"), \
                patch("oci.identity.IdentityClient") as identity, \
                patch("oci.core.ComputeClient"), \
                patch("oci.core.VirtualNetworkClient"):
            OCIClient(OCIConfig(
                compartment_id="c1", use_instance_principals=False,
                config_file="/etc/oci/config", profile="PROD",
            ))

        from_file.assert_called_once_with(file_location="/etc/oci/config", profile_name="PROD")
        args, kwargs = identity.call_args
        assert args[0] is sdk_config
        assert "signer" not in kwargs

    def test_auth_failure_raises_provider_error(self):
        with patch(
            "oci.auth.signers.InstancePrincipalsSecurityTokenSigner",
            side_effect=RuntimeError("metadata service unreachable"),
        ):
            with pytest.raises(ProviderError, match="instance principals"):
                OCIClient(OCIConfig(compartment_id="c1"))


class TestOCIClientCompartments:
    def test_list_child_compartment_ids(self):
        client, sdk = _make_client()
        sdk["identity"].list_compartments.return_value = _response(
            [SimpleNamespace(id="c-a"), SimpleNamespace(id="c-b")],
        )
        assert client.list_child_compartment_ids("root") == ["c-a", "c-b"]
        sdk["identity"].list_compartments.assert_called_once_with(
            compartment_id="root", lifecycle_state="ACTIVE",
        )

    def test_get_compartment_name(self):
        client, sdk = _make_client()
        sdk["identity"].get_compartment.return_value = _response(SimpleNamespace(name="prod"))
        assert client.get_compartment_name("c1") == "prod"

    def test_service_error_wrapped(self):
        client, sdk = _make_client()
        sdk["identity"].get_compartment.side_effect = _service_error(404)
        with pytest.raises(ProviderError, match="getting compartment") as excinfo:
            client.get_compartment_name("c1")
        assert excinfo.value.status_code == 404
        assert isinstance(excinfo.value.__cause__, oci.exceptions.ServiceError)


class TestOCIClientInstances:
    def test_list_instances_running_only(self):
        client, sdk = _make_client()
        sdk["compute"].list_instances.return_value = _response([_sdk_instance(tags={"env": "prod"})])

        page = client.list_instances("c1")

        sdk["compute"].list_instances.assert_called_once_with(
            compartment_id="c1", lifecycle_state="RUNNING",
        )
        assert page.next_page is None
        inst = page.instances[0]
        assert inst.instance_id == "ocid1.instance.oc1..a"
        assert inst.compartment_id == "ocid1.compartment.oc1..c"
        assert inst.freeform_tags == {"env": "prod"}
        assert inst.private_ip == ""

    def test_display_name_and_page_forwarded(self):
        client, sdk = _make_client()
        sdk["compute"].list_instances.return_value = _response([], next_page="cursor-2")

        page = client.list_instances("c1", display_name="web", page="cursor-1")

        sdk["compute"].list_instances.assert_called_once_with(
            compartment_id="c1", lifecycle_state="RUNNING", display_name="web", page="cursor-1",
        )
        assert page.next_page == "cursor-2"

    def test_missing_tags_become_empty(self):
        client, sdk = _make_client()
        sdk["compute"].list_instances.return_value = _response([_sdk_instance(tags=None)])
        assert client.list_instances("c1").instances[0].freeform_tags == {}

    def test_request_exception_wrapped(self):
        client, sdk = _make_client()
        sdk["compute"].list_instances.side_effect = oci.exceptions.RequestException("timed out")
        with pytest.raises(ProviderError, match="listing instances"):
            client.list_instances("c1")


class TestOCIClientNetwork:
    def test_list_vnic_ids(self):
        client, sdk = _make_client()
        sdk["compute"].list_vnic_attachments.return_value = _response([
            SimpleNamespace(vnic_id="v1"),
            SimpleNamespace(vnic_id=None),  # attachment still in progress
            SimpleNamespace(vnic_id="v2"),
        ])
        assert client.list_vnic_ids("i1", "c1") == ["v1", "v2"]
        sdk["compute"].list_vnic_attachments.assert_called_once_with(
            compartment_id="c1", instance_id="i1",
        )

    def test_get_vnic_private_ip(self):
        client, sdk = _make_client()
        sdk["network"].get_vnic.return_value = _response(SimpleNamespace(private_ip="10.0.0.7"))
        assert client.get_vnic_private_ip("v1") == "10.0.0.7"
        sdk["network"].get_vnic.assert_called_once_with("v1")

    def test_vnic_error_wrapped(self):
        client, sdk = _make_client()
        sdk["network"].get_vnic.side_effect = _service_error(500)
        with pytest.raises(ProviderError, match="retrieving vnic"):
            client.get_vnic_private_ip("v1")
