"""Private IP resolution through an instance's VNIC attachments."""

from __future__ import annotations

from . import OCIProvider


def resolve_private_ip(provider: OCIProvider, instance_id: str, compartment_id: str) -> str:
    """Return the private IP of the last attached VNIC that has one.

    Each attachment with a private IP overwrites the previous result, so for
    multi-VNIC instances the last attachment wins, not the primary VNIC.
    Returns "" when no attachment carries a private IP.
    """
    private_ip = ""
    for vnic_id in provider.list_vnic_ids(instance_id, compartment_id):
        ip = provider.get_vnic_private_ip(vnic_id)
        if ip:
            private_ip = ip
    return private_ip
