"""Turn a resolved instance into a Prometheus target group."""

from __future__ import annotations

import re

from .models import Instance, TargetGroup

ADDRESS_LABEL = "__address__"
META_LABEL_PREFIX = "__meta_"

OCI_LABEL = META_LABEL_PREFIX + "oci_"
OCI_INSTANCE_ID = OCI_LABEL + "instance_id"
OCI_DISPLAY_NAME = OCI_LABEL + "display_name"
OCI_COMPARTMENT_ID = OCI_LABEL + "compartment_id"
OCI_COMPARTMENT_NAME = OCI_LABEL + "compartment_name"
OCI_TAG_LABEL = OCI_LABEL + "tag_"

_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_label_name(name: str) -> str:
    """Make an arbitrary tag key usable as a label name suffix.

    >>> sanitize_label_name("My-Tag!")
    'my_tag_'
    >>> sanitize_label_name("1st")
    '_1st'
    """
    name = _INVALID_LABEL_CHARS.sub("_", name.lower())
    if not name or not (name[0].isalpha() or name[0] == "_"):
        name = "_" + name
    return name


def group_source(instance_id: str) -> str:
    return f"OCI_{instance_id}_"


def build_target_group(instance: Instance, compartment_name: str, port: int) -> TargetGroup:
    """Build the target group for one instance. Pure; never raises."""
    addr = f"{instance.private_ip}:{port}"
    labels = {
        OCI_INSTANCE_ID: instance.instance_id,
        OCI_DISPLAY_NAME: instance.display_name,
        OCI_COMPARTMENT_ID: instance.compartment_id,
        OCI_COMPARTMENT_NAME: compartment_name,
        ADDRESS_LABEL: addr,
    }
    # Tag keys may collide with each other after sanitizing; the last one wins.
    for key, value in instance.freeform_tags.items():
        labels[OCI_TAG_LABEL + sanitize_label_name(key)] = value

    return TargetGroup(
        source=group_source(instance.instance_id),
        targets=[{ADDRESS_LABEL: addr}],
        labels=labels,
    )
