"""Resolve the configured scope into the list of compartments to scan."""

from __future__ import annotations

import logging

from . import OCIProvider

logger = logging.getLogger(__name__)


def resolve_compartments(
    provider: OCIProvider,
    compartment_id: str = "",
    root_compartment_id: str = "",
) -> list[str]:
    """Return the compartment ids to scan, in provider order.

    A single ``compartment_id`` is returned as-is without calling OCI. A
    ``root_compartment_id`` expands to its direct children only; grandchildren
    are not discovered.
    """
    if root_compartment_id:
        ids = provider.list_child_compartment_ids(root_compartment_id)
        logger.debug(
            "Root compartment %s has %d child compartments", root_compartment_id, len(ids),
        )
        return list(ids)
    return [compartment_id]
