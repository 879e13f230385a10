"""Paginated enumeration of running instances in one compartment."""

from __future__ import annotations

import logging

from ..exceptions import ProviderError
from . import OCIProvider
from .models import Instance

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000


def list_instances(
    provider: OCIProvider,
    compartment_id: str,
    display_name: str | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Instance]:
    """Collect every RUNNING instance in a compartment, following pagination to the end.

    The cursor returned with each page is sent with the next request. A cursor
    seen before, or more than ``max_pages`` pages, raises ProviderError instead
    of looping forever.
    """
    instances: list[Instance] = []
    seen_cursors: set[str] = set()
    page: str | None = None
    pages = 0

    while True:
        response = provider.list_instances(compartment_id, display_name, page=page)
        pages += 1
        instances.extend(response.instances)

        if response.next_page is None:
            break
        if response.next_page in seen_cursors:
            raise ProviderError(
                f"pagination cursor {response.next_page!r} repeated while listing "
                f"instances in {compartment_id}"
            )
        if pages >= max_pages:
            raise ProviderError(
                f"more than {max_pages} pages of instances in {compartment_id}"
            )
        seen_cursors.add(response.next_page)
        page = response.next_page

    logger.debug(
        "Listed %d running instances over %d page(s)", len(instances), pages,
        extra={"compartment_id": compartment_id, "page": pages},
    )
    return instances
