"""Three-way name comparison between persisted and desired entities."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class NameComparison:
    """Partition of entity names into kept, to-delete and to-add sets."""

    kept: frozenset[str]
    to_delete: frozenset[str]
    to_add: frozenset[str]


def three_way_compare(
    existing: Iterable[str],
    desired: Iterable[str],
) -> NameComparison:
    """Compare persisted names against desired names.

    Duplicates in either input collapse to one logical name.

    Args:
        existing: Names currently persisted
        desired: Names in the desired state

    Returns:
        NameComparison with ``kept = existing & desired``,
        ``to_delete = existing - desired`` and ``to_add = desired - existing``
    """
    existing_set = frozenset(existing)
    desired_set = frozenset(desired)
    return NameComparison(
        kept=existing_set & desired_set,
        to_delete=existing_set - desired_set,
        to_add=desired_set - existing_set,
    )
