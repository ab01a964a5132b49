"""
Ordering policy for extensions.

PriorityOrdered first, then Ordered, then everything else; ascending order
value within a tier. Sorting is stable, so equal keys keep discovery order.
"""

from __future__ import annotations

import functools
from typing import Any, List, Tuple

from .capabilities import LOWEST_PRECEDENCE, Capability, get_order


class OrderComparator:
    """Default extension comparator."""

    def sort_key(self, obj: Any) -> Tuple[int, int]:
        capability = Capability.of(obj)
        if capability is Capability.UNORDERED:
            return (capability.rank, LOWEST_PRECEDENCE)

        value = get_order(obj)
        return (capability.rank, LOWEST_PRECEDENCE if value is None else value)

    def compare(self, a: Any, b: Any) -> int:
        key_a, key_b = self.sort_key(a), self.sort_key(b)
        return (key_a > key_b) - (key_a < key_b)

    __call__ = compare

    def sort(self, items: List[Any]) -> None:
        items.sort(key=self.sort_key)


OrderComparator.INSTANCE = OrderComparator()


def sort_extensions(extensions: List[Any], factory: Any = None) -> None:
    """
    Sort extensions in place.

    A ``dependency_comparator`` set on the factory replaces the default
    comparator entirely.
    """
    if len(extensions) <= 1:
        return

    comparator = getattr(factory, "dependency_comparator", None)
    if comparator is None:
        OrderComparator.INSTANCE.sort(extensions)
    else:
        extensions.sort(key=functools.cmp_to_key(comparator))
