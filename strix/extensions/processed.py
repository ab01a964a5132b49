"""
Names of extensions already resolved during one bootstrap.
"""

from typing import Dict, Iterator, List


class ProcessedSet:
    """
    Insertion-ordered set of extension names.

    A name is added at most once; orchestrators check membership right
    before each instantiation.
    """

    __slots__ = ("_names",)

    def __init__(self):
        self._names: Dict[str, None] = {}

    def add(self, name: str) -> bool:
        """
        Record a name.

        Returns:
            True if newly added, False if already present
        """
        if name in self._names:
            return False
        self._names[name] = None
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def names(self) -> List[str]:
        return list(self._names)

    def __repr__(self) -> str:
        return f"ProcessedSet({self.names()!r})"
