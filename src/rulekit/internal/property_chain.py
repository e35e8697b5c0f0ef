"""Property paths such as ``address.city`` or ``orders[2].lines[0].sku``."""

from collections import deque
from typing import Iterable


class PropertyChain:
    """Ordered sequence of member-name segments.

    Segments never contain the separator; adding a dotted name splits it into
    several segments. Indexers are attached to the last segment.
    """

    def __init__(self, parent: "PropertyChain | None" = None,
                 member_names: Iterable[str] | None = None, separator: str = "."):
        if parent is not None:
            self._segments: deque[str] = deque(parent._segments)
            self.separator = parent.separator
        else:
            self._segments = deque()
            self.separator = separator
        for name in member_names or ():
            self.add(name)

    @classmethod
    def from_path(cls, path: str, separator: str = ".") -> "PropertyChain":
        """Build a chain from a dotted path string."""
        return cls(member_names=[path] if path else None, separator=separator)

    def add(self, property_name: str) -> None:
        if not property_name:
            return
        self._segments.extend(part for part in property_name.split(self.separator) if part)

    def add_indexer(self, indexer: object, surround_with_brackets: bool = True) -> None:
        if not self._segments:
            raise ValueError("Could not apply an indexer because the property chain is empty.")
        last = self._segments.pop()
        self._segments.append(f"{last}[{indexer}]" if surround_with_brackets else f"{last}{indexer}")

    def prepend(self, parent: "PropertyChain") -> None:
        """Place ``parent``'s segments in front of this chain."""
        self._segments.extendleft(reversed(parent._segments))

    def copy(self) -> "PropertyChain":
        return PropertyChain(self)

    def build_property_name(self, property_name: str | None) -> str:
        """Return the fully qualified path for ``property_name`` under this chain."""
        if not property_name:
            return str(self)
        chain = PropertyChain(self)
        chain.add(property_name)
        return str(chain)

    def is_child_chain_of(self, parent_chain: "PropertyChain") -> bool:
        return str(self).startswith(str(parent_chain))

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __str__(self) -> str:
        return self.separator.join(self._segments)

    def __repr__(self) -> str:
        return f"PropertyChain({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PropertyChain):
            return self._segments == other._segments
        return NotImplemented
