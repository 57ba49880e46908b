"""Radix tree keyed by strings, used for request routing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from loopnet.common import common_prefix_length

_MISSING = object()


@dataclass
class RadixTreeNode:
    """One node of a radix tree."""

    key: str
    value: Any = None
    is_empty: bool = False
    child: Optional["RadixTreeNode"] = None
    next: Optional["RadixTreeNode"] = None


class RadixTree:
    """A radix tree mapping string keys to values.

    A stored key ending in WILDCARD matches every key that shares the part
    before the wildcard.
    """

    WILDCARD = "*"

    def __init__(self):
        self._root: RadixTreeNode | None = None

    def root(self) -> RadixTreeNode | None:
        """Return the root node, or None if the tree is empty."""
        return self._root

    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        if self._root is None:
            self._root = RadixTreeNode(key, value)
            return
        node = self._root
        while True:
            common = common_prefix_length(node.key, key)
            if common == 0:
                if node.next is None:
                    node.next = RadixTreeNode(key, value)
                    return
                node = node.next
                continue
            if common < len(node.key):
                split = RadixTreeNode(
                    node.key[common:], node.value, is_empty=node.is_empty, child=node.child
                )
                node.is_empty = True
                node.key = node.key[:common]
                node.child = split
                if len(key) == common:
                    node.is_empty = False
                    node.value = value
                else:
                    split.next = RadixTreeNode(key[common:], value)
                return
            if common == len(key):
                node.is_empty = False
                node.value = value
                return
            key = key[common:]
            if node.child is None:
                node.child = RadixTreeNode(key, value)
                return
            node = node.child

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value matching key, or default if there is none."""
        node = self._root
        while node is not None:
            common = common_prefix_length(node.key, key)
            if common == len(node.key) - 1 and node.key.endswith(self.WILDCARD):
                return node.value
            if common == 0:
                node = node.next
                continue
            if common < len(node.key):
                return default
            if common == len(key):
                return default if node.is_empty else node.value
            key = key[common:]
            node = node.child
        return default

    def __getitem__(self, key: str) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key, _MISSING) is not _MISSING