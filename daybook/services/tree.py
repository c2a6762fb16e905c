#!/usr/bin/env python3
"""
tree.py
-------------------
Read-only nested snapshot of a collection, for display.

Children are listed active first, then inactive. References to deleted
items are skipped, and a collection that reappears on its own path is
shown as a single "(cycle detected)" node instead of recursing forever.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from daybook.core.logging_manager import DaybookLogger
from daybook.database.managers.descendant_manager import DescendantManager
from daybook.database.models import Descendant, Item, ItemState

CYCLE_LABEL = "(cycle detected)"

_STATE_MARKS: Dict[ItemState, str] = {
    ItemState.TODO: "[ ]",
    ItemState.DONE: "[x]",
    ItemState.DROPPED: "[-]",
    ItemState.DEFERRED: "[>]",
}


@dataclass
class TreeNode:
    """One node of an item tree; the root carries no item."""

    label: str
    item: Optional[Item] = None
    children: List["TreeNode"] = field(default_factory=list)

    def render(self, indent: int = 0) -> List[str]:
        """Indented outline lines, one per node below this one."""
        lines = []
        for child in self.children:
            lines.append("  " * indent + child._line())
            lines.extend(child.render(indent + 1))
        return lines

    def _line(self) -> str:
        if self.item is None:
            return self.label
        if self.item.is_section:
            return f"# {self.label} ({self.item.id})"
        mark = _STATE_MARKS.get(ItemState(self.item.state), "[ ]")
        return f"{mark} {self.label} ({self.item.id})"


class ItemTree:
    """Builds TreeNode snapshots from ordered collections."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.descendants = DescendantManager(session, logger)

    def build(self, collection: Optional[Descendant], root_label: str = "root") -> TreeNode:
        """
        Snapshot a collection and everything below it.

        Args:
            collection: Root collection (None gives an empty root)
            root_label: Label of the returned root node
        """
        return TreeNode(label=root_label, children=self._children(collection, set(), set()))

    def _children(
        self,
        collection: Optional[Descendant],
        open_collections: Set[int],
        open_items: Set[int],
    ) -> List[TreeNode]:
        if collection is None:
            return []
        if collection.id in open_collections:
            return [TreeNode(label=CYCLE_LABEL)]

        open_collections.add(collection.id)
        try:
            nodes = []
            items = [
                *self.descendants.active_items(collection),
                *self.descendants.inactive_items(collection),
            ]
            for item in items:
                if item.id in open_items:
                    nodes.append(TreeNode(label=CYCLE_LABEL))
                    continue
                open_items.add(item.id)
                children = self._children(
                    self.descendants.get_for(item), open_collections, open_items
                )
                open_items.discard(item.id)
                nodes.append(TreeNode(label=item.title, item=item, children=children))
            return nodes
        finally:
            open_collections.discard(collection.id)
