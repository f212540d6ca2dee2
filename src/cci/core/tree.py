"""
Reconstruction of nested course trees from flat course item rows.
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from cci.core.errors import TreeLoadError
from cci.infrastructure.catalog_store import (
    FOLDER_TYPE,
    CatalogStoreError,
    CatalogStoreInterface,
    CourseItem,
)

logger = logging.getLogger(__name__)


@dataclass
class CourseTreeNode:
    """A course item together with its child nodes."""

    id: int
    course_id: int
    parent_id: Optional[int]
    name: str
    path: str
    type: str
    extension: str
    size: int
    children: list["CourseTreeNode"] = field(default_factory=list)

    @classmethod
    def from_item(cls, item: CourseItem) -> "CourseTreeNode":
        return cls(
            id=item.id,
            course_id=item.course_id,
            parent_id=item.parent_id,
            name=item.name,
            path=item.path,
            type=item.type,
            extension=item.extension,
            size=item.size,
        )

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE

    def to_dict(self) -> dict[str, Any]:
        """Serialize the node and its descendants without recursion."""
        root = self._fields_dict()
        pending = deque([(self, root)])
        while pending:
            node, out = pending.popleft()
            for child in node.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                pending.append((child, child_out))
        return root

    def _fields_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "parent_id": self.parent_id,
            "name": self.name,
            "path": self.path,
            "type": self.type,
            "extension": self.extension,
            "size": self.size,
            "children": [],
        }


class TreeReconstructor:
    """
    Builds the nested item tree of a course from the catalog store.

    All items of the course are read once and grouped into an adjacency
    map keyed by parent id; the tree is then expanded level by level from
    the root items with a work queue. Every call returns a new tree.
    """

    def __init__(self, store: CatalogStoreInterface):
        self._store = store

    def load_tree(self, course_id: int) -> list[CourseTreeNode]:
        """
        Load the forest of root items of a course with their descendants.

        Children appear in creation order (folders of a level before its
        files). Items not reachable from a root item are left out.

        Raises:
            TreeLoadError: If the store query fails
        """
        try:
            items = self._store.list_items(course_id)
        except CatalogStoreError as e:
            raise TreeLoadError(f"Failed to load items of course {course_id}: {e}") from e

        children_by_parent: dict[Optional[int], list[CourseItem]] = defaultdict(list)
        for item in items:
            children_by_parent[item.parent_id].append(item)

        roots = [CourseTreeNode.from_item(item) for item in children_by_parent.get(None, [])]
        pending = deque(roots)
        attached = len(roots)
        while pending:
            node = pending.popleft()
            for child_item in children_by_parent.get(node.id, []):
                child = CourseTreeNode.from_item(child_item)
                node.children.append(child)
                pending.append(child)
                attached += 1

        if attached != len(items):
            logger.warning(
                f"Course {course_id} has {len(items) - attached} item(s) unreachable from a root",
                extra={"course_id": course_id, "unreachable": len(items) - attached},
            )
        return roots


def iter_tree(nodes: list[CourseTreeNode]) -> Iterator[CourseTreeNode]:
    """Yield every node in pre-order using an explicit stack."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def flatten_tree(nodes: list[CourseTreeNode]) -> list[CourseTreeNode]:
    return list(iter_tree(nodes))


def count_nodes(nodes: list[CourseTreeNode]) -> int:
    return sum(1 for _ in iter_tree(nodes))
