"""
Tests for course tree reconstruction.
"""

import sys
from datetime import datetime, timezone

import pytest

from cci.core.errors import TreeLoadError
from cci.core.tree import TreeReconstructor, count_nodes, flatten_tree, iter_tree
from cci.infrastructure import CatalogStoreError, InMemoryCatalogStore, NewCourseItem
from cci.services import ScanOrchestrator
from tests.support.course_tree_utils import build_layout

CREATED_AT = datetime(2024, 5, 1, tzinfo=timezone.utc)


class BrokenStore(InMemoryCatalogStore):
    def list_items(self, course_id):
        raise CatalogStoreError("no such table: course_items")


@pytest.fixture
def store():
    return InMemoryCatalogStore()


def _add(store, course_id, name, parent_id=None, type="folder"):
    return store.create_course_item(
        NewCourseItem(
            course_id=course_id,
            parent_id=parent_id,
            name=name,
            path=f"/c/{name}",
            type=type,
        )
    )


class TestTreeReconstructor:
    def test_nested_tree(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        videos = _add(store, course_id, "Videos")
        part = _add(store, course_id, "Part1", videos)
        _add(store, course_id, "lec1.mp4", part, type="video")
        _add(store, course_id, "notes.txt", type="document")

        roots = TreeReconstructor(store).load_tree(course_id)

        assert [n.name for n in roots] == ["Videos", "notes.txt"]
        [part_node] = roots[0].children
        assert part_node.name == "Part1"
        assert [c.name for c in part_node.children] == ["lec1.mp4"]
        assert roots[1].children == []

    def test_children_in_creation_order(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        folder = _add(store, course_id, "F")
        for name in ("z.mp4", "a.mp4", "m.mp4"):
            _add(store, course_id, name, folder, type="video")

        [node] = TreeReconstructor(store).load_tree(course_id)

        assert [c.name for c in node.children] == ["z.mp4", "a.mp4", "m.mp4"]

    def test_only_requested_course(self, store):
        first = store.create_course("A", "/a", CREATED_AT)
        second = store.create_course("B", "/b", CREATED_AT)
        _add(store, first, "InA")
        _add(store, second, "InB")

        roots = TreeReconstructor(store).load_tree(second)

        assert [n.name for n in roots] == ["InB"]

    def test_empty_and_unknown_course(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        tree = TreeReconstructor(store)

        assert tree.load_tree(course_id) == []
        assert tree.load_tree(999) == []

    def test_fresh_tree_per_call(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        _add(store, course_id, "F")
        tree = TreeReconstructor(store)

        first = tree.load_tree(course_id)
        first[0].children.append(first[0])

        assert tree.load_tree(course_id)[0].children == []

    def test_store_failure_raises_tree_load_error(self):
        with pytest.raises(TreeLoadError):
            TreeReconstructor(BrokenStore()).load_tree(1)

    def test_flatten_count_matches_scan_totals(self, store, tmp_path):
        root = build_layout(
            tmp_path / "root",
            {
                "Course": {
                    "S1": {"a.mp4": b"", "b.mp4": b"", "Extra": {"c.pdf": b""}},
                    "S2": {},
                    "readme.txt": b"",
                }
            },
        )
        result = ScanOrchestrator(store).rescan(root)
        [course] = store.list_courses()

        nodes = TreeReconstructor(store).load_tree(course.id)

        assert count_nodes(nodes) == result.folders_added + result.files_added
        assert len(flatten_tree(nodes)) == 7

    def test_deep_nesting(self, store, tmp_path):
        depth = 300
        deepest = tmp_path / "root" / "Course"
        deepest.mkdir(parents=True)
        for _ in range(depth):
            deepest = deepest / "d"
            deepest.mkdir()
        (deepest / "leaf.mp4").write_bytes(b"")

        # Nesting is deeper than the recursion limit allows
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(250)
        try:
            result = ScanOrchestrator(store).rescan(tmp_path / "root")
            [course] = store.list_courses()
            nodes = TreeReconstructor(store).load_tree(course.id)
            data = nodes[0].to_dict()
            flat = flatten_tree(nodes)
        finally:
            sys.setrecursionlimit(limit)

        assert result.folders_added == depth
        assert count_nodes(nodes) == depth + 1
        assert flat[-1].name == "leaf.mp4"
        assert data["name"] == "d"


class TestTreeHelpers:
    def test_iter_tree_is_pre_order(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        a = _add(store, course_id, "A")
        _add(store, course_id, "B")
        _add(store, course_id, "A1", a)
        _add(store, course_id, "A2", a)

        nodes = TreeReconstructor(store).load_tree(course_id)

        assert [n.name for n in iter_tree(nodes)] == ["A", "A1", "A2", "B"]

    def test_to_dict(self, store):
        course_id = store.create_course("C", "/c", CREATED_AT)
        folder = _add(store, course_id, "F")
        _add(store, course_id, "x.mp4", folder, type="video")

        [node] = TreeReconstructor(store).load_tree(course_id)
        data = node.to_dict()

        assert data["name"] == "F"
        assert data["type"] == "folder"
        assert data["parent_id"] is None
        assert data["children"][0]["name"] == "x.mp4"
        assert data["children"][0]["parent_id"] == folder
        assert data["children"][0]["children"] == []
