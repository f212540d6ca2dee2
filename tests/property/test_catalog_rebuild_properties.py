"""
Property-based tests for catalog rebuilds.

For any generated tree of course directories, a rebuild must produce
items whose parents live in the same course, form an acyclic forest
reachable from the root items, count every folder and file, and yield
the same totals when repeated on the unchanged tree.
"""

import tempfile
from pathlib import Path

from hypothesis import given, settings

from cci.core.tree import TreeReconstructor, count_nodes, iter_tree
from cci.infrastructure import InMemoryCatalogStore, create_catalog_store
from cci.services import ScanOrchestrator
from tests.support.course_tree_utils import build_layout, count_layout, root_layout


def _expected_totals(layout) -> tuple[int, int, int]:
    folders = files = 0
    for course in layout.values():
        course_folders, course_files = count_layout(course)
        folders += course_folders
        files += course_files
    return len(layout), folders, files


@given(layout=root_layout)
@settings(max_examples=40, deadline=None)
def test_rebuild_counts_every_entry(layout):
    """
    *For any* directory tree, the rebuild summary should count one course
    per top-level directory and every folder and file below them.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = build_layout(Path(tmpdir) / "root", layout)
        store = InMemoryCatalogStore()

        result = ScanOrchestrator(store).rescan(root)

        assert (result.courses_added, result.folders_added, result.files_added) == (
            _expected_totals(layout)
        )
        stats = store.get_stats()
        assert stats["total_folders"] == result.folders_added
        assert stats["total_files"] == result.files_added


@given(layout=root_layout)
@settings(max_examples=40, deadline=None)
def test_parents_belong_to_same_course(layout):
    """
    *For any* rebuilt catalog, every item with a parent should share the
    parent's course, and every parent should be a folder item.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = build_layout(Path(tmpdir) / "root", layout)
        store = create_catalog_store(Path(tmpdir) / "catalog.db")
        try:
            ScanOrchestrator(store).rescan(root)

            for course in store.list_courses():
                for item in store.list_items(course.id):
                    if item.parent_id is None:
                        continue
                    parent = store.get_item(item.parent_id)
                    assert parent is not None
                    assert parent.course_id == course.id
                    assert parent.is_folder
                    assert Path(item.path).parent == Path(parent.path)
        finally:
            store.close()


@given(layout=root_layout)
@settings(max_examples=40, deadline=None)
def test_items_form_reachable_forest(layout):
    """
    *For any* rebuilt course, the reconstructed tree should contain every
    item of the course exactly once.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = build_layout(Path(tmpdir) / "root", layout)
        store = InMemoryCatalogStore()
        ScanOrchestrator(store).rescan(root)
        tree = TreeReconstructor(store)

        for course in store.list_courses():
            items = store.list_items(course.id)
            nodes = tree.load_tree(course.id)
            seen = [node.id for node in iter_tree(nodes)]

            assert len(seen) == len(set(seen))
            assert sorted(seen) == [item.id for item in items]


@given(layout=root_layout)
@settings(max_examples=25, deadline=None)
def test_rebuild_is_idempotent(layout):
    """
    *For any* unchanged tree, running the rebuild twice should report the
    same totals and leave a catalog of the same shape.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = build_layout(Path(tmpdir) / "root", layout)
        store = InMemoryCatalogStore()
        orchestrator = ScanOrchestrator(store)
        tree = TreeReconstructor(store)

        def snapshot():
            return {
                course.name: sorted(
                    (node.path, node.type, node.size)
                    for node in iter_tree(tree.load_tree(course.id))
                )
                for course in store.list_courses()
            }

        first = orchestrator.rescan(root)
        first_shape = snapshot()
        second = orchestrator.rescan(root)

        assert first.message == second.message
        assert snapshot() == first_shape
        assert sum(count_nodes(tree.load_tree(c.id)) for c in store.list_courses()) == (
            second.folders_added + second.files_added
        )
