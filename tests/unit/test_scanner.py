"""
Tests for DirectoryScanner.
"""

import os
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

from cci.core.errors import ScanCancelledError
from cci.core.scanner import DirectoryScanner, ScanContext
from cci.infrastructure import (
    CatalogStoreError,
    InMemoryCatalogStore,
    NewCourseItem,
    create_catalog_store,
)
from tests.support.course_tree_utils import build_layout

CREATED_AT = datetime(2024, 5, 1, tzinfo=timezone.utc)


class FailingListScanner(DirectoryScanner):
    """Scanner that cannot enumerate directories with the given names."""

    def __init__(self, store, unreadable: set[str], **kwargs):
        super().__init__(store, **kwargs)
        self._unreadable = unreadable

    def _list_entries(self, directory: Path):
        if directory.name in self._unreadable:
            raise PermissionError(13, "Permission denied", str(directory))
        return super()._list_entries(directory)


@pytest.fixture
def store():
    return InMemoryCatalogStore()


def _scan_course(store, scanner, course_dir: Path) -> tuple[int, ScanContext]:
    course_id = store.create_course(course_dir.name, str(course_dir), CREATED_AT)
    return course_id, scanner.scan(course_dir, course_id)


class TestDirectoryScanner:
    def test_course_with_folder_and_files(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "CourseA",
            {"Videos": {"lec1.mp4": b"video"}, "notes.txt": b"notes"},
        )

        course_id, context = _scan_course(store, DirectoryScanner(store), course_dir)

        assert context.folders_added == 1
        assert context.files_added == 2
        assert context.skipped_directories == []

        roots = store.query_items(course_id)
        videos = next(i for i in roots if i.name == "Videos")
        notes = next(i for i in roots if i.name == "notes.txt")
        [lec1] = store.query_items(course_id, videos.id)

        assert videos.is_folder and videos.parent_id is None
        assert videos.path == str(course_dir / "Videos")
        assert notes.type == "document" and notes.parent_id is None
        assert notes.size == len(b"notes")
        assert lec1.name == "lec1.mp4"
        assert lec1.type == "video"
        assert lec1.extension == ".mp4"
        assert lec1.parent_id == videos.id

    def test_depth_first_folders_before_files(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "Course",
            {
                "b_section": {"two.pdf": b"2"},
                "a_section": {"inner": {"deep.mp3": b"3"}, "one.pdf": b"1"},
                "readme.txt": b"r",
            },
        )

        course_id, _ = _scan_course(store, DirectoryScanner(store), course_dir)

        created = [i.name for i in store.list_items(course_id)]
        assert created == [
            "a_section",
            "inner",
            "deep.mp3",
            "one.pdf",
            "b_section",
            "two.pdf",
            "readme.txt",
        ]

    def test_one_batch_per_directory_with_files(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "Course",
            {"Videos": {"a.mp4": b"", "b.mp4": b""}, "Empty": {}, "x.txt": b"", "y.txt": b""},
        )

        _scan_course(store, DirectoryScanner(store), course_dir)

        assert store.write_calls["create_course_item"] == 2
        assert store.write_calls["create_course_items"] == 2

    def test_extension_is_lowercase_and_unknown_is_file(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"LEC.MP4": b"", "data.bin": b"", "README": b""})

        course_id, _ = _scan_course(store, DirectoryScanner(store), course_dir)

        items = {i.name: i for i in store.list_items(course_id)}
        assert items["LEC.MP4"].extension == ".mp4"
        assert items["LEC.MP4"].type == "video"
        assert items["data.bin"].type == "file"
        assert items["README"].extension == ""
        assert items["README"].type == "file"

    def test_empty_course(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Empty", {})

        course_id, context = _scan_course(store, DirectoryScanner(store), course_dir)

        assert context.items_added == 0
        assert store.list_items(course_id) == []

    def test_context_accumulates_across_scans(self, tmp_path, store):
        scanner = DirectoryScanner(store)
        context = ScanContext()
        for name in ("A", "B"):
            course_dir = build_layout(tmp_path / name, {"f": {"x.mp4": b""}})
            course_id = store.create_course(name, str(course_dir), CREATED_AT)
            scanner.scan(course_dir, course_id, context=context)

        assert context.folders_added == 2
        assert context.files_added == 2

    def test_scan_under_existing_parent(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"Part1": {"a.mp4": b""}})
        course_id = store.create_course("Course", str(course_dir), CREATED_AT)
        parent_id = store.create_course_item(
            NewCourseItem(
                course_id=course_id,
                parent_id=None,
                name="Imported",
                path=str(tmp_path / "Imported"),
                type="folder",
            )
        )

        DirectoryScanner(store).scan(course_dir, course_id, parent_id=parent_id)

        [part1] = store.query_items(course_id, parent_id)
        assert part1.name == "Part1"

    def test_ignore_patterns(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "Course",
            {".git": {"HEAD": b""}, "Thumbs.db": b"", "lec.mp4": b"", "tmp.part": b""},
        )
        scanner = DirectoryScanner(store, ignore_patterns=[".git", "Thumbs.db", "*.part"])

        course_id, context = _scan_course(store, scanner, course_dir)

        assert [i.name for i in store.list_items(course_id)] == ["lec.mp4"]
        assert context.folders_added == 0

    def test_list_subdirectories(self, tmp_path, store):
        root = build_layout(tmp_path / "root", {"b": {}, "a": {}, "file.txt": b"", "skip": {}})
        scanner = DirectoryScanner(store, ignore_patterns=["skip"])

        assert [p.name for p in scanner.list_subdirectories(root)] == ["a", "b"]

    def test_list_subdirectories_missing_directory(self, tmp_path, store):
        with pytest.raises(OSError):
            DirectoryScanner(store).list_subdirectories(tmp_path / "missing")


class TestUnreadableDirectories:
    def test_unreadable_subdirectory_is_skipped(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "Course",
            {
                "Locked": {"secret.mp4": b"", "Inner": {"x.pdf": b""}},
                "Open": {"lec.mp4": b""},
                "notes.txt": b"",
            },
        )
        scanner = FailingListScanner(store, unreadable={"Locked"})

        course_id, context = _scan_course(store, scanner, course_dir)

        names = [i.name for i in store.list_items(course_id)]
        assert "secret.mp4" not in names and "Inner" not in names
        assert {"Locked", "Open", "lec.mp4", "notes.txt"} <= set(names)

        locked = store.find_item_by_path(str(course_dir / "Locked"))
        assert locked.is_folder
        assert store.query_items(course_id, locked.id) == []

        assert [s.path for s in context.skipped_directories] == [str(course_dir / "Locked")]
        assert "permission denied" in context.skipped_directories[0].reason

    def test_unreadable_course_directory(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"a.mp4": b""})
        scanner = FailingListScanner(store, unreadable={"Course"})

        course_id, context = _scan_course(store, scanner, course_dir)

        assert store.list_items(course_id) == []
        assert len(context.skipped_directories) == 1

    def test_unreadable_directory_logs_warning(self, tmp_path, store, caplog):
        course_dir = build_layout(tmp_path / "Course", {"Locked": {}})
        scanner = FailingListScanner(store, unreadable={"Locked"})

        with caplog.at_level("WARNING", logger="cci.core.scanner.scanner"):
            _scan_course(store, scanner, course_dir)

        assert any("skipping subtree" in r.getMessage() for r in caplog.records)

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permission bits are not enforced for root",
    )
    def test_permission_bits(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"Locked": {"a.mp4": b""}, "b.mp4": b""})
        locked = course_dir / "Locked"
        locked.chmod(0)
        try:
            course_id, context = _scan_course(store, DirectoryScanner(store), course_dir)
        finally:
            locked.chmod(0o755)

        assert context.files_added == 1
        assert [s.path for s in context.skipped_directories] == [str(locked)]

    def test_store_errors_propagate(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"a.mp4": b""})

        # No course row: the store rejects the items
        with pytest.raises(CatalogStoreError):
            DirectoryScanner(store).scan(course_dir, course_id=999)


class TestSymlinks:
    @pytest.fixture
    def linked_course(self, tmp_path):
        course_dir = build_layout(tmp_path / "Course", {"Real": {"a.mp4": b""}})
        outside = build_layout(tmp_path / "Outside", {"b.mp4": b""})
        try:
            (course_dir / "Linked").symlink_to(outside, target_is_directory=True)
            (course_dir / "Loop").symlink_to(course_dir, target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        return course_dir

    def test_symlinks_skipped_by_default(self, linked_course, store):
        course_id, _ = _scan_course(store, DirectoryScanner(store), linked_course)

        names = [i.name for i in store.list_items(course_id)]
        assert names == ["Real", "a.mp4"]

    def test_follow_symlinks_stops_at_cycles(self, linked_course, store):
        scanner = DirectoryScanner(store, follow_symlinks=True)

        course_id, context = _scan_course(store, scanner, linked_course)

        items = {i.name: i for i in store.list_items(course_id)}
        assert "b.mp4" in items
        assert items["b.mp4"].parent_id == items["Linked"].id
        # The loop is recorded as a folder without descending into it again
        assert items["Loop"].is_folder
        assert store.query_items(course_id, items["Loop"].id) == []
        assert context.files_added == 2


class TestCancellation:
    def test_cancel_before_scan(self, tmp_path, store):
        course_dir = build_layout(tmp_path / "Course", {"a.mp4": b""})
        course_id = store.create_course("Course", str(course_dir), CREATED_AT)
        event = threading.Event()
        event.set()

        with pytest.raises(ScanCancelledError):
            DirectoryScanner(store).scan(course_dir, course_id, cancel_event=event)

        assert store.list_items(course_id) == []

    def test_cancel_during_scan(self, tmp_path, store):
        course_dir = build_layout(
            tmp_path / "Course", {"A": {"x.mp4": b""}, "B": {"y.mp4": b""}}
        )
        course_id = store.create_course("Course", str(course_dir), CREATED_AT)
        event = threading.Event()

        def cancel_after_first_folder(item):
            item_id = create_item(item)
            event.set()
            return item_id

        create_item = store.create_course_item
        store.create_course_item = cancel_after_first_folder

        with pytest.raises(ScanCancelledError):
            DirectoryScanner(store).scan(course_dir, course_id, cancel_event=event)

        assert [i.name for i in store.list_items(course_id)] == ["A"]


class TestSQLiteIntegration:
    def test_scan_into_sqlite(self, tmp_path):
        course_dir = build_layout(
            tmp_path / "CourseA", {"Videos": {"lec1.mp4": b"123"}, "notes.txt": b"n"}
        )
        store = create_catalog_store(tmp_path / "catalog.db")
        try:
            course_id, context = _scan_course(store, DirectoryScanner(store), course_dir)

            assert (context.folders_added, context.files_added) == (1, 2)
            stats = store.get_stats()
            assert stats["total_files"] == 2
            assert stats["total_bytes"] == 4
            assert stats["types"] == {"video": 1, "document": 1}
        finally:
            store.close()
