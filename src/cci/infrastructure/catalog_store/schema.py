"""
Catalog store schema definitions.
"""

import sqlite3

SCHEMA = """
-- One row per top-level scanned directory
CREATE TABLE IF NOT EXISTS courses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

-- Folders and files, linked to their filesystem parent
CREATE TABLE IF NOT EXISTS course_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    course_id INTEGER NOT NULL
        REFERENCES courses(id) ON DELETE CASCADE,
    -- NO ACTION is checked at statement end: a course cascade removes a whole
    -- subtree, a direct delete of a parent that still has children is rejected
    parent_id INTEGER
        REFERENCES course_items(id) ON DELETE NO ACTION,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    type TEXT NOT NULL,
    extension TEXT NOT NULL DEFAULT '',
    size INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_items_course_parent
    ON course_items(course_id, parent_id);
CREATE INDEX IF NOT EXISTS idx_items_parent
    ON course_items(parent_id);
CREATE INDEX IF NOT EXISTS idx_items_path
    ON course_items(path);
"""


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Initialize the database schema."""
    conn.executescript(SCHEMA)
    conn.commit()

