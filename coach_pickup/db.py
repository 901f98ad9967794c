"""
SQLite connection helpers and schema setup for the coach pickup tables.
Schema creation is idempotent; nothing here drops or rewrites existing data.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable

from . import config


DB_PATH = config.get_db_path()


def get_db_path() -> Path:
    return Path(DB_PATH)


@contextmanager
def get_connection() -> Generator[sqlite3.Connection, None, None]:
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterable[sqlite3.Cursor]:
    cur = conn.cursor()
    try:
        cur.execute("BEGIN")
        yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def _execute_many(cur: sqlite3.Cursor, statements: Iterable[str]) -> None:
    for stmt in statements:
        if not stmt:
            continue
        cur.execute(stmt)


SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE,
    password_hash TEXT,
    role TEXT NOT NULL DEFAULT 'client' CHECK (role IN ('client', 'coach', 'admin')),
    first_name TEXT,
    last_name TEXT,
    avatar_url TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS clients (
    id TEXT PRIMARY KEY,
    coach_id TEXT NOT NULL REFERENCES profiles(id),
    client_id TEXT NOT NULL REFERENCES profiles(id),
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (coach_id, client_id)
);

CREATE TABLE IF NOT EXISTS workout_templates (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    estimated_duration INTEGER
);

CREATE TABLE IF NOT EXISTS exercises (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS program_schedule (
    id TEXT PRIMARY KEY,
    program_id TEXT NOT NULL,
    week_number INTEGER NOT NULL CHECK (week_number > 0),
    day_of_week INTEGER NOT NULL,
    template_id TEXT NOT NULL,
    UNIQUE (program_id, week_number, day_of_week)
);

CREATE TABLE IF NOT EXISTS program_assignments (
    id TEXT PRIMARY KEY,
    client_id TEXT NOT NULL REFERENCES profiles(id),
    coach_id TEXT REFERENCES profiles(id),
    program_id TEXT NOT NULL,
    name TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS program_progress (
    id TEXT PRIMARY KEY,
    program_assignment_id TEXT NOT NULL UNIQUE REFERENCES program_assignments(id),
    current_week_index INTEGER NOT NULL DEFAULT 0,
    current_day_index INTEGER NOT NULL DEFAULT 0,
    is_completed INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS program_day_completions (
    id TEXT PRIMARY KEY,
    program_assignment_id TEXT NOT NULL REFERENCES program_assignments(id),
    week_index INTEGER NOT NULL,
    day_index INTEGER NOT NULL,
    completed_by TEXT,
    notes TEXT,
    completed_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (program_assignment_id, week_index, day_index)
);

CREATE TABLE IF NOT EXISTS workout_blocks (
    id TEXT PRIMARY KEY,
    template_id TEXT NOT NULL REFERENCES workout_templates(id),
    block_type TEXT NOT NULL,
    block_order INTEGER NOT NULL,
    block_name TEXT,
    block_notes TEXT,
    total_sets INTEGER,
    reps_per_set TEXT,
    rest_seconds INTEGER,
    duration_seconds INTEGER
);

CREATE TABLE IF NOT EXISTS workout_block_exercises (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    exercise_letter TEXT,
    sets INTEGER,
    reps TEXT,
    weight_kg REAL,
    rest_seconds INTEGER,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS workout_time_protocols (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    protocol_type TEXT,
    rounds INTEGER,
    work_seconds INTEGER,
    rest_seconds INTEGER,
    weight_kg REAL
);

CREATE TABLE IF NOT EXISTS workout_drop_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    drop_order INTEGER NOT NULL,
    weight_kg REAL,
    reps TEXT,
    drop_percentage REAL
);

CREATE TABLE IF NOT EXISTS workout_cluster_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    reps_per_cluster INTEGER,
    clusters_per_set INTEGER,
    intra_cluster_rest INTEGER,
    inter_set_rest INTEGER,
    weight_kg REAL
);

CREATE TABLE IF NOT EXISTS workout_rest_pause_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    weight_kg REAL,
    rest_pause_duration INTEGER,
    max_rest_pauses INTEGER
);

CREATE TABLE IF NOT EXISTS workout_pyramid_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    pyramid_order INTEGER NOT NULL,
    weight_kg REAL,
    reps TEXT,
    rest_seconds INTEGER
);

CREATE TABLE IF NOT EXISTS workout_ladder_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    ladder_order INTEGER NOT NULL,
    weight_kg REAL,
    reps INTEGER,
    rest_seconds INTEGER
);

CREATE TABLE IF NOT EXISTS workout_hr_sets (
    id TEXT PRIMARY KEY,
    block_id TEXT NOT NULL REFERENCES workout_blocks(id),
    exercise_id TEXT NOT NULL,
    exercise_order INTEGER NOT NULL,
    hr_zone INTEGER,
    hr_percentage_min INTEGER,
    hr_percentage_max INTEGER,
    is_intervals INTEGER NOT NULL DEFAULT 0,
    duration_seconds INTEGER,
    work_duration_seconds INTEGER,
    rest_duration_seconds INTEGER,
    target_rounds INTEGER
);
"""


CHILD_TABLES = (
    "workout_block_exercises",
    "workout_time_protocols",
    "workout_drop_sets",
    "workout_cluster_sets",
    "workout_rest_pause_sets",
    "workout_pyramid_sets",
    "workout_ladder_sets",
    "workout_hr_sets",
)


def init_database() -> None:
    """
    Create all tables (if missing) and the lookup indexes used by the pickup queries.
    """
    get_db_path().parent.mkdir(parents=True, exist_ok=True)
    with get_connection() as conn:
        conn.executescript(SCHEMA)
        conn.commit()
    ensure_schema_integrity()


def ensure_schema_integrity() -> None:
    with get_connection() as conn, transaction(conn) as cur:
        _execute_many(cur, [
            "CREATE INDEX IF NOT EXISTS clients_coach_idx ON clients(coach_id)",
            "CREATE INDEX IF NOT EXISTS program_assignments_client_idx ON program_assignments(client_id, status)",
            "CREATE INDEX IF NOT EXISTS program_schedule_program_idx ON program_schedule(program_id)",
            "CREATE INDEX IF NOT EXISTS workout_blocks_template_idx ON workout_blocks(template_id, block_order)",
        ])
        _execute_many(cur, [
            f"CREATE INDEX IF NOT EXISTS {table}_block_idx ON {table}(block_id, exercise_order)"
            for table in CHILD_TABLES
        ])


if __name__ == "__main__":
    init_database()
    print(f"Initialized coach pickup schema at {DB_PATH}")
