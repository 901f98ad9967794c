"""
Repository layer for the coach pickup tables. CRUD only, no business logic.
Classes: ProfileRepo, ClientRepo, AssignmentRepo, ProgressRepo, ScheduleRepo,
TemplateRepo, ExerciseRepo, BlockRepo
"""

import uuid
from typing import Optional, List, Dict, Any, Iterable

from . import db


def _new_id() -> str:
    return str(uuid.uuid4())


def _placeholders(values: List[Any]) -> str:
    return ", ".join("?" for _ in values)


class ProfileRepo:
    @staticmethod
    def create(
        email: Optional[str],
        password_hash: Optional[str],
        role: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> str:
        profile_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT INTO profiles(id, email, password_hash, role, first_name, last_name, avatar_url)
                VALUES(?, ?, ?, ?, ?, ?, ?)
                """,
                (profile_id, email, password_hash, role, first_name, last_name, avatar_url),
            )
        return profile_id

    @staticmethod
    def get(profile_id: str) -> Optional[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM profiles WHERE id = ?", (profile_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    @staticmethod
    def get_by_email(email: str) -> Optional[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM profiles WHERE email = ?", (email,))
            row = cur.fetchone()
            return dict(row) if row else None


class ClientRepo:
    @staticmethod
    def link(coach_id: str, client_id: str, status: str = "active") -> str:
        relation_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                "INSERT INTO clients(id, coach_id, client_id, status) VALUES(?, ?, ?, ?)",
                (relation_id, coach_id, client_id, status),
            )
        return relation_id

    @staticmethod
    def get_active_relation(coach_id: str, client_id: str) -> Optional[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM clients WHERE coach_id = ? AND client_id = ? AND status = 'active'",
                (coach_id, client_id),
            )
            row = cur.fetchone()
            return dict(row) if row else None


class AssignmentRepo:
    @staticmethod
    def create(
        client_id: str,
        program_id: str,
        name: Optional[str],
        coach_id: Optional[str] = None,
        status: str = "active",
        created_at: Optional[str] = None,
    ) -> str:
        assignment_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT INTO program_assignments(id, client_id, coach_id, program_id, name, status, created_at)
                VALUES(?, ?, ?, ?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))
                """,
                (assignment_id, client_id, coach_id, program_id, name, status, created_at),
            )
        return assignment_id

    @staticmethod
    def list_active_for_client(client_id: str) -> List[Dict[str, Any]]:
        """Most recently created first."""
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT * FROM program_assignments
                WHERE client_id = ? AND status = 'active'
                ORDER BY created_at DESC, rowid DESC
                """,
                (client_id,),
            )
            return [dict(r) for r in cur.fetchall()]


class ProgressRepo:
    @staticmethod
    def get(program_assignment_id: str) -> Optional[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM program_progress WHERE program_assignment_id = ?",
                (program_assignment_id,),
            )
            row = cur.fetchone()
            return dict(row) if row else None

    @staticmethod
    def create(program_assignment_id: str, week_index: int = 0, day_index: int = 0, is_completed: bool = False) -> str:
        progress_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT INTO program_progress(id, program_assignment_id, current_week_index, current_day_index, is_completed)
                VALUES(?, ?, ?, ?, ?)
                """,
                (progress_id, program_assignment_id, week_index, day_index, 1 if is_completed else 0),
            )
        return progress_id

    @staticmethod
    def get_or_create(program_assignment_id: str) -> Dict[str, Any]:
        # The unique program_assignment_id makes a racing duplicate insert a no-op.
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT OR IGNORE INTO program_progress(id, program_assignment_id, current_week_index, current_day_index, is_completed)
                VALUES(?, ?, 0, 0, 0)
                """,
                (_new_id(), program_assignment_id),
            )
            cur.execute(
                "SELECT * FROM program_progress WHERE program_assignment_id = ?",
                (program_assignment_id,),
            )
            return dict(cur.fetchone())

    @staticmethod
    def complete_day(
        progress: Dict[str, Any],
        next_week_index: int,
        next_day_index: int,
        is_completed: bool,
        completed_by: Optional[str],
        notes: Optional[str],
    ) -> bool:
        """
        Record the completion of the cursor's current day and move the cursor.
        Returns False when that day was already recorded or the cursor moved underneath us.
        """
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT OR IGNORE INTO program_day_completions(id, program_assignment_id, week_index, day_index, completed_by, notes)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                (
                    _new_id(),
                    progress["program_assignment_id"],
                    progress["current_week_index"],
                    progress["current_day_index"],
                    completed_by,
                    notes,
                ),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE program_progress
                SET current_week_index = ?, current_day_index = ?, is_completed = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND current_week_index = ? AND current_day_index = ? AND is_completed = 0
                """,
                (
                    next_week_index,
                    next_day_index,
                    1 if is_completed else 0,
                    progress["id"],
                    progress["current_week_index"],
                    progress["current_day_index"],
                ),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            return True

    @staticmethod
    def count_completions(program_assignment_id: str) -> int:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COUNT(*) FROM program_day_completions WHERE program_assignment_id = ?",
                (program_assignment_id,),
            )
            return int(cur.fetchone()[0])


class ScheduleRepo:
    @staticmethod
    def add(program_id: str, week_number: int, day_of_week: int, template_id: str) -> str:
        row_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                """
                INSERT INTO program_schedule(id, program_id, week_number, day_of_week, template_id)
                VALUES(?, ?, ?, ?, ?)
                """,
                (row_id, program_id, week_number, day_of_week, template_id),
            )
        return row_id

    @staticmethod
    def list_for_program(program_id: str) -> List[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, program_id, week_number, day_of_week, template_id FROM program_schedule WHERE program_id = ?",
                (program_id,),
            )
            return [dict(r) for r in cur.fetchall()]


class TemplateRepo:
    @staticmethod
    def create(name: str, description: Optional[str] = None, estimated_duration: Optional[int] = None) -> str:
        template_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                "INSERT INTO workout_templates(id, name, description, estimated_duration) VALUES(?, ?, ?, ?)",
                (template_id, name, description, estimated_duration),
            )
        return template_id

    @staticmethod
    def get(template_id: str) -> Optional[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM workout_templates WHERE id = ?", (template_id,))
            row = cur.fetchone()
            return dict(row) if row else None


class ExerciseRepo:
    @staticmethod
    def create(name: str) -> str:
        exercise_id = _new_id()
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute("INSERT INTO exercises(id, name) VALUES(?, ?)", (exercise_id, name))
        return exercise_id

    @staticmethod
    def names_for(exercise_ids: Iterable[str]) -> Dict[str, str]:
        ids = sorted(set(exercise_ids))
        if not ids:
            return {}
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT id, name FROM exercises WHERE id IN ({_placeholders(ids)})", ids)
            return {row["id"]: row["name"] for row in cur.fetchall()}


class BlockRepo:
    @staticmethod
    def create(template_id: str, block_type: str, block_order: int, **params: Any) -> str:
        block_id = _new_id()
        columns = ["id", "template_id", "block_type", "block_order"] + list(params)
        values = [block_id, template_id, block_type, block_order] + list(params.values())
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                f"INSERT INTO workout_blocks({', '.join(columns)}) VALUES({_placeholders(values)})",
                values,
            )
        return block_id

    @staticmethod
    def list_for_template(template_id: str) -> List[Dict[str, Any]]:
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM workout_blocks WHERE template_id = ? ORDER BY block_order",
                (template_id,),
            )
            return [dict(r) for r in cur.fetchall()]

    @staticmethod
    def add_child(table: str, block_id: str, exercise_id: str, exercise_order: int, **fields: Any) -> str:
        if table not in db.CHILD_TABLES:
            raise ValueError(f"Unknown block child table: {table}")
        row_id = _new_id()
        columns = ["id", "block_id", "exercise_id", "exercise_order"] + list(fields)
        values = [row_id, block_id, exercise_id, exercise_order] + list(fields.values())
        with db.get_connection() as conn, db.transaction(conn) as cur:
            cur.execute(
                f"INSERT INTO {table}({', '.join(columns)}) VALUES({_placeholders(values)})",
                values,
            )
        return row_id

    @staticmethod
    def list_children(table: str, block_ids: List[str]) -> List[Dict[str, Any]]:
        if table not in db.CHILD_TABLES:
            raise ValueError(f"Unknown block child table: {table}")
        if not block_ids:
            return []
        with db.get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT * FROM {table} WHERE block_id IN ({_placeholders(block_ids)}) ORDER BY exercise_order",
                block_ids,
            )
            return [dict(r) for r in cur.fetchall()]
