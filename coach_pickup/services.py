"""
Business logic for coach pickup: auth checks, next-workout lookup and day completion.
"""

import logging
import sqlite3
from typing import Optional, Dict, Any, List

from . import schedule
from .blocks import load_template_blocks
from .repo import ProfileRepo, ClientRepo, AssignmentRepo, ProgressRepo, ScheduleRepo, TemplateRepo
from .schemas import NextWorkoutResponse
from .security import verify_password, verify_token, sign_token


logger = logging.getLogger(__name__)

COACH_ROLES = ("coach", "admin")


class ApiError(Exception):
    """An error rendered as a JSON body `{error, message, ...extra}` with the given status."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None, **extra: Any) -> None:
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message or error
        self.extra = extra

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, **self.extra}


# Auth
def login(email: str, password: str) -> Dict[str, Any]:
    profile = ProfileRepo.get_by_email(email)
    if not profile or not verify_password(password, profile["password_hash"]):
        raise ApiError(401, "Unauthorized", "Invalid credentials")
    return {"token": sign_token(profile["id"]), "profile": profile_summary(profile)}


def profile_summary(profile: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": profile["id"],
        "email": profile["email"],
        "role": profile["role"],
        "name": display_name(profile),
        "avatar_url": profile["avatar_url"],
    }


def display_name(profile: Optional[Dict[str, Any]]) -> str:
    if not profile:
        return "Client"
    name = " ".join(part for part in (profile.get("first_name"), profile.get("last_name")) if part)
    return name or profile.get("email") or "Client"


def validate_api_auth(token: Optional[str]) -> Dict[str, Any]:
    """Profile of the authenticated caller; 401 when the token or profile is missing."""
    user_id = verify_token(token) if token else None
    if not user_id:
        raise ApiError(401, "Unauthorized", "Not authenticated")
    profile = ProfileRepo.get(user_id)
    if not profile:
        raise ApiError(401, "Unauthorized", "Profile not found")
    return profile


def require_coach_of(profile: Dict[str, Any], client_id: str) -> None:
    if profile["role"] not in COACH_ROLES:
        raise ApiError(403, "Forbidden", "Only coaches can access this endpoint")
    if not ClientRepo.get_active_relation(profile["id"], client_id):
        raise ApiError(403, "Forbidden", "Client not found or does not belong to this coach")


# Program position
def _active_assignments(client_id: str) -> List[Dict[str, Any]]:
    try:
        return AssignmentRepo.list_active_for_client(client_id)
    except sqlite3.Error as exc:
        logger.error("Failed to fetch program assignments for client %s: %s", client_id, exc)
        raise ApiError(500, "Failed to fetch program assignments", str(exc))


def _progress_for(assignment: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return ProgressRepo.get_or_create(assignment["id"])
    except sqlite3.Error as exc:
        logger.error("Failed to initialize progress for assignment %s: %s", assignment["id"], exc)
        raise ApiError(500, "Failed to initialize program progress", str(exc), program_assignment_id=assignment["id"])


def _schedule_structure(assignment: Dict[str, Any]) -> schedule.ScheduleStructure:
    try:
        rows = ScheduleRepo.list_for_program(assignment["program_id"])
    except sqlite3.Error as exc:
        logger.error("Failed to fetch schedule for program %s: %s", assignment["program_id"], exc)
        raise ApiError(500, "Failed to fetch program schedule", str(exc), program_id=assignment["program_id"])
    if not rows:
        raise ApiError(
            422,
            "Program schedule not configured",
            "No training days configured in program schedule",
            program_assignment_id=assignment["id"],
            program_id=assignment["program_id"],
        )
    return schedule.build_structure(rows)


def _resolve_or_fail(
    structure: schedule.ScheduleStructure,
    assignment: Dict[str, Any],
    progress: Dict[str, Any],
) -> Dict[str, Any]:
    week_index = progress["current_week_index"]
    day_index = progress["current_day_index"]
    entry = schedule.resolve(structure, week_index, day_index)
    if entry is None:
        logger.warning(
            "Invalid progress for assignment %s: week_index=%s day_index=%s total_weeks=%s",
            assignment["id"], week_index, day_index, structure.total_weeks,
        )
        raise ApiError(
            422,
            "Invalid progress state",
            f"Invalid progress state: week_index={week_index}, day_index={day_index}",
            program_assignment_id=assignment["id"],
            program_id=assignment["program_id"],
            current_week_index=week_index,
            current_day_index=day_index,
            total_weeks=structure.total_weeks,
        )
    return entry


def _multiple_assignments_warning(assignments: List[Dict[str, Any]], client_id: str) -> Optional[str]:
    if len(assignments) <= 1:
        return None
    logger.warning("Client %s has %d active program assignments", client_id, len(assignments))
    return f"Client has {len(assignments)} active programs; showing the most recently assigned one"


def get_next_workout(client_id: str) -> Dict[str, Any]:
    """
    Resolve the client's next workout from their active program's progress cursor.
    Returns a no_program, completed or active payload; raises ApiError otherwise.
    """
    client = ProfileRepo.get(client_id)
    client_name = display_name(client)

    assignments = _active_assignments(client_id)
    if not assignments:
        return {
            "status": "no_program",
            "message": "No active program assignment",
            "client_id": client_id,
            "client_name": client_name,
        }

    assignment = assignments[0]
    warning = _multiple_assignments_warning(assignments, client_id)
    progress = _progress_for(assignment)

    identity = {
        "client_id": client_id,
        "client_name": client_name,
        "client_avatar_url": client["avatar_url"] if client else None,
        "program_assignment_id": assignment["id"],
        "program_id": assignment["program_id"],
        "program_name": assignment["name"] or "Program",
    }

    if progress["is_completed"]:
        payload = {
            "status": "completed",
            "message": "Program completed",
            **identity,
            "current_week_index": progress["current_week_index"],
            "current_day_index": progress["current_day_index"],
            "is_completed": True,
        }
        if warning:
            payload["warning"] = warning
        return payload

    structure = _schedule_structure(assignment)
    entry = _resolve_or_fail(structure, assignment, progress)

    try:
        template = TemplateRepo.get(entry["template_id"])
    except sqlite3.Error as exc:
        logger.error("Failed to fetch template %s: %s", entry["template_id"], exc)
        raise ApiError(500, "Failed to fetch workout template", str(exc), template_id=entry["template_id"])
    if not template:
        raise ApiError(
            422,
            "Workout template not configured",
            f"Workout template {entry['template_id']} not found",
            template_id=entry["template_id"],
        )

    response = NextWorkoutResponse(
        **identity,
        current_week_index=progress["current_week_index"],
        current_day_index=progress["current_day_index"],
        is_completed=False,
        week_label=schedule.week_label(entry),
        day_label=schedule.day_label(structure, entry),
        position_label=schedule.position_label(structure, entry),
        total_weeks=structure.total_weeks,
        days_in_current_week=len(structure.days_in_week(entry["week_number"])),
        schedule_row_id=entry["id"],
        actual_week_number=entry["week_number"],
        actual_day_of_week=entry["day_of_week"],
        template_id=template["id"],
        workout_name=template["name"],
        workout_description=template["description"],
        estimated_duration=template["estimated_duration"],
        blocks=load_template_blocks(template["id"]),
        warning=warning,
    )
    payload = response.model_dump()
    if payload["warning"] is None:
        del payload["warning"]
    return payload


def mark_day_complete(client_id: str, completed_by: Optional[str], notes: Optional[str]) -> Dict[str, Any]:
    """Record the current day as done and advance the cursor to the next schedule position."""
    assignments = _active_assignments(client_id)
    if not assignments:
        raise ApiError(404, "no_active_assignment", "No active program assignment")
    assignment = assignments[0]
    progress = _progress_for(assignment)

    week_index = progress["current_week_index"]
    day_index = progress["current_day_index"]
    if progress["is_completed"]:
        raise ApiError(
            409,
            "Program already completed",
            "All training days in this program are already complete",
            is_completed=True,
            current_week_index=week_index,
            current_day_index=day_index,
        )

    structure = _schedule_structure(assignment)
    _resolve_or_fail(structure, assignment, progress)
    next_week, next_day, finished = schedule.advance(structure, week_index, day_index)

    try:
        recorded = ProgressRepo.complete_day(progress, next_week, next_day, finished, completed_by, notes)
    except sqlite3.Error as exc:
        logger.error("Failed to advance progress for assignment %s: %s", assignment["id"], exc)
        raise ApiError(500, "Failed to advance program progress", str(exc))
    if not recorded:
        raise ApiError(
            409,
            "Day already completed",
            f"Week index {week_index}, day index {day_index} was already marked complete",
            current_week_index=week_index,
            current_day_index=day_index,
        )

    next_entry = None if finished else schedule.resolve(structure, next_week, next_day)
    logger.info(
        "Assignment %s advanced from (%s, %s) to (%s, %s) completed=%s",
        assignment["id"], week_index, day_index, next_week, next_day, finished,
    )
    return {
        "success": True,
        "message": "Program completed" if finished else "Advanced to next training day",
        "completed": {"week_index": week_index, "day_index": day_index},
        "program_assignment_id": assignment["id"],
        "program_id": assignment["program_id"],
        "program_name": assignment["name"] or "Program",
        "current_week_index": next_week,
        "current_day_index": next_day,
        "is_completed": finished,
        "week_numbers": structure.week_numbers,
        "days_in_week_count": len(structure.days_in_week(structure.week_numbers[next_week])),
        "next_week_number": next_entry["week_number"] if next_entry else None,
        "next_day_of_week": next_entry["day_of_week"] if next_entry else None,
    }
