"""
Workout block assembly.

Each block type stores its exercises in one of several child tables with a
different row shape. `assemble` dispatches every block to the normalizer for
its type and returns one NormalizedBlock per input block, always in input order.
"""

import logging
import sqlite3
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .repo import BlockRepo, ExerciseRepo
from .schemas import NormalizedBlock, NormalizedExercise


logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Normalizer = Callable[[Row, List[Row], Dict[str, str]], List[NormalizedExercise]]

UNKNOWN_EXERCISE = "Unknown exercise"
DEFAULT_CLUSTERS_PER_SET = 4


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def group_by_exercise(rows: List[Row]) -> Dict[str, List[Row]]:
    """Group rows by 'exercise_id:exercise_order'; the same exercise may appear twice in a block."""
    groups: Dict[str, List[Row]] = {}
    for row in rows:
        key = f"{row['exercise_id']}:{row['exercise_order']}"
        groups.setdefault(key, []).append(row)
    return groups


def _base(row: Row, names: Dict[str, str], **fields: Any) -> NormalizedExercise:
    return NormalizedExercise(
        id=str(row["id"]),
        exercise_id=str(row["exercise_id"]),
        exercise_name=names.get(row["exercise_id"], UNKNOWN_EXERCISE),
        exercise_order=row["exercise_order"],
        **fields,
    )


def _by_order(exercises: List[NormalizedExercise]) -> List[NormalizedExercise]:
    return sorted(exercises, key=lambda ex: ex.exercise_order)


def _count(n: int, noun: str) -> str:
    return f"{n} {noun}" if n == 1 else f"{n} {noun}s"


def normalize_flat(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    return _by_order([
        _base(
            row,
            names,
            sets=_first(row.get("sets"), block.get("total_sets")),
            reps=_text(_first(row.get("reps"), block.get("reps_per_set"))),
            weight_kg=_float(row.get("weight_kg")),
            rest_seconds=_first(row.get("rest_seconds"), block.get("rest_seconds")),
            notes=row.get("notes"),
        )
        for row in rows
    ])


def normalize_time_protocol(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    return _by_order([
        _base(
            row,
            names,
            rounds=row.get("rounds"),
            work_seconds=row.get("work_seconds"),
            rest_seconds=row.get("rest_seconds"),
            weight_kg=_float(row.get("weight_kg")),
        )
        for row in rows
    ])


def normalize_drop_set(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    exercises = []
    for group in group_by_exercise(rows).values():
        drops = sorted(group, key=lambda row: row.get("drop_order") or 0)
        exercises.append(_base(
            drops[0],
            names,
            sets=block.get("total_sets"),
            reps=_text(_first(block.get("reps_per_set"), drops[0].get("reps"))),
            weight_kg=_float(drops[0].get("weight_kg")),
            rest_seconds=block.get("rest_seconds"),
            notes=f"Drop set ({_count(len(drops), 'drop')})",
        ))
    return _by_order(exercises)


def normalize_rest_pause(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    exercises = []
    for group in group_by_exercise(rows).values():
        first = group[0]
        pauses = _first(first.get("max_rest_pauses"), len(group))
        note = f"Rest-pause ({_count(pauses, 'pause')}"
        if first.get("rest_pause_duration") is not None:
            note += f", {first['rest_pause_duration']}s rest"
        exercises.append(_base(
            first,
            names,
            sets=block.get("total_sets"),
            reps=_text(block.get("reps_per_set")),
            weight_kg=_float(first.get("weight_kg")),
            rest_seconds=block.get("rest_seconds"),
            notes=note + ")",
        ))
    return _by_order(exercises)


def normalize_cluster_set(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    exercises = []
    for row in rows:
        clusters = _first(row.get("clusters_per_set"), DEFAULT_CLUSTERS_PER_SET)
        parts = [_count(clusters, "cluster")]
        if row.get("reps_per_cluster") is not None:
            parts.append(_count(row["reps_per_cluster"], "rep"))
        note = " × ".join(parts)
        if row.get("intra_cluster_rest") is not None:
            note += f", {row['intra_cluster_rest']}s between clusters"
        exercises.append(_base(
            row,
            names,
            sets=block.get("total_sets"),
            reps=_text(row.get("reps_per_cluster")),
            weight_kg=_float(row.get("weight_kg")),
            rest_seconds=_first(row.get("inter_set_rest"), block.get("rest_seconds")),
            notes=note,
        ))
    return _by_order(exercises)


def _stepped(order_key: str, separator: str, label: str) -> Normalizer:
    def normalize(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
        exercises = []
        for group in group_by_exercise(rows).values():
            steps = sorted(group, key=lambda row: row.get(order_key) or 0)
            exercises.append(_base(
                steps[0],
                names,
                sets=len(steps),
                reps=separator.join(str(step["reps"]) for step in steps if step.get("reps") is not None),
                weight_kg=_float(steps[0].get("weight_kg")),
                rest_seconds=_first(steps[0].get("rest_seconds"), block.get("rest_seconds")),
                notes=f"{label} ({_count(len(steps), 'step')})",
            ))
        return _by_order(exercises)
    return normalize


normalize_pyramid_set = _stepped("pyramid_order", " → ", "Pyramid")
normalize_ladder = _stepped("ladder_order", ", ", "Ladder")


def _minutes(seconds: Optional[int]) -> Optional[int]:
    # half minutes round up
    return None if seconds is None else int(seconds / 60 + 0.5)


def _interval_note(row: Row) -> Optional[str]:
    work = _minutes(row.get("work_duration_seconds"))
    rest = _minutes(row.get("rest_duration_seconds"))
    pieces = []
    if work is not None:
        pieces.append(f"{work} min work")
    if rest is not None:
        pieces.append(f"{rest} min rest")
    note = " / ".join(pieces)
    if row.get("target_rounds") is not None:
        note = f"{row['target_rounds']} × {note}" if note else _count(row["target_rounds"], "round")
    return note or None


def hr_set_notes(row: Row) -> str:
    parts = []
    low, high = row.get("hr_percentage_min"), row.get("hr_percentage_max")
    if row.get("hr_zone") is not None:
        parts.append(f"Zone {row['hr_zone']}")
    elif low is not None and high is not None:
        parts.append(f"{low}-{high}% HR max")
    elif low is not None or high is not None:
        parts.append(f"{_first(low, high)}% HR max")
    if row.get("is_intervals"):
        interval = _interval_note(row)
        if interval:
            parts.append(interval)
    elif row.get("duration_seconds") is not None:
        parts.append(f"{_minutes(row['duration_seconds'])} min")
    return " · ".join(parts)


def normalize_hr_sets(block: Row, rows: List[Row], names: Dict[str, str]) -> List[NormalizedExercise]:
    return _by_order([_base(row, names, notes=hr_set_notes(row)) for row in rows])


FLAT_TYPES = ("straight_set", "superset", "giant_set", "pre_exhaustion")
TIME_PROTOCOL_TYPES = ("amrap", "emom", "for_time", "tabata", "circuit")

BLOCK_STRATEGIES: Dict[str, Tuple[str, Normalizer]] = {
    **{block_type: ("workout_block_exercises", normalize_flat) for block_type in FLAT_TYPES},
    **{block_type: ("workout_time_protocols", normalize_time_protocol) for block_type in TIME_PROTOCOL_TYPES},
    "drop_set": ("workout_drop_sets", normalize_drop_set),
    "rest_pause": ("workout_rest_pause_sets", normalize_rest_pause),
    "cluster_set": ("workout_cluster_sets", normalize_cluster_set),
    "pyramid_set": ("workout_pyramid_sets", normalize_pyramid_set),
    "ladder": ("workout_ladder_sets", normalize_ladder),
    "hr_sets": ("workout_hr_sets", normalize_hr_sets),
}


def source_table(block_type: str) -> Optional[str]:
    strategy = BLOCK_STRATEGIES.get(block_type)
    return strategy[0] if strategy else None


def assemble(
    blocks: List[Row],
    child_rows_by_source: Dict[str, List[Row]],
    exercise_names: Optional[Dict[str, str]] = None,
) -> List[NormalizedBlock]:
    """
    Normalize every block's exercises. Unknown block types, blocks without
    child rows and blocks whose rows fail to normalize come back with an
    empty exercise list, never dropped.
    """
    names = exercise_names or {}
    assembled = []
    for block in blocks:
        exercises: List[NormalizedExercise] = []
        strategy = BLOCK_STRATEGIES.get(block.get("block_type"))
        if strategy is None:
            logger.warning("Unknown block type %r on block %s", block.get("block_type"), block.get("id"))
        else:
            table, normalize = strategy
            rows = [row for row in child_rows_by_source.get(table, []) if row["block_id"] == block["id"]]
            if rows:
                try:
                    exercises = normalize(block, rows, names)
                except (ValidationError, ValueError, TypeError) as exc:
                    logger.warning("Malformed %s rows for block %s: %s", table, block.get("id"), exc)
        assembled.append(NormalizedBlock(
            id=str(block["id"]),
            block_type=str(block.get("block_type")),
            block_order=block.get("block_order") or 0,
            block_name=block.get("block_name"),
            block_notes=block.get("block_notes"),
            total_sets=block.get("total_sets"),
            reps_per_set=_text(block.get("reps_per_set")),
            rest_seconds=block.get("rest_seconds"),
            duration_seconds=block.get("duration_seconds"),
            exercises=exercises,
        ))
    return assembled


def load_template_blocks(template_id: str) -> List[NormalizedBlock]:
    """
    Fetch and assemble a template's blocks. Block detail is auxiliary: a failed
    or empty blocks query yields an empty list instead of an error.
    """
    try:
        blocks = BlockRepo.list_for_template(template_id)
    except sqlite3.Error as exc:
        logger.warning("Failed to fetch blocks for template %s: %s", template_id, exc)
        return []
    if not blocks:
        logger.warning("Template %s has no workout blocks", template_id)
        return []

    block_ids_by_table: Dict[str, List[str]] = {}
    for block in blocks:
        table = source_table(block["block_type"])
        if table:
            block_ids_by_table.setdefault(table, []).append(block["id"])

    child_rows_by_source: Dict[str, List[Row]] = {}
    for table, block_ids in block_ids_by_table.items():
        try:
            child_rows_by_source[table] = BlockRepo.list_children(table, block_ids)
        except sqlite3.Error as exc:
            logger.warning("Failed to fetch %s for template %s: %s", table, template_id, exc)
            child_rows_by_source[table] = []

    exercise_ids = [row["exercise_id"] for rows in child_rows_by_source.values() for row in rows]
    try:
        names = ExerciseRepo.names_for(exercise_ids)
    except sqlite3.Error as exc:
        logger.warning("Failed to fetch exercise names for template %s: %s", template_id, exc)
        names = {}

    return assemble(blocks, child_rows_by_source, names)
