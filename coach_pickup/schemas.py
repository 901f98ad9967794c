"""
Pydantic schemas for the coach pickup payloads.
Defines the normalized block/exercise shapes and the next-workout response.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class NormalizedExercise(BaseModel):
    """
    Uniform, display-ready projection of any block-type-specific exercise record.
    Only the fields relevant to the source block type are populated.
    """
    id: str = Field(..., description="Source child row ID (first row of a grouped exercise)")
    exercise_id: str = Field(..., description="Exercise ID")
    exercise_name: str = Field(..., description="Exercise name")
    exercise_order: int = Field(..., description="Exercise position within the block")
    sets: Optional[int] = Field(None, description="Number of sets")
    reps: Optional[str] = Field(None, description="Reps, a range, or a joined step sequence")
    weight_kg: Optional[float] = Field(None, description="Working weight")
    rest_seconds: Optional[int] = Field(None, description="Rest after the exercise")
    notes: Optional[str] = Field(None, description="Block-type summary or coach notes")
    rounds: Optional[int] = Field(None, description="Rounds for time-based protocols")
    work_seconds: Optional[int] = Field(None, description="Work interval for time-based protocols")


class NormalizedBlock(BaseModel):
    """One workout block with its exercises, whatever the block's storage shape."""
    id: str = Field(..., description="Block ID")
    block_type: str = Field(..., description="Block type")
    block_order: int = Field(..., description="Display order within the template")
    block_name: Optional[str] = Field(None, description="Block name")
    block_notes: Optional[str] = Field(None, description="Block notes")
    total_sets: Optional[int] = Field(None, description="Block-level set count")
    reps_per_set: Optional[str] = Field(None, description="Block-level reps")
    rest_seconds: Optional[int] = Field(None, description="Block-level rest")
    duration_seconds: Optional[int] = Field(None, description="Block duration for time-based protocols")
    exercises: List[NormalizedExercise] = Field(default_factory=list, description="Normalized exercises")


class NextWorkoutResponse(BaseModel):
    """
    Payload for an active program position.
    Used by the /coach/pickup/next-workout endpoint.
    """
    status: str = Field("active", description="Lookup status")
    client_id: str
    client_name: str
    client_avatar_url: Optional[str] = None
    program_assignment_id: str
    program_id: str
    program_name: str
    current_week_index: int = Field(..., description="0-based offset into the week list")
    current_day_index: int = Field(..., description="0-based offset into the week's days")
    is_completed: bool = False
    week_label: str = Field(..., description="e.g. 'Week 3' (stored week_number)")
    day_label: str = Field(..., description="e.g. 'Day 2' (1-based position)")
    position_label: str
    total_weeks: int
    days_in_current_week: int
    schedule_row_id: str
    actual_week_number: int
    actual_day_of_week: int
    template_id: str
    workout_name: str
    workout_description: Optional[str] = None
    estimated_duration: Optional[int] = None
    blocks: List[NormalizedBlock] = Field(default_factory=list)
    warning: Optional[str] = None
