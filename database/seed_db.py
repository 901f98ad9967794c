"""
Seed the database with a demo coach, client and a program whose schedule has gaps.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path so we can import coach_pickup
sys.path.append(str(Path(__file__).parent.parent))

from coach_pickup import db
from coach_pickup.repo import (
    ProfileRepo,
    ClientRepo,
    AssignmentRepo,
    ScheduleRepo,
    TemplateRepo,
    ExerciseRepo,
    BlockRepo,
)
from coach_pickup.security import hash_password


def seed_demo_data() -> dict:
    coach_id = ProfileRepo.create("coach@example.com", hash_password("coachpass"), "coach", "Casey", "Coach")
    client_id = ProfileRepo.create("client@example.com", hash_password("clientpass"), "client", "Jordan", "Lee")
    ClientRepo.link(coach_id, client_id)

    squat = ExerciseRepo.create("Back Squat")
    bench = ExerciseRepo.create("Bench Press")
    row = ExerciseRepo.create("Barbell Row")
    curl = ExerciseRepo.create("Dumbbell Curl")
    bike = ExerciseRepo.create("Assault Bike")

    lower = TemplateRepo.create("Lower Strength", "Squat focus with pyramid work", 60)
    upper = TemplateRepo.create("Upper Hypertrophy", "Supersets and drop sets", 55)
    conditioning = TemplateRepo.create("Conditioning", "Zone 2 and intervals", 40)

    block = BlockRepo.create(lower, "straight_set", 1, total_sets=3, reps_per_set="5", rest_seconds=180)
    BlockRepo.add_child("workout_block_exercises", block, squat, 1, weight_kg=100)
    block = BlockRepo.create(lower, "pyramid_set", 2)
    for order, (reps, weight) in enumerate([(12, 60), (10, 70), (8, 80)], start=1):
        BlockRepo.add_child("workout_pyramid_sets", block, squat, 1, pyramid_order=order, reps=reps, weight_kg=weight)

    block = BlockRepo.create(upper, "superset", 1, total_sets=4, reps_per_set="8-10", rest_seconds=90)
    BlockRepo.add_child("workout_block_exercises", block, bench, 1, exercise_letter="A")
    BlockRepo.add_child("workout_block_exercises", block, row, 2, exercise_letter="B")
    block = BlockRepo.create(upper, "drop_set", 2, total_sets=2, reps_per_set="10")
    for order, weight in enumerate([20, 15, 10], start=1):
        BlockRepo.add_child("workout_drop_sets", block, curl, 1, drop_order=order, weight_kg=weight)

    block = BlockRepo.create(conditioning, "hr_sets", 1)
    BlockRepo.add_child("workout_hr_sets", block, bike, 1, hr_zone=2, duration_seconds=1800)
    block = BlockRepo.create(conditioning, "tabata", 2, duration_seconds=240)
    BlockRepo.add_child("workout_time_protocols", block, bike, 1, protocol_type="tabata", rounds=8, work_seconds=20, rest_seconds=10)

    program_id = "demo-program"
    for week_number in (1, 3, 4):
        ScheduleRepo.add(program_id, week_number, 0, lower)
        ScheduleRepo.add(program_id, week_number, 2, upper)
        ScheduleRepo.add(program_id, week_number, 5, conditioning)
    assignment_id = AssignmentRepo.create(client_id, program_id, "Demo Strength Block", coach_id=coach_id)

    return {"coach_id": coach_id, "client_id": client_id, "program_assignment_id": assignment_id}


def main():
    """Create the schema and seed the demo program."""
    print("Seeding database with demo coach pickup data...")
    db.init_database()
    ids = seed_demo_data()
    print(f"✅ Database seeded: {ids}")


if __name__ == "__main__":
    main()
