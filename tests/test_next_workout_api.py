import sqlite3
import unittest
from unittest import mock

from coach_pickup import db
from coach_pickup.repo import (
    BlockRepo,
    ClientRepo,
    ExerciseRepo,
    ProfileRepo,
    ProgressRepo,
    ScheduleRepo,
    TemplateRepo,
)
from coach_pickup.security import sign_token

from base import PickupAPITestCase


class NextWorkoutAuthTestCase(PickupAPITestCase):
    def test_missing_client_id(self) -> None:
        response = self.client.get("/coach/pickup/next-workout", headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing required parameter: clientId")

    def test_not_authenticated(self) -> None:
        response = self.get_next(headers={})
        self.assertEqual(response.status_code, 401)
        self.assertIn("message", response.json())

    def test_tampered_token(self) -> None:
        token = sign_token(self.coach_id)[:-4] + "AAAA"
        response = self.get_next(headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 401)

    def test_profile_missing(self) -> None:
        response = self.get_next(headers={"Authorization": f"Bearer {sign_token('ghost')}"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Profile not found")

    def test_client_role_forbidden(self) -> None:
        response = self.get_next(headers={"Authorization": f"Bearer {sign_token(self.client_id)}"})
        self.assertEqual(response.status_code, 403)

    def test_coach_without_relationship_forbidden(self) -> None:
        other_coach = ProfileRepo.create("other@example.com", None, "coach")
        response = self.get_next(headers={"Authorization": f"Bearer {sign_token(other_coach)}"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "Client not found or does not belong to this coach")

    def test_admin_with_relationship_allowed(self) -> None:
        admin = ProfileRepo.create("admin@example.com", None, "admin")
        ClientRepo.link(admin, self.client_id)
        response = self.get_next(headers={"Authorization": f"Bearer {sign_token(admin)}"})
        self.assertEqual(response.status_code, 200)

    def test_cookie_auth(self) -> None:
        self.client.cookies.set("auth_token", sign_token(self.coach_id))
        response = self.get_next(headers={})
        self.assertEqual(response.status_code, 200)


class NextWorkoutTestCase(PickupAPITestCase):
    def test_no_program(self) -> None:
        response = self.get_next()
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "no_program")
        self.assertEqual(data["client_id"], self.client_id)
        self.assertEqual(data["client_name"], "Jordan Lee")
        with db.get_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM program_progress").fetchone()[0]
        self.assertEqual(count, 0)

    def test_active_first_day(self) -> None:
        program_id = self.make_program({1: [0, 2, 4], 2: [1, 3]})
        assignment_id = self.assign(program_id)

        response = self.get_next()

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "active")
        self.assertEqual(data["week_label"], "Week 1")
        self.assertEqual(data["day_label"], "Day 1")
        self.assertEqual(data["position_label"], "Week 1 • Day 1")
        self.assertEqual(data["total_weeks"], 2)
        self.assertEqual(data["days_in_current_week"], 3)
        self.assertEqual(data["program_assignment_id"], assignment_id)
        self.assertEqual(data["program_name"], "Strength Block")
        self.assertEqual(data["client_avatar_url"], "https://img/jl.png")
        self.assertEqual(data["workout_name"], "W1 D0")
        self.assertEqual(data["blocks"], [])
        self.assertNotIn("warning", data)
        progress = ProgressRepo.get(assignment_id)
        self.assertEqual((progress["current_week_index"], progress["current_day_index"]), (0, 0))

    def test_lazy_progress_is_created_once(self) -> None:
        assignment_id = self.assign(self.make_program({1: [0]}))
        self.get_next()
        self.get_next()
        with db.get_connection() as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM program_progress WHERE program_assignment_id = ?", (assignment_id,)
            ).fetchone()[0]
        self.assertEqual(count, 1)

    def test_labels_follow_gaps(self) -> None:
        assignment_id = self.assign(self.make_program({1: [0], 3: [0, 2, 5], 4: [1]}))
        ProgressRepo.create(assignment_id, week_index=1, day_index=1)

        data = self.get_next().json()

        self.assertEqual(data["week_label"], "Week 3")
        self.assertEqual(data["day_label"], "Day 2")
        self.assertEqual(data["actual_week_number"], 3)
        self.assertEqual(data["actual_day_of_week"], 2)
        self.assertEqual(data["total_weeks"], 3)
        self.assertEqual(data["workout_name"], "W3 D2")

    def test_invalid_progress(self) -> None:
        assignment_id = self.assign(self.make_program({1: [0, 1], 2: [0]}))
        ProgressRepo.create(assignment_id, week_index=5, day_index=0)

        response = self.get_next()

        self.assertEqual(response.status_code, 422)
        data = response.json()
        self.assertEqual(data["total_weeks"], 2)
        self.assertEqual(data["current_week_index"], 5)
        self.assertEqual(data["current_day_index"], 0)
        self.assertIn("message", data)

    def test_completed_program(self) -> None:
        assignment_id = self.assign(self.make_program({1: [0]}))
        ProgressRepo.create(assignment_id, week_index=0, day_index=0, is_completed=True)

        data = self.get_next().json()

        self.assertEqual(data["status"], "completed")
        self.assertTrue(data["is_completed"])
        self.assertEqual(data["program_assignment_id"], assignment_id)
        self.assertNotIn("blocks", data)

    def test_multiple_active_assignments_pick_most_recent(self) -> None:
        old_program = self.make_program({1: [0]}, program_id="old")
        new_program = self.make_program({1: [0]}, program_id="new")
        self.assign(old_program, name="Old", created_at="2026-01-01 08:00:00")
        newest = self.assign(new_program, name="New", created_at="2026-03-01 08:00:00")

        data = self.get_next().json()

        self.assertEqual(data["status"], "active")
        self.assertEqual(data["program_assignment_id"], newest)
        self.assertEqual(data["program_name"], "New")
        self.assertIn("2 active programs", data["warning"])

    def test_completed_program_keeps_multiple_assignments_warning(self) -> None:
        self.assign(self.make_program({1: [0]}, program_id="old"), created_at="2026-01-01 08:00:00")
        newest = self.assign(self.make_program({1: [0]}, program_id="new"), created_at="2026-03-01 08:00:00")
        ProgressRepo.create(newest, week_index=0, day_index=0, is_completed=True)

        data = self.get_next().json()

        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["program_assignment_id"], newest)
        self.assertIn("2 active programs", data["warning"])

    def test_get_or_create_returns_the_same_row(self) -> None:
        assignment_id = self.assign(self.make_program({1: [0]}))
        first = ProgressRepo.get_or_create(assignment_id)
        second = ProgressRepo.get_or_create(assignment_id)
        self.assertEqual(first["id"], second["id"])
        self.assertEqual((second["current_week_index"], second["current_day_index"], second["is_completed"]), (0, 0, 0))
        with db.get_connection() as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM program_progress WHERE program_assignment_id = ?", (assignment_id,)
            ).fetchone()[0]
        self.assertEqual(count, 1)

    def test_malformed_block_row_still_returns_workout(self) -> None:
        template_id = TemplateRepo.create("Upper", None, 40)
        ScheduleRepo.add("p-bad-row", 1, 0, template_id)
        self.assign("p-bad-row")
        squat = ExerciseRepo.create("Back Squat")
        straight = BlockRepo.create(template_id, "straight_set", 1)
        BlockRepo.add_child("workout_block_exercises", straight, squat, 1, sets="3-4")

        response = self.get_next()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["blocks"]), 1)
        self.assertEqual(response.json()["blocks"][0]["exercises"], [])

    def test_empty_schedule(self) -> None:
        self.assign("unscheduled")
        response = self.get_next()
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "Program schedule not configured")

    def test_missing_template(self) -> None:
        ScheduleRepo.add("p-missing", 1, 0, "no-such-template")
        self.assign("p-missing")
        response = self.get_next()
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "Workout template not configured")

    def test_schedule_fetch_failure_is_fatal(self) -> None:
        self.assign(self.make_program({1: [0]}))
        with mock.patch.object(ScheduleRepo, "list_for_program", side_effect=sqlite3.OperationalError("disk I/O error")):
            response = self.get_next()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Failed to fetch program schedule")

    def test_block_fetch_failure_is_not_fatal(self) -> None:
        self.assign(self.make_program({1: [0]}))
        with mock.patch.object(BlockRepo, "list_for_template", side_effect=sqlite3.OperationalError("timeout")):
            response = self.get_next()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["blocks"], [])

    def test_unexpected_error_returns_json(self) -> None:
        self.assign(self.make_program({1: [0]}))
        with mock.patch.object(TemplateRepo, "get", side_effect=RuntimeError("kaboom")):
            response = self.get_next()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error", "message": "kaboom"})

    def test_blocks_are_normalized(self) -> None:
        template_id = TemplateRepo.create("Lower", "Squat day", 60)
        ScheduleRepo.add("p-blocks", 1, 0, template_id)
        self.assign("p-blocks")
        squat = ExerciseRepo.create("Back Squat")
        pyramid = BlockRepo.create(template_id, "pyramid_set", 2)
        for order, reps in enumerate([12, 10, 8], start=1):
            BlockRepo.add_child("workout_pyramid_sets", pyramid, squat, 1, pyramid_order=order, reps=reps)
        straight = BlockRepo.create(template_id, "straight_set", 1, total_sets=3, reps_per_set="5")
        BlockRepo.add_child("workout_block_exercises", straight, squat, 1)
        BlockRepo.create(template_id, "wall_balls_special", 3)

        data = self.get_next().json()

        self.assertEqual(data["workout_description"], "Squat day")
        self.assertEqual(data["estimated_duration"], 60)
        self.assertEqual([b["block_type"] for b in data["blocks"]], ["straight_set", "pyramid_set", "wall_balls_special"])
        self.assertEqual(data["blocks"][0]["exercises"][0]["sets"], 3)
        self.assertEqual(data["blocks"][1]["exercises"][0]["reps"], "12 → 10 → 8")
        self.assertEqual(data["blocks"][2]["exercises"], [])


if __name__ == "__main__":
    unittest.main()
