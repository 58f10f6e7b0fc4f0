import pytest

from physiocenter.models.exercise import ExerciseLog
from tests.conftest import create_user, login_headers
from physiocenter.core.security import UserRole

new_exercise = {
    "title": "Pont fessier",
    "description": "Allongé sur le dos, soulever le bassin",
    "duration": "3 x 15",
    "difficulty": "Facile",
    "icon": "activity",
    "tip": "Serrer les fessiers en haut du mouvement"
}

class TestExerciseCatalog:

    def test_create_exercise(self, client, kine_headers):
        response = client.post("/api/v1/exercises", json=new_exercise, headers=kine_headers)
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        assert body["data"]["title"] == new_exercise["title"]
        assert body["data"]["difficulty"] == "Facile"
        assert body["data"]["category"] == "Mobilité"

    def test_patient_cannot_create_exercise(self, client, patient_headers):
        response = client.post("/api/v1/exercises", json=new_exercise, headers=patient_headers)
        assert response.status_code == 403

    def test_create_exercise_invalid_difficulty(self, client, kine_headers):
        invalid = {**new_exercise, "difficulty": "Extrême"}

        response = client.post("/api/v1/exercises", json=invalid, headers=kine_headers)
        assert response.status_code == 400
        assert "difficulty" in response.json()["data"]["errors"]

    def test_list_exercises(self, client, patient_headers, exercises):
        response = client.get("/api/v1/exercises", headers=patient_headers)
        assert response.status_code == 200
        assert len(response.json()["data"]) == 3

    def test_list_requires_authentication(self, client):
        response = client.get("/api/v1/exercises")
        assert response.status_code in (401, 403)

    def test_update_exercise(self, client, kine_headers, exercises):
        response = client.put(
            f"/api/v1/exercises/{exercises[0].id}",
            json={"duration": "4 x 8"},
            headers=kine_headers
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["duration"] == "4 x 8"
        assert data["title"] == "Squat partiel"

    def test_update_unknown_exercise(self, client, kine_headers):
        response = client.put(
            "/api/v1/exercises/does-not-exist",
            json={"duration": "4 x 8"},
            headers=kine_headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Exercise not found"

    def test_delete_exercise_removes_it_from_today(
        self, client, kine_headers, patient_headers, active_plan, exercises
    ):
        response = client.delete(f"/api/v1/exercises/{exercises[0].id}", headers=kine_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        today = client.get("/api/v1/exercises/patient/today", headers=patient_headers).json()["data"]
        assert [item["id"] for item in today] == [exercises[1].id]

class TestTodayExercises:

    def test_no_active_plan(self, client, patient_headers, exercises):
        response = client.get("/api/v1/exercises/patient/today", headers=patient_headers)
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_today_lists_plan_exercises(self, client, patient_headers, active_plan, exercises):
        response = client.get("/api/v1/exercises/patient/today", headers=patient_headers)
        assert response.status_code == 200

        today = response.json()["data"]
        assert [item["id"] for item in today] == [exercises[0].id, exercises[1].id]
        assert all(item["completed"] is False for item in today)
        assert today[0]["instructions"] == "Sans douleur"
        assert today[0]["difficulty"] == "Modéré"
        assert today[1]["tip"] == "Gardez le dos droit"
        assert today[1]["icon"] == "refresh"

    def test_kine_cannot_read_today(self, client, kine_headers):
        response = client.get("/api/v1/exercises/patient/today", headers=kine_headers)
        assert response.status_code == 403

class TestToggleCompletion:

    def toggle(self, client, headers, exercise_id, **payload):
        return client.post(f"/api/v1/exercises/{exercise_id}/toggle", json=payload, headers=headers)

    def test_complete_with_feedback(self, client, patient_headers, active_plan, exercises, db_session):
        response = self.toggle(
            client, patient_headers, exercises[0].id,
            completed=True, douleur=3, difficulte="Difficile", ressenti="", modifications=""
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["id"] == exercises[0].id
        assert data["completed"] is True
        assert data["instructions"] == "Sans douleur"

        log = db_session.query(ExerciseLog).one()
        assert log.pain_level == 3
        assert log.perceived_difficulty.value == "Difficile"
        assert log.sensation is None

        today = client.get("/api/v1/exercises/patient/today", headers=patient_headers).json()["data"]
        assert [item["completed"] for item in today] == [True, False]

    def test_repeated_completion_is_idempotent(self, client, patient_headers, active_plan, exercises, db_session):
        for _ in range(2):
            response = self.toggle(client, patient_headers, exercises[0].id, completed=True, douleur=2)
            assert response.status_code == 200
            assert response.json()["data"]["completed"] is True

        assert db_session.query(ExerciseLog).count() == 1

    def test_uncheck_keeps_feedback(self, client, patient_headers, active_plan, exercises, db_session):
        self.toggle(client, patient_headers, exercises[0].id, completed=True, douleur=5, ressenti="Tiraillements")

        response = self.toggle(client, patient_headers, exercises[0].id, completed=False)
        assert response.status_code == 200
        assert response.json()["data"]["completed"] is False

        log = db_session.query(ExerciseLog).one()
        assert log.completed is False
        assert log.pain_level == 5
        assert log.sensation == "Tiraillements"

    def test_blank_difficulte_means_not_answered(self, client, patient_headers, active_plan, exercises, db_session):
        response = self.toggle(client, patient_headers, exercises[0].id, completed=True, douleur=2, difficulte="")
        assert response.status_code == 200

        log = db_session.query(ExerciseLog).one()
        assert log.pain_level == 2
        assert log.perceived_difficulty is None

    def test_unknown_exercise(self, client, patient_headers, active_plan):
        response = self.toggle(client, patient_headers, "does-not-exist", completed=True)
        assert response.status_code == 404

    @pytest.mark.parametrize("payload, field", [
        ({"completed": True, "douleur": 11}, "douleur"),
        ({"completed": True, "douleur": -1}, "douleur"),
        ({"completed": True, "difficulte": "Trop dur"}, "difficulte"),
        ({"douleur": 2}, "completed"),
    ])
    def test_invalid_feedback(self, client, patient_headers, active_plan, exercises, payload, field):
        response = client.post(
            f"/api/v1/exercises/{exercises[0].id}/toggle", json=payload, headers=patient_headers
        )
        assert response.status_code == 400

        body = response.json()
        assert body["success"] is False
        assert field in body["data"]["errors"]

    def test_kine_cannot_toggle(self, client, kine_headers, exercises):
        response = self.toggle(client, kine_headers, exercises[0].id, completed=True)
        assert response.status_code == 403

class TestPatientLogs:

    def test_following_kine_reads_logs(self, client, patient_headers, kine_headers, active_plan, exercises):
        client.post(
            f"/api/v1/exercises/{exercises[1].id}/toggle",
            json={"completed": True, "douleur": 1, "difficulte": "Facile", "ressenti": "RAS"},
            headers=patient_headers
        )

        response = client.get(
            f"/api/v1/exercises/patient/{active_plan.patient_id}/logs", headers=kine_headers
        )
        assert response.status_code == 200

        logs = response.json()["data"]
        assert len(logs) == 1
        assert logs[0]["exercise_title"] == "Rotation d'épaule"
        assert logs[0]["douleur"] == 1
        assert logs[0]["difficulte"] == "Facile"
        assert logs[0]["ressenti"] == "RAS"

    def test_other_kine_is_forbidden(self, client, db_session, active_plan):
        create_user(db_session, "other.kine@physiocenter.fr", UserRole.KINE)
        headers = login_headers(client, "other.kine@physiocenter.fr")

        response = client.get(
            f"/api/v1/exercises/patient/{active_plan.patient_id}/logs", headers=headers
        )
        assert response.status_code == 403

    def test_admin_reads_any_logs(self, client, admin_headers, active_plan):
        response = client.get(
            f"/api/v1/exercises/patient/{active_plan.patient_id}/logs", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_logs_survive_exercise_deletion(
        self, client, patient_headers, kine_headers, admin_headers, active_plan, exercises
    ):
        client.post(
            f"/api/v1/exercises/{exercises[0].id}/toggle",
            json={"completed": True, "douleur": 7},
            headers=patient_headers
        )

        response = client.delete(f"/api/v1/exercises/{exercises[0].id}", headers=kine_headers)
        assert response.status_code == 200

        response = client.get(
            f"/api/v1/exercises/patient/{active_plan.patient_id}/logs", headers=admin_headers
        )
        assert response.status_code == 200

        logs = response.json()["data"]
        assert len(logs) == 1
        assert logs[0]["douleur"] == 7
        assert logs[0]["exercise_id"] is None
        assert logs[0]["exercise_title"] is None

    def test_unknown_patient(self, client, admin_headers):
        response = client.get("/api/v1/exercises/patient/does-not-exist/logs", headers=admin_headers)
        assert response.status_code == 404
