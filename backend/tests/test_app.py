import unittest
from types import SimpleNamespace
from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.dependencies import get_storage_service, reset_dependencies
from backend.errors import QueryError


def _settings(**overrides):
    values = {
        "storage_backend": "local",
        "database_url": None,
        "redis_url": None,
        "local_store_prefix": "test",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class BackendApiTestCase(unittest.TestCase):
    settings_overrides: dict = {}

    def setUp(self):
        reset_dependencies()
        self.addCleanup(reset_dependencies)

        settings_patch = patch(
            "backend.dependencies.get_settings",
            return_value=_settings(**self.settings_overrides),
        )
        settings_patch.start()
        self.addCleanup(settings_patch.stop)

        api_key_patch = patch("models.note_assistant.api_config.get_api_key", return_value=None)
        api_key_patch.start()
        self.addCleanup(api_key_patch.stop)

        # Entering the client runs the lifespan, which initializes storage.
        self.client = TestClient(create_app())
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def login(self, username: str) -> dict:
        response = self.client.post("/api/login", json={"username": username})
        self.assertEqual(response.status_code, 200, response.text)
        return {"X-Session-Id": response.json()["sessionId"]}


class BackendApiTests(BackendApiTestCase):
    def test_status_is_ready_after_startup(self):
        response = self.client.get("/api/status")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ready": True, "error": None})

    def test_login_is_case_insensitive(self):
        response = self.client.post("/api/login", json={"username": "  MASTER "})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["user"]["id"], "t1")
        self.assertEqual(payload["user"]["role"], "TEACHER")

        me = self.client.get("/api/me", headers={"X-Session-Id": payload["sessionId"]})
        self.assertEqual(me.json()["username"], "master")

    def test_login_unknown_user(self):
        response = self.client.post("/api/login", json={"username": "ghost"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json()["detail"], "User not found. Please check your username."
        )

    def test_logout_ends_session(self):
        headers = self.login("maria")
        self.assertEqual(self.client.post("/api/logout", headers=headers).status_code, 200)
        self.assertEqual(self.client.get("/api/me", headers=headers).status_code, 401)

    def test_requests_without_session_are_rejected(self):
        self.assertEqual(self.client.get("/api/dashboard").status_code, 401)
        self.assertEqual(
            self.client.get("/api/dashboard", headers={"X-Session-Id": "bogus"}).status_code,
            401,
        )

    def test_teacher_dashboard(self):
        headers = self.login("master")
        payload = self.client.get("/api/dashboard", headers=headers).json()
        self.assertEqual(payload["role"], "TEACHER")
        self.assertEqual([s["id"] for s in payload["students"]], ["s1", "s2", "s3"])
        self.assertEqual([n["id"] for n in payload["notes"]], ["n1", "n2"])
        self.assertEqual([f["id"] for f in payload["feedback"]], ["f1"])
        self.assertEqual(payload["unreadCount"], 1)

    def test_student_dashboard(self):
        headers = self.login("maria")
        payload = self.client.get("/api/dashboard", headers=headers).json()
        self.assertEqual(payload["role"], "STUDENT")
        self.assertEqual(payload["level"], "B2")
        self.assertEqual([n["id"] for n in payload["notes"]], ["n1"])
        self.assertEqual(payload["questionCounts"], {"n1": 1})

    def test_students_cannot_manage_notes(self):
        headers = self.login("kenji")
        response = self.client.put(
            "/api/notes",
            headers=headers,
            json={"studentId": "s2", "title": "Mine", "content": "..."},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            self.client.delete("/api/notes/n2", headers=headers).status_code, 403
        )

    def test_teacher_student_round(self):
        teacher = self.login("master")

        response = self.client.put(
            "/api/users",
            headers=teacher,
            json={"id": "s9", "name": "Ana Ruiz", "username": "ana", "level": "B1"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["role"], "STUDENT")
        users = self.client.get("/api/users", headers=teacher).json()
        self.assertIn("s9", [u["id"] for u in users])

        response = self.client.put(
            "/api/notes",
            headers=teacher,
            json={
                "id": "n9",
                "studentId": "s9",
                "title": "Past Tense",
                "content": "...",
                "tags": ["Grammar"],
            },
        )
        self.assertEqual(response.status_code, 200, response.text)
        note = response.json()
        self.assertEqual(note["teacherId"], "t1")
        self.assertTrue(note["createdAt"])

        student = self.login("ana")
        notes = self.client.get("/api/notes", headers=student).json()
        self.assertEqual([n["id"] for n in notes], ["n9"])

        response = self.client.post(
            "/api/feedback",
            headers=student,
            json={"noteId": "n9", "content": "clarify please"},
        )
        self.assertEqual(response.status_code, 201, response.text)
        feedback_id = response.json()["id"]
        self.assertEqual(response.json()["studentId"], "s9")

        feedback = self.client.get("/api/feedback", headers=teacher).json()
        created = next(f for f in feedback if f["id"] == feedback_id)
        self.assertFalse(created["isRead"])

        response = self.client.post(f"/api/feedback/{feedback_id}/read", headers=teacher)
        self.assertEqual(response.status_code, 200)
        feedback = self.client.get("/api/feedback", headers=teacher).json()
        created = next(f for f in feedback if f["id"] == feedback_id)
        self.assertTrue(created["isRead"])

    def test_new_student_defaults_to_a1(self):
        teacher = self.login("master")
        response = self.client.put(
            "/api/users",
            headers=teacher,
            json={"name": "Lee", "username": "lee"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["level"], "A1")
        self.assertTrue(response.json()["id"])

    def test_duplicate_username_conflicts(self):
        teacher = self.login("master")
        response = self.client.put(
            "/api/users",
            headers=teacher,
            json={"name": "Another Maria", "username": "Maria"},
        )
        self.assertEqual(response.status_code, 409)

    def test_feedback_only_on_own_notes(self):
        student = self.login("kenji")
        response = self.client.post(
            "/api/feedback", headers=student, json={"noteId": "n1", "content": "?"}
        )
        self.assertEqual(response.status_code, 404)

        response = self.client.post(
            "/api/feedback", headers=student, json={"noteId": "n2", "content": "   "}
        )
        self.assertEqual(response.status_code, 422)

    def test_feedback_lookup_failure_is_a_storage_error(self):
        student = self.login("maria")
        store = get_storage_service().store
        with patch.object(store, "read_all", side_effect=QueryError("connection reset")):
            response = self.client.post(
                "/api/feedback", headers=student, json={"noteId": "n1", "content": "?"}
            )
        self.assertEqual(response.status_code, 503)

    def test_note_edit_returns_stored_created_at(self):
        teacher = self.login("master")
        before = next(
            n for n in self.client.get("/api/notes", headers=teacher).json() if n["id"] == "n1"
        )
        response = self.client.put(
            "/api/notes",
            headers=teacher,
            json={"id": "n1", "studentId": "s1", "title": "Phrasal Verbs II", "content": "..."},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["createdAt"], before["createdAt"])
        self.assertEqual(response.json()["title"], "Phrasal Verbs II")

        after = next(
            n for n in self.client.get("/api/notes", headers=teacher).json() if n["id"] == "n1"
        )
        self.assertEqual(after["createdAt"], before["createdAt"])

    def test_delete_note_removes_feedback(self):
        teacher = self.login("master")
        self.assertEqual(self.client.delete("/api/notes/n1", headers=teacher).status_code, 200)
        payload = self.client.get("/api/dashboard", headers=teacher).json()
        self.assertEqual([n["id"] for n in payload["notes"]], ["n2"])
        self.assertEqual(payload["feedback"], [])

    def test_mark_unknown_feedback_read_is_noop(self):
        teacher = self.login("master")
        response = self.client.post("/api/feedback/missing/read", headers=teacher)
        self.assertEqual(response.status_code, 200)

    def test_enhance_without_api_key_returns_original(self):
        teacher = self.login("master")
        response = self.client.post(
            "/api/notes/enhance",
            headers=teacher,
            json={"content": "raw text", "studentId": "s1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"content": "raw text"})

    def test_practice_questions_without_api_key(self):
        teacher = self.login("master")
        response = self.client.post(
            "/api/notes/practice-questions",
            headers=teacher,
            json={"content": "raw text"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"questions": "", "content": "raw text"})


class MissingDatabaseUrlTests(BackendApiTestCase):
    settings_overrides = {"storage_backend": "remote", "database_url": None}

    def test_status_reports_configuration_error(self):
        payload = self.client.get("/api/status").json()
        self.assertFalse(payload["ready"])
        self.assertIn("DATABASE_URL", payload["error"])

    def test_data_routes_are_closed_until_init_succeeds(self):
        response = self.client.post("/api/login", json={"username": "master"})
        self.assertEqual(response.status_code, 503)
        self.assertIn("DATABASE_URL", response.json()["detail"])

    def test_retry_init_surfaces_the_error(self):
        response = self.client.post("/api/init")
        self.assertEqual(response.status_code, 503)
        self.assertIn("DATABASE_URL", response.json()["detail"])


if __name__ == "__main__":
    unittest.main()
