import unittest
from types import SimpleNamespace as Obj
from unittest.mock import patch
from datetime import time
from fastapi.testclient import TestClient

from main import app
from core.database import get_db
from core.errors import ConflictError, NotFoundError
from auth.services.auth_service import Actor, get_current_active_user


def shift_obj(**overrides):
    data = dict(
        id=1, org_id=1, hr_code=None, name="Morning", description=None,
        start_time=time(9, 0), end_time=time(17, 0), duration_minutes=480, break_minutes=30,
        is_night_shift=False, color="#2196F3", is_active=True, applicable_days=[1, 2, 3, 4, 5],
        overtime_allowed=False, overtime_rate=1.5, grace_period_minutes=15,
        minimum_staff=1, maximum_staff=None, meta={}, created_by=123,
    )
    data.update(overrides)
    return Obj(**data)


class ShiftRouterTests(unittest.TestCase):
    def setUp(self):
        # Minimal fake DB (router doesn't hit DB directly in these tests)
        class FakeDB:
            def rollback(self): ...
        def _fake_db():
            yield FakeDB()

        app.dependency_overrides[get_db] = _fake_db
        # fake logged-in HR user scoped to org 1
        self.actor = Actor(id=123, org_id=1, role="hr")
        app.dependency_overrides[get_current_active_user] = lambda: self.actor

        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_active_user, None)

    # ---------- LIST ----------
    @patch("shift.router.service.get_shifts")
    def test_list_forces_org_and_formats_times(self, mock_get_shifts):
        mock_get_shifts.return_value = [shift_obj()]

        resp = self.client.get("/api/shifts?is_night_shift=false&hr_code=HR1")
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()
        self.assertEqual(data[0]["start_time"], "09:00")
        self.assertEqual(data[0]["end_time"], "17:00")

        _, kwargs = mock_get_shifts.call_args
        self.assertEqual(kwargs.get("org_id"), 1)
        self.assertEqual(kwargs.get("is_night_shift"), False)
        self.assertEqual(kwargs.get("hr_code"), "HR1")

    # ---------- GET BY ID ----------
    @patch("shift.router.service.get_shift_for_org")
    def test_get_shift_404_cross_org_hidden(self, mock_get_for_org):
        mock_get_for_org.return_value = None
        resp = self.client.get("/api/shifts/9999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "Shift not found")

    # ---------- CREATE ----------
    @patch("shift.router.service.create_shift")
    def test_post_creates_shift_with_actor(self, mock_create_shift):
        mock_create_shift.return_value = shift_obj(id=2)
        resp = self.client.post(
            "/api/shifts", json={"name": "Morning", "start_time": "9:00", "end_time": "17:00", "color": 4280391411}
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["id"], 2)

        dto = mock_create_shift.call_args[0][1]
        self.assertEqual(dto.org_id, 1)
        self.assertEqual(dto.created_by, 123)
        self.assertEqual(dto.start_time, time(9, 0))
        self.assertEqual(dto.color, "#2196f3")

    def test_post_422_when_client_sends_org_id(self):
        payload = {"org_id": 2, "name": "Morning", "start_time": "09:00", "end_time": "17:00"}
        resp = self.client.post("/api/shifts", json=payload)
        self.assertEqual(resp.status_code, 422)

    def test_post_422_on_bad_time(self):
        resp = self.client.post("/api/shifts", json={"name": "Morning", "start_time": "9am", "end_time": "17:00"})
        self.assertEqual(resp.status_code, 422)

    def test_post_403_for_plain_manager(self):
        self.actor = Actor(id=5, org_id=1, role="manager")
        resp = self.client.post("/api/shifts", json={"name": "Morning", "start_time": "09:00", "end_time": "17:00"})
        self.assertEqual(resp.status_code, 403)

    # ---------- PATCH ----------
    @patch("shift.router.service.update_shift")
    def test_patch_passes_scope_and_actor(self, mock_update):
        mock_update.return_value = shift_obj(end_time=time(18, 0), duration_minutes=540)
        resp = self.client.patch("/api/shifts/1", json={"end_time": "18:00"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["end_time"], "18:00")
        _, kwargs = mock_update.call_args
        self.assertEqual((kwargs["org_id"], kwargs["actor_id"]), (1, 123))

    @patch("shift.router.service.update_shift")
    def test_patch_404(self, mock_update):
        mock_update.side_effect = NotFoundError("Shift not found")
        resp = self.client.patch("/api/shifts/9999", json={"end_time": "18:00"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"detail": "Shift not found", "code": "NOT_FOUND"})

    # ---------- DELETE ----------
    @patch("shift.router.service.delete_shift")
    def test_delete_200(self, mock_delete):
        mock_delete.return_value = None
        resp = self.client.delete("/api/shifts/2")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Shift deleted"})

    @patch("shift.router.service.delete_shift")
    def test_delete_409_when_in_use(self, mock_delete):
        mock_delete.side_effect = ConflictError("Cannot delete shift with upcoming assignments")
        resp = self.client.delete("/api/shifts/2")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "CONFLICT")


if __name__ == "__main__":
    unittest.main()
