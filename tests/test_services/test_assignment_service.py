# tests/test_services/test_assignment_service.py
import unittest
from datetime import date, time
from unittest.mock import patch

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
import models_bootstrap

from organization.models import Organization
from employee.models import Employee
from shift.models import Shift
from roster.models import RosterStatus, ShiftRoster
from events.models import SchedulingEvent

# Service + DTOs under test
from assignment import service
from assignment.models import AssignmentStatus, PerformanceRating, ShiftAssignment
from assignment.schema import AssignmentCreate, AssignmentUpdate

TUESDAY = date(2024, 10, 15)
SATURDAY = date(2024, 10, 19)


class AssignmentServiceTests(unittest.TestCase):
    def setUp(self):
        # Fresh in-memory DB
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        # ---- Seed orgs ----
        self.org1 = Organization(name="Org One", timezone="Atlantic/Reykjavik")
        self.org2 = Organization(name="Org Two", timezone="Atlantic/Reykjavik")
        self.db.add_all([self.org1, self.org2])
        self.db.flush()

        # ---- Seed employees ----
        self.e1 = Employee(org_id=self.org1.id, display_name="Kalli", email="kalli@example.com")
        self.e2 = Employee(org_id=self.org1.id, display_name="Palli")
        self.e3 = Employee(org_id=self.org1.id, display_name="Stebbi")
        self.foreign = Employee(org_id=self.org2.id, display_name="Alli")
        self.db.add_all([self.e1, self.e2, self.e3, self.foreign])
        self.db.flush()

        # ---- Seed shift + roster ----
        self.morning = Shift(
            org_id=self.org1.id, name="Morning", start_time=time(9, 0), end_time=time(17, 0),
            duration_minutes=480, applicable_days=[1, 2, 3, 4, 5], created_by=1,
        )
        self.db.add(self.morning)
        self.db.flush()
        self.roster = ShiftRoster(
            org_id=self.org1.id, name="Week 42", start_date=date(2024, 10, 14), end_date=date(2024, 10, 20),
            status=RosterStatus.draft, is_published=False, created_by=1,
        )
        self.db.add(self.roster)
        # committed so a rollback inside a service call cannot undo the seed
        self.db.commit()

        self.org_id = self.org1.id
        self.manager_id = 100

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _dto(self, **overrides):
        data = dict(
            org_id=self.org_id, created_by=self.manager_id, shift_id=self.morning.id,
            employee_id=self.e1.id, date=TUESDAY, roster_id=self.roster.id,
        )
        data.update(overrides)
        return AssignmentCreate(**data)

    def _create(self, **overrides):
        return service.create_assignment(self.db, self._dto(**overrides))

    def _count(self, **filters):
        return len(service.get_assignments(self.db, org_id=self.org_id, **filters))

    # ---------- create ----------
    def test_create_starts_assigned(self):
        a = self._create()
        self.assertEqual(a.status, AssignmentStatus.assigned)
        self.assertEqual(a.employee_id, self.e1.id)
        self.assertEqual(a.roster_id, self.roster.id)
        self.assertEqual(a.created_by, self.manager_id)

    def test_duplicate_active_binding_is_conflict(self):
        self._create()
        with self.assertRaises(ConflictError) as ctx:
            self._create()
        self.assertEqual(ctx.exception.detail, "Employee already has this shift assigned on this date")
        self.assertEqual(self._count(), 1)

    def test_unique_index_backs_the_precheck(self):
        self._create()
        # a concurrent writer that passed the check still loses at the index
        with patch("assignment.service._find_active_binding", return_value=None):
            with self.assertRaises(ConflictError):
                self._create()
        self.assertEqual(self._count(), 1)

    def test_declined_binding_can_be_reassigned(self):
        a = self._create()
        service.decline_assignment(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, reason="Sick"
        )
        again = self._create()
        self.assertEqual(again.status, AssignmentStatus.assigned)
        self.assertEqual(self._count(), 2)

    def test_create_rejects_unknown_references(self):
        with self.assertRaises(NotFoundError):
            self._create(shift_id=999)
        with self.assertRaises(NotFoundError):
            self._create(employee_id=999)
        with self.assertRaises(NotFoundError):
            self._create(employee_id=self.foreign.id)
        with self.assertRaises(NotFoundError):
            self._create(roster_id=999)

    def test_create_rejects_inactive_shift(self):
        self.morning.is_active = False
        self.db.commit()
        with self.assertRaises(ConflictError):
            self._create()

    def test_create_rejects_soft_deleted_shift(self):
        from datetime import datetime, timezone
        self.morning.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        with self.assertRaises(NotFoundError):
            self._create()

    def test_create_accepts_day_outside_applicable_days(self):
        with self.assertLogs("assignment.service", level="WARNING") as logs:
            a = self._create(date=SATURDAY)
        self.assertEqual(a.status, AssignmentStatus.assigned)
        self.assertEqual(a.date, SATURDAY)
        self.assertIn("assignment_shift_warnings", logs.output[0])

    def test_create_rejects_date_outside_roster(self):
        with self.assertRaises(ValidationError):
            self._create(date=date(2024, 10, 22))
        # no roster, no range check
        free = self._create(date=date(2024, 10, 22), roster_id=None)
        self.assertIsNone(free.roster_id)

    def test_create_rejects_archived_roster(self):
        self.roster.status = RosterStatus.archived
        self.db.commit()
        with self.assertRaises(ConflictError):
            self._create()

    def test_create_beyond_maximum_staff_is_accepted(self):
        self.morning.maximum_staff = 1
        self.db.commit()
        self._create()
        second = self._create(employee_id=self.e2.id)
        self.assertEqual(second.status, AssignmentStatus.assigned)
        self.assertEqual(self._count(on_date=TUESDAY), 2)
        self.assertEqual(
            service.shift_warnings(self.db, shift=self.morning, on_date=TUESDAY),
            ["Shift 'Morning' is over its maximum staffing of 1"],
        )

    def test_create_records_event(self):
        a = self._create()
        event = self.db.scalars(select(SchedulingEvent)).one()
        self.assertEqual(event.event_type, "assignment.created")
        self.assertEqual(event.aggregate_id, a.id)
        self.assertEqual(event.actor_id, self.manager_id)
        self.assertEqual(event.payload["employee_id"], self.e1.id)
        self.assertEqual(event.payload["date"], "2024-10-15")

    def test_failed_create_records_no_event(self):
        self._create()
        with self.assertRaises(ConflictError):
            self._create()
        self.assertEqual(len(self.db.scalars(select(SchedulingEvent)).all()), 1)

    # ---------- read ----------
    def test_list_filters_and_orders(self):
        first = self._create(date=date(2024, 10, 16))
        second = self._create(employee_id=self.e2.id, date=TUESDAY)
        self.assertEqual(
            [a.id for a in service.get_assignments(self.db, org_id=self.org_id)], [second.id, first.id]
        )
        self.assertEqual(self._count(employee_id=self.e2.id), 1)
        self.assertEqual(self._count(on_date=TUESDAY), 1)
        self.assertEqual(self._count(start_date=date(2024, 10, 16), end_date=date(2024, 10, 20)), 1)
        self.assertEqual(self._count(status=AssignmentStatus.confirmed), 0)
        self.assertEqual(len(service.get_assignments(self.db, org_id=self.org2.id)), 0)

    def test_get_is_org_scoped(self):
        a = self._create()
        self.assertIsNotNone(service.get_assignment_for_org(self.db, a.id, self.org_id))
        self.assertIsNone(service.get_assignment_for_org(self.db, a.id, self.org2.id))

    # ---------- confirm / decline ----------
    def test_owner_confirms(self):
        a = self._create()
        confirmed = service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id)
        self.assertEqual(confirmed.status, AssignmentStatus.confirmed)
        self.assertIsNotNone(confirmed.confirmed_at)

    def test_non_owner_is_refused_in_every_state(self):
        a = self._create()
        with self.assertRaises(AuthorizationError):
            service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e2.id)
        service.cancel_assignment(self.db, a.id, org_id=self.org_id, actor_id=self.manager_id)
        for call in (
            lambda: service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e2.id),
            lambda: service.decline_assignment(
                self.db, a.id, org_id=self.org_id, employee_id=self.e2.id, reason="x"),
            lambda: service.request_swap(
                self.db, a.id, org_id=self.org_id, employee_id=self.e2.id, target_employee_id=self.e3.id),
        ):
            with self.assertRaises(AuthorizationError):
                call()

    def test_confirm_cancelled_is_conflict(self):
        a = self._create()
        service.cancel_assignment(self.db, a.id, org_id=self.org_id, actor_id=self.manager_id)
        with self.assertRaises(ConflictError):
            service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id)

    def test_decline_requires_reason(self):
        a = self._create()
        with self.assertRaises(ValidationError):
            service.decline_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, reason="  ")
        declined = service.decline_assignment(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, reason="Doctor appointment"
        )
        self.assertEqual(declined.status, AssignmentStatus.declined)
        self.assertEqual(declined.decline_reason, "Doctor appointment")
        self.assertIsNotNone(declined.declined_at)

    def test_confirmed_cannot_be_declined(self):
        a = self._create()
        service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id)
        with self.assertRaises(ConflictError):
            service.decline_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, reason="x")

    def test_transition_on_unknown_assignment_is_not_found(self):
        with self.assertRaises(NotFoundError):
            service.confirm_assignment(self.db, 999, org_id=self.org_id, employee_id=self.e1.id)

    # ---------- swap ----------
    def test_request_swap_records_target_and_event(self):
        a = self._create()
        service.confirm_assignment(self.db, a.id, org_id=self.org_id, employee_id=self.e1.id)
        swapped = service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        self.assertEqual(swapped.status, AssignmentStatus.swap_requested)
        self.assertEqual(swapped.swap_requested_with, self.e2.id)
        self.assertIsNotNone(swapped.swap_requested_at)

        event = self.db.scalars(
            select(SchedulingEvent).where(SchedulingEvent.event_type == "assignment.swap_requested")
        ).one()
        self.assertEqual(event.payload["target_employee_id"], self.e2.id)
        self.assertEqual(event.payload["date"], "2024-10-15")

    def test_request_swap_rejects_self_and_unknown_target(self):
        a = self._create()
        with self.assertRaises(ValidationError):
            service.request_swap(
                self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e1.id
            )
        with self.assertRaises(NotFoundError):
            service.request_swap(
                self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.foreign.id
            )
        self.assertEqual(service.get_assignment_for_org(self.db, a.id, self.org_id).status, AssignmentStatus.assigned)

    def test_approve_swap_moves_assignment(self):
        a = self._create()
        service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        original, replacement = service.approve_swap(
            self.db, a.id, org_id=self.org_id, approver_id=self.manager_id
        )

        self.assertEqual(original.status, AssignmentStatus.cancelled)
        self.assertEqual(original.swap_approved_by, self.manager_id)
        self.assertIsNotNone(original.swap_approved_at)
        self.assertEqual(replacement.status, AssignmentStatus.assigned)
        self.assertEqual(replacement.employee_id, self.e2.id)
        self.assertEqual(
            (replacement.shift_id, replacement.date, replacement.roster_id, replacement.org_id),
            (a.shift_id, a.date, a.roster_id, a.org_id),
        )
        active_e2 = service.get_assignments(
            self.db, org_id=self.org_id, employee_id=self.e2.id, status=AssignmentStatus.assigned
        )
        self.assertEqual([r.id for r in active_e2], [replacement.id])

        types = [e.event_type for e in self.db.scalars(select(SchedulingEvent).order_by(SchedulingEvent.id))]
        self.assertEqual(types, ["assignment.created", "assignment.swap_requested", "assignment.swap_approved"])

    def test_approve_swap_requires_pending_request(self):
        a = self._create()
        with self.assertRaises(ConflictError) as ctx:
            service.approve_swap(self.db, a.id, org_id=self.org_id, approver_id=self.manager_id)
        self.assertEqual(ctx.exception.detail, "No swap request pending for this assignment")

    def test_approve_swap_is_atomic(self):
        a = self._create()
        service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        with patch("assignment.service.record_event", side_effect=RuntimeError("store went away")):
            with self.assertRaises(RuntimeError):
                service.approve_swap(self.db, a.id, org_id=self.org_id, approver_id=self.manager_id)

        original = service.get_assignment_for_org(self.db, a.id, self.org_id)
        self.assertEqual(original.status, AssignmentStatus.swap_requested)
        self.assertIsNone(original.swap_approved_by)
        self.assertEqual(self._count(employee_id=self.e2.id), 0)

    def test_approve_swap_conflicts_when_target_already_bound(self):
        a = self._create()
        self._create(employee_id=self.e2.id)
        service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        with self.assertRaises(ConflictError):
            service.approve_swap(self.db, a.id, org_id=self.org_id, approver_id=self.manager_id)
        original = service.get_assignment_for_org(self.db, a.id, self.org_id)
        self.assertEqual(original.status, AssignmentStatus.swap_requested)
        self.assertEqual(self._count(employee_id=self.e2.id), 1)

    def test_approve_swap_on_full_shift_keeps_staffing(self):
        self.morning.maximum_staff = 1
        self.db.commit()
        a = self._create()
        service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        _, replacement = service.approve_swap(self.db, a.id, org_id=self.org_id, approver_id=self.manager_id)
        self.assertEqual(replacement.employee_id, self.e2.id)

    # ---------- cancel / update / delete ----------
    def test_cancel_from_swap_requested(self):
        a = self._create()
        service.request_swap(
            self.db, a.id, org_id=self.org_id, employee_id=self.e1.id, target_employee_id=self.e2.id
        )
        cancelled = service.cancel_assignment(self.db, a.id, org_id=self.org_id, actor_id=self.manager_id)
        self.assertEqual(cancelled.status, AssignmentStatus.cancelled)
        self.assertIsNotNone(cancelled.cancelled_at)
        with self.assertRaises(ConflictError):
            service.cancel_assignment(self.db, a.id, org_id=self.org_id, actor_id=self.manager_id)

    def test_update_sets_corrections_only(self):
        a = self._create()
        updated = service.update_assignment(
            self.db,
            a.id,
            AssignmentUpdate(
                actual_start_time="09:10", actual_end_time="17:40", overtime_minutes=30,
                performance=PerformanceRating.good, notes="Covered late delivery",
            ),
            org_id=self.org_id,
            actor_id=self.manager_id,
        )
        self.assertEqual(updated.actual_start_time, time(9, 10))
        self.assertEqual(updated.overtime_minutes, 30)
        self.assertEqual(updated.performance, PerformanceRating.good)
        self.assertEqual(updated.updated_by, self.manager_id)
        self.assertEqual(updated.status, AssignmentStatus.assigned)

    def test_update_rejects_null_overtime(self):
        a = self._create()
        with self.assertRaises(ValidationError) as ctx:
            service.update_assignment(
                self.db,
                a.id,
                AssignmentUpdate.model_validate({"overtime_minutes": None}),
                org_id=self.org_id,
                actor_id=self.manager_id,
            )
        self.assertEqual(ctx.exception.detail, "overtime_minutes cannot be null")
        self.assertEqual(service.get_assignment_for_org(self.db, a.id, self.org_id).overtime_minutes, 0)

    def test_update_clears_nullable_corrections(self):
        a = self._create()
        service.update_assignment(
            self.db, a.id, AssignmentUpdate(notes="Late"), org_id=self.org_id, actor_id=self.manager_id
        )
        cleared = service.update_assignment(
            self.db, a.id, AssignmentUpdate.model_validate({"notes": None}),
            org_id=self.org_id, actor_id=self.manager_id,
        )
        self.assertIsNone(cleared.notes)

    def test_update_unknown_is_not_found(self):
        with self.assertRaises(NotFoundError):
            service.update_assignment(
                self.db, 999, AssignmentUpdate(notes="x"), org_id=self.org_id, actor_id=self.manager_id
            )

    def test_delete_is_hard(self):
        a = self._create()
        service.delete_assignment(self.db, a.id, org_id=self.org_id)
        self.assertIsNone(self.db.get(ShiftAssignment, a.id))
        with self.assertRaises(NotFoundError):
            service.delete_assignment(self.db, a.id, org_id=self.org_id)


if __name__ == "__main__":
    unittest.main()
