"""
Tests for ScopedDataGateway.

Each test acts through the gateway as a concrete principal against two
schools, green-valley-school and blue-river-school, and checks that nothing
one school does can reach the other's rows.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.authorization_service import Resource
from src.application.services.data_gateway import ScopedDataGateway
from src.domain.entities import ANONYMOUS
from src.domain.enums import ApplicationStatus, Role, TenantStatus
from src.domain.exceptions import (BackendTimeoutException,
                                   BackendUnavailableException,
                                   ConflictException, ForbiddenException,
                                   NotFoundException, UnauthorizedException,
                                   ValidationException)
from src.infrastructure.persistence.models import Application, Result, Student

ADMISSION = {
    "class_applied": "Class 6",
    "student_info": {"name": "Rahim Uddin", "dateOfBirth": "2014-03-02", "gender": "male"},
    "parent_info": {"fatherName": "Karim Uddin", "motherName": "Amina Begum"},
    "message": "Looking forward to joining",
}


def student(roll_number: str, name: str = "Nadia Islam") -> dict:
    return {"roll_number": roll_number, "full_name": name, "class_name": "Class 7"}


def result(roll_number: str, subject: str = "Mathematics", marks: float = 72) -> dict:
    return {
        "roll_number": roll_number,
        "class_name": "Class 7",
        "subject": subject,
        "marks": marks,
        "total_marks": 100,
        "exam_type": "Half Yearly",
    }


def gateway(db, principal, **kwargs) -> ScopedDataGateway:
    return ScopedDataGateway(db, principal, **kwargs)


class TestTenantIsolation:
    async def test_list_only_returns_own_school(
        self, school, other_school, owner, other_owner, test_db
    ):
        await gateway(test_db, owner.principal).write(school, Resource.STUDENT, student("2024001"))
        await gateway(test_db, other_owner.principal).write(
            other_school, Resource.STUDENT, student("2024002")
        )

        ours = await gateway(test_db, owner.principal).list(school, Resource.STUDENT)

        assert [s.roll_number for s in ours] == ["2024001"]
        assert all(s.tenant_id == school.id for s in ours)

    async def test_other_schools_owner_cannot_read(self, school, other_owner, test_db):
        with pytest.raises(ForbiddenException) as exc_info:
            await gateway(test_db, other_owner.principal).list(school, Resource.STUDENT)

        assert exc_info.value.reason == "wrong_tenant"

    async def test_guessed_id_from_other_school_is_refused(
        self, school, other_school, owner, other_owner, test_db
    ):
        """
        GIVEN a student in green-valley
        WHEN blue-river's owner updates it through their own school
        THEN the write is refused and the row is unchanged
        """
        created = await gateway(test_db, owner.principal).write(
            school, Resource.STUDENT, student("2024001")
        )

        with pytest.raises(ForbiddenException):
            await gateway(test_db, other_owner.principal).write(
                other_school, Resource.STUDENT, {"id": created.id, "full_name": "Hijacked"}
            )
        with pytest.raises(ForbiddenException):
            await gateway(test_db, other_owner.principal).delete(
                other_school, Resource.STUDENT, created.id
            )

        reloaded = await test_db.get(Student, created.id, populate_existing=True)
        assert reloaded.full_name == "Nadia Islam"

    async def test_read_by_id_from_other_school_not_found(
        self, school, other_school, owner, other_owner, test_db
    ):
        created = await gateway(test_db, owner.principal).write(
            school, Resource.STUDENT, student("2024001")
        )

        with pytest.raises(NotFoundException):
            await gateway(test_db, other_owner.principal).get(
                other_school, Resource.STUDENT, created.id
            )

    async def test_payload_tenant_id_is_overridden(self, school, other_school, owner, test_db):
        payload = {**student("2024001"), "tenant_id": other_school.id}

        created = await gateway(test_db, owner.principal).write(school, Resource.STUDENT, payload)

        assert created.tenant_id == school.id

    async def test_denied_call_issues_no_query(self, school, teacher):
        db = AsyncMock(spec=AsyncSession)
        gw = gateway(db, teacher.principal)

        with pytest.raises(ForbiddenException):
            await gw.write(school, Resource.STUDENT, student("2024001"))
        with pytest.raises(ForbiddenException):
            await gw.delete(school, Resource.RESULT, "some-id")
        with pytest.raises(UnauthorizedException):
            await gateway(db, ANONYMOUS).list(school, Resource.STUDENT)

        db.execute.assert_not_called()
        db.get.assert_not_called()
        db.add.assert_not_called()


class TestUniqueness:
    async def test_roll_number_unique_per_school_only(
        self, school, other_school, owner, other_owner, test_db
    ):
        await gateway(test_db, owner.principal).write(school, Resource.STUDENT, student("2024001"))
        await gateway(test_db, other_owner.principal).write(
            other_school, Resource.STUDENT, student("2024001")
        )

        with pytest.raises(ConflictException) as exc_info:
            await gateway(test_db, owner.principal).write(
                school, Resource.STUDENT, student("2024001", "Someone Else")
            )

        assert exc_info.value.details == {"field": "roll_number"}
        count = await test_db.scalar(select(func.count()).select_from(Student))
        assert count == 2

    async def test_roll_number_cannot_be_edited(self, school, owner, test_db):
        created = await gateway(test_db, owner.principal).write(
            school, Resource.STUDENT, student("2024001")
        )

        with pytest.raises(ValidationException):
            await gateway(test_db, owner.principal).write(
                school, Resource.STUDENT, {"id": created.id, "roll_number": "2024999"}
            )


class TestApplications:
    async def test_public_submission_forced_pending(self, school, test_db):
        created = await gateway(test_db, ANONYMOUS).write(
            school, Resource.APPLICATION, {**ADMISSION, "status": "approved", "reviewed_by": "me"}
        )

        assert created.status == ApplicationStatus.PENDING.value
        assert created.reviewed_by is None
        assert created.reference_number.startswith("ADM-")
        assert created.tenant_id == school.id

    async def test_submission_refused_when_applications_disabled(self, make_school, test_db):
        closed = await make_school(
            "closed-school", settings={"features": {"enableApplications": False}}
        )

        with pytest.raises(ForbiddenException):
            await gateway(test_db, ANONYMOUS).write(closed, Resource.APPLICATION, ADMISSION)

    async def test_status_cannot_be_written_directly(self, school, owner, test_db):
        created = await gateway(test_db, ANONYMOUS).write(school, Resource.APPLICATION, ADMISSION)

        with pytest.raises(ValidationException):
            await gateway(test_db, owner.principal).write(
                school, Resource.APPLICATION, {"id": created.id, "status": "approved"}
            )

    async def test_transition_is_compare_and_set(self, school, owner, admin, test_db):
        """
        GIVEN two reviewers who both saw an application as pending
        WHEN the first approves and the second then rejects
        THEN exactly one transition happens and the listener fires once
        """
        listener = AsyncMock()
        created = await gateway(test_db, ANONYMOUS).write(school, Resource.APPLICATION, ADMISSION)

        first = gateway(test_db, owner.principal, listeners=[listener])
        second = gateway(test_db, admin.principal, listeners=[listener])

        approved = await first.transition(
            school, created.id, ApplicationStatus.PENDING, ApplicationStatus.APPROVED
        )
        with pytest.raises(ConflictException):
            await second.transition(
                school, created.id, ApplicationStatus.PENDING, ApplicationStatus.REJECTED
            )

        assert approved.status == ApplicationStatus.APPROVED.value
        assert approved.reviewed_by == owner.principal.id
        assert approved.reviewed_at is not None
        listener.on_transition.assert_awaited_once()
        assert listener.on_transition.await_args.kwargs["current"] is ApplicationStatus.APPROVED

        stored = await test_db.get(Application, created.id, populate_existing=True)
        assert stored.status == ApplicationStatus.APPROVED.value

    async def test_illegal_transition_rejected(self, school, owner, test_db):
        created = await gateway(test_db, ANONYMOUS).write(school, Resource.APPLICATION, ADMISSION)

        with pytest.raises(ValidationException):
            await gateway(test_db, owner.principal).transition(
                school, created.id, ApplicationStatus.APPROVED, ApplicationStatus.PENDING
            )

    async def test_transition_on_other_schools_application(
        self, school, other_school, other_owner, test_db
    ):
        created = await gateway(test_db, ANONYMOUS).write(school, Resource.APPLICATION, ADMISSION)

        with pytest.raises(ForbiddenException):
            await gateway(test_db, other_owner.principal).transition(
                other_school, created.id, ApplicationStatus.PENDING, ApplicationStatus.APPROVED
            )

        stored = await test_db.get(Application, created.id, populate_existing=True)
        assert stored.status == ApplicationStatus.PENDING.value

    async def test_transition_missing_application(self, school, owner, test_db):
        with pytest.raises(NotFoundException):
            await gateway(test_db, owner.principal).transition(
                school, "missing", ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW
            )

    async def test_listener_failure_keeps_transition(self, school, owner, test_db, caplog):
        failing = AsyncMock()
        failing.on_transition.side_effect = RuntimeError("mailer down")
        created = await gateway(test_db, ANONYMOUS).write(school, Resource.APPLICATION, ADMISSION)

        moved = await gateway(test_db, owner.principal, listeners=[failing]).transition(
            school, created.id, ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW
        )

        assert moved.status == ApplicationStatus.UNDER_REVIEW.value
        assert "mailer down" in caplog.text


class TestResults:
    async def test_grade_computed_and_recomputed(self, school, teacher, test_db):
        gw = gateway(test_db, teacher.principal)

        created = await gw.write(school, Resource.RESULT, {**result("2024001"), "grade": "A+"})
        assert created.grade == "A"

        updated = await gw.write(school, Resource.RESULT, {"id": created.id, "marks": 35})
        assert updated.grade == "D"

    async def test_marks_above_total_rejected(self, school, teacher, test_db):
        with pytest.raises(ValidationException):
            await gateway(test_db, teacher.principal).write(
                school, Resource.RESULT, result("2024001", marks=120)
            )

    async def test_bulk_create_is_all_or_nothing(self, school, owner, test_db):
        batch = [result("2024001"), result("2024002"), result("2024001")]

        with pytest.raises(ConflictException):
            await gateway(test_db, owner.principal).write_many(school, Resource.RESULT, batch)

        count = await test_db.scalar(select(func.count()).select_from(Result))
        assert count == 0

    async def test_bulk_create(self, school, owner, test_db):
        created = await gateway(test_db, owner.principal).write_many(
            school, Resource.RESULT, [result("2024001"), result("2024001", "English", 30)]
        )

        assert [r.grade for r in created] == ["A", "F"]

    async def test_clearing_required_field_is_invalid_not_conflict(self, school, owner, test_db):
        """
        GIVEN an existing result
        WHEN an update tries to blank its subject
        THEN it is rejected as bad input and the row keeps its subject
        """
        gw = gateway(test_db, owner.principal)
        created = await gw.write(school, Resource.RESULT, result("2024001"))

        with pytest.raises(ValidationException) as exc_info:
            await gw.write(school, Resource.RESULT, {"id": created.id, "subject": None})

        assert exc_info.value.details == {"field": "subject"}
        stored = await test_db.get(Result, created.id, populate_existing=True)
        assert stored.subject == "Mathematics"

    @pytest.mark.parametrize(
        ("driver_message", "expected"),
        [
            ("UNIQUE constraint failed: result.roll_number", ConflictException),
            ("NOT NULL constraint failed: result.subject", ValidationException),
            ("FOREIGN KEY constraint failed", ValidationException),
        ],
    )
    async def test_only_unique_violations_are_conflicts(
        self, school, owner, driver_message, expected
    ):
        db = AsyncMock(spec=AsyncSession)
        db.flush.side_effect = IntegrityError("INSERT", {}, Exception(driver_message))

        with pytest.raises(expected):
            await gateway(db, owner.principal).write(school, Resource.RESULT, result("2024001"))


class TestFiltersAndFields:
    async def test_filter_by_column(self, school, owner, test_db):
        gw = gateway(test_db, owner.principal)
        await gw.write(school, Resource.STUDENT, student("2024001"))
        await gw.write(school, Resource.STUDENT, {**student("2024002"), "class_name": "Class 8"})

        found = await gw.list(school, Resource.STUDENT, {"class_name": "Class 8"})

        assert [s.roll_number for s in found] == ["2024002"]

    async def test_unknown_filter_rejected(self, school, owner, test_db):
        with pytest.raises(ValidationException):
            await gateway(test_db, owner.principal).list(school, Resource.STUDENT, {"nope": 1})

    async def test_unknown_field_rejected(self, school, owner, test_db):
        with pytest.raises(ValidationException) as exc_info:
            await gateway(test_db, owner.principal).write(
                school, Resource.STUDENT, {**student("2024001"), "favourite_colour": "blue"}
            )

        assert exc_info.value.details == {"field": "favourite_colour"}


class TestSchoolStatus:
    async def test_suspended_school_is_read_only(self, make_school, make_account, test_db):
        suspended = await make_school("sleepy-school", status=TenantStatus.SUSPENDED)
        account = await make_account(suspended, Role.OWNER)
        gw = gateway(test_db, account.principal)

        assert await gw.list(suspended, Resource.STUDENT) == []
        with pytest.raises(ForbiddenException) as exc_info:
            await gw.write(suspended, Resource.STUDENT, student("2024001"))

        assert exc_info.value.reason == "tenant_inactive"


class TestSettings:
    async def test_update_merges_top_level_keys(self, make_school, make_account, test_db):
        configured = await make_school(
            "configured-school", settings={"theme": "green", "contact": {"phone": "1"}}
        )
        account = await make_account(configured, Role.OWNER)

        updated = await gateway(test_db, account.principal).update_settings(
            configured, name="Configured High", settings={"theme": "blue"}
        )

        assert updated.name == "Configured High"
        assert updated.slug == "configured-school"
        assert updated.settings == {"theme": "blue", "contact": {"phone": "1"}}

    async def test_teacher_cannot_update_settings(self, school, teacher, test_db):
        gw = gateway(test_db, teacher.principal)

        assert (await gw.read_settings(school)).id == school.id
        with pytest.raises(ForbiddenException):
            await gw.update_settings(school, settings={"theme": "red"})


class TestBackendFailures:
    async def test_timeout_is_retryable(self, school, owner):
        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        db = AsyncMock(spec=AsyncSession)
        db.execute.side_effect = hang

        with pytest.raises(BackendTimeoutException) as exc_info:
            await gateway(db, owner.principal, timeout=0.01).list(school, Resource.STUDENT)

        assert exc_info.value.retryable is True

    async def test_driver_error_becomes_unavailable(self, school, owner):
        db = AsyncMock(spec=AsyncSession)
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))

        with pytest.raises(BackendUnavailableException):
            await gateway(db, owner.principal).list(school, Resource.STUDENT)
