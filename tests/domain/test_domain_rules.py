"""Unit tests for domain value objects, entities and enums"""

import pytest

from src.domain.entities import SchoolEntity
from src.domain.enums import ApplicationStatus, ContentSectionType, Role, TenantStatus
from src.domain.exceptions import (BackendTimeoutException,
                                   ForbiddenException,
                                   PartialProvisioningFailure)
from src.domain.grading import calculate_grade
from src.domain.value_objects import RollNumber, SchoolSlug


class TestSchoolSlug:
    @pytest.mark.parametrize("slug", ["abc", "green-valley-school", "school-2024", "a1b2"])
    def test_valid_slugs(self, slug):
        assert str(SchoolSlug(slug)) == slug

    @pytest.mark.parametrize(
        "slug",
        ["", "ab", "Green-Valley", "green_valley", "-green", "green-", "green--valley", "a" * 51],
    )
    def test_invalid_slugs(self, slug):
        with pytest.raises(ValueError):
            SchoolSlug(slug)

    def test_custom_bounds(self):
        assert SchoolSlug("ab", min_length=2).value == "ab"
        with pytest.raises(ValueError):
            SchoolSlug("abcdef", max_length=5)

    def test_normalize_school_name(self):
        assert SchoolSlug.normalize("Green Valley  School!") == "green-valley-school"
        assert SchoolSlug.normalize("  --St. Mary's -- High-- ") == "st-marys-high"


class TestRollNumber:
    def test_rejects_blank(self):
        with pytest.raises(ValueError):
            RollNumber("   ")

    def test_rejects_too_long(self):
        with pytest.raises(ValueError):
            RollNumber("1" * 65)


class TestGrading:
    @pytest.mark.parametrize(
        ("marks", "total", "grade"),
        [
            (80, 100, "A+"),
            (79.9, 100, "A"),
            (70, 100, "A"),
            (60, 100, "A-"),
            (50, 100, "B"),
            (40, 100, "C"),
            (33, 100, "D"),
            (32, 100, "F"),
            (0, 100, "F"),
            (40, 50, "A+"),
        ],
    )
    def test_grade_thresholds(self, marks, total, grade):
        assert calculate_grade(marks, total) == grade

    def test_marks_above_total_rejected(self):
        with pytest.raises(ValueError):
            calculate_grade(101, 100)

    def test_zero_total_rejected(self):
        with pytest.raises(ValueError):
            calculate_grade(0, 0)


class TestSchoolEntity:
    def make(self, status: TenantStatus, **settings) -> SchoolEntity:
        return SchoolEntity(id="s1", slug="abc", name="ABC", status=status, settings=settings)

    def test_provisioning_school_is_not_public(self):
        school = self.make(TenantStatus.PROVISIONING)
        assert not school.is_public()
        assert not school.accepts_writes()

    def test_suspended_school_is_public_but_read_only(self):
        school = self.make(TenantStatus.SUSPENDED)
        assert school.is_public()
        assert not school.accepts_writes()
        assert not school.accepts_applications()

    def test_applications_follow_feature_flag(self):
        assert self.make(TenantStatus.ACTIVE).accepts_applications()
        closed = self.make(TenantStatus.ACTIVE, features={"enableApplications": False})
        assert not closed.accepts_applications()

    def test_cache_round_trip_keeps_status(self):
        school = self.make(TenantStatus.SUSPENDED, theme="green")
        assert SchoolEntity.from_cache(school.to_cache()) == school

    def test_cannot_suspend_while_provisioning(self):
        with pytest.raises(ValueError):
            self.make(TenantStatus.PROVISIONING).suspend()


class TestApplicationStatus:
    def test_allowed_transitions(self):
        assert ApplicationStatus.PENDING.can_transition_to(ApplicationStatus.APPROVED)
        assert ApplicationStatus.PENDING.can_transition_to(ApplicationStatus.UNDER_REVIEW)
        assert ApplicationStatus.UNDER_REVIEW.can_transition_to(ApplicationStatus.REJECTED)

    def test_terminal_states_are_final(self):
        for terminal in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
            assert terminal.is_terminal
            assert not any(terminal.can_transition_to(target) for target in ApplicationStatus)

    def test_no_self_transition(self):
        assert not ApplicationStatus.PENDING.can_transition_to(ApplicationStatus.PENDING)


def test_role_labels():
    assert Role.OWNER.label == "Owner"
    assert Role.values() == ["owner", "admin", "teacher"]


def test_featured_students_section_value():
    assert ContentSectionType.FEATURED_STUDENTS.value == "students"


class TestExceptionBodies:
    def test_forbidden_body_hides_reason(self):
        body = ForbiddenException("wrong_tenant", "student", "delete").to_dict()
        assert "wrong_tenant" not in str(body)
        assert body["code"] == "FORBIDDEN"

    def test_timeout_is_retryable(self):
        body = BackendTimeoutException("list student", 15).to_dict()
        assert body["retryable"] is True
        assert body["code"] == "BACKEND_TIMEOUT"

    def test_partial_provisioning_reports_rollback(self):
        exc = PartialProvisioningFailure("s1", "content", rolled_back=True)
        assert exc.to_dict()["details"] == {"rolled_back": True}
