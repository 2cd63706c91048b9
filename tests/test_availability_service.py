# tests/test_availability_service.py
"""Weekly rules and teacher timezone."""
import uuid
from datetime import time

import pytest

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.services.availability.availability_service import AvailabilityService
from tests.conftest import OTHER_TEACHER_ID, TEACHER_ID


class TestRules:

    def test_add_and_list(self, db):
        AvailabilityService.add_rule(db, TEACHER_ID, 3, time(14), time(18))
        AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))
        AvailabilityService.add_rule(db, TEACHER_ID, 1, time(8), time(9))
        AvailabilityService.add_rule(db, OTHER_TEACHER_ID, 1, time(9), time(12))

        rules = AvailabilityService.list_rules(db, TEACHER_ID)

        assert [(r.day_of_week, r.start_time) for r in rules] == [(1, time(8)), (1, time(9)), (3, time(14))]
        assert all(r.is_active for r in rules)

    def test_list_for_one_day(self, db):
        AvailabilityService.add_rule(db, TEACHER_ID, 3, time(14), time(18))
        AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))

        assert len(AvailabilityService.list_rules(db, TEACHER_ID, day_of_week=1)) == 1

    def test_overlapping_rules_are_accepted(self, db):
        AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))
        AvailabilityService.add_rule(db, TEACHER_ID, 1, time(10), time(13))

        assert len(AvailabilityService.list_rules(db, TEACHER_ID, day_of_week=1)) == 2

    @pytest.mark.parametrize("day", [-1, 7])
    def test_invalid_day(self, db, day):
        with pytest.raises(ValidationError):
            AvailabilityService.add_rule(db, TEACHER_ID, day, time(9), time(12))

    @pytest.mark.parametrize("start, end", [(time(12), time(9)), (time(9), time(9))])
    def test_invalid_range(self, db, start, end):
        with pytest.raises(ValidationError):
            AvailabilityService.add_rule(db, TEACHER_ID, 1, start, end)

    def test_owner_removes_rule(self, db):
        rule = AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))

        AvailabilityService.remove_rule(db, rule.id, TEACHER_ID)

        assert AvailabilityService.list_rules(db, TEACHER_ID) == []

    def test_other_teacher_cannot_remove(self, db):
        rule = AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))

        with pytest.raises(AuthorizationError):
            AvailabilityService.remove_rule(db, rule.id, OTHER_TEACHER_ID)

        assert len(AvailabilityService.list_rules(db, TEACHER_ID)) == 1

    def test_admin_removes_any_rule(self, db):
        rule = AvailabilityService.add_rule(db, TEACHER_ID, 1, time(9), time(12))

        AvailabilityService.remove_rule(db, rule.id, OTHER_TEACHER_ID, is_admin=True)

        assert AvailabilityService.list_rules(db, TEACHER_ID) == []

    def test_remove_unknown_rule(self, db):
        with pytest.raises(NotFoundError):
            AvailabilityService.remove_rule(db, uuid.uuid4(), TEACHER_ID)


class TestTimezone:

    def test_default_timezone(self, db):
        assert AvailabilityService.get_timezone(db, TEACHER_ID).key == "Europe/Madrid"

    def test_set_and_update(self, db):
        AvailabilityService.set_timezone(db, TEACHER_ID, "America/Bogota")
        AvailabilityService.set_timezone(db, TEACHER_ID, "Asia/Tokyo")

        assert AvailabilityService.get_timezone(db, TEACHER_ID).key == "Asia/Tokyo"

    def test_unknown_timezone(self, db):
        with pytest.raises(ValidationError):
            AvailabilityService.set_timezone(db, TEACHER_ID, "Mars/Olympus_Mons")


class TestManagePermission:

    def test_teacher_manages_own(self, teacher):
        AvailabilityService.ensure_can_manage(teacher, TEACHER_ID)

    def test_admin_manages_any(self, admin):
        AvailabilityService.ensure_can_manage(admin, TEACHER_ID)

    def test_others_cannot(self, other_teacher, student):
        for actor in (other_teacher, student):
            with pytest.raises(AuthorizationError):
                AvailabilityService.ensure_can_manage(actor, TEACHER_ID)
