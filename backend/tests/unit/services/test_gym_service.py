# backend/tests/unit/services/test_gym_service.py
"""Tests for gym setup and space management."""

import pytest

from hourgym.core.enums import CancellationPolicy, UserRole
from hourgym.core.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from hourgym.models import Gym, Space
from hourgym.schemas.gym import GymCreate, GymUpdate, SpaceCreate, SpaceUpdate
from hourgym.services.gym_service import GymService


@pytest.fixture
def service(db):
    return GymService(db, min_hourly_rate=1500)


class TestGyms:
    def test_create_gym_promotes_user_to_owner(self, db, service, renter):
        gym = service.create_gym(
            renter,
            GymCreate(
                name="  Summit Athletics ",
                timezone="America/Chicago",
                cancellation_policy=CancellationPolicy.STRICT,
            ),
        )

        stored = db.get(Gym, gym.id)
        assert stored.name == "Summit Athletics"
        assert stored.timezone == "America/Chicago"
        assert stored.cancellation_policy == "strict"
        assert stored.stripe_onboarded is False
        assert renter.role == UserRole.GYM_OWNER.value

    def test_defaults_to_moderate_policy(self, service, renter):
        gym = service.create_gym(renter, GymCreate(name="Basement Barbell"))

        assert gym.cancellation_policy == "moderate"
        assert gym.timezone == "America/Denver"

    def test_one_gym_per_owner(self, service, owner, gym):
        with pytest.raises(BusinessRuleException) as exc_info:
            service.create_gym(owner, GymCreate(name="Second Gym"))

        assert exc_info.value.code == "GYM_ALREADY_EXISTS"

    def test_short_name_rejected(self):
        with pytest.raises(ValueError):
            GymCreate(name=" x ")

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError):
            GymCreate(name="Summit", timezone="Mars/Olympus")

    def test_update_changes_only_sent_fields(self, db, service, owner, gym):
        updated = service.update_gym(
            owner,
            gym.id,
            GymUpdate(cancellation_policy=CancellationPolicy.FLEXIBLE, address=None),
        )

        assert updated.cancellation_policy == "flexible"
        assert updated.address is None
        assert updated.name == "Ironworks Gym"
        assert updated.timezone == "America/Denver"

    def test_update_ignores_null_for_required_fields(self, service, owner, gym):
        updated = service.update_gym(owner, gym.id, GymUpdate(name=None, timezone=None))

        assert updated.name == "Ironworks Gym"
        assert updated.timezone == "America/Denver"

    def test_update_by_other_user_forbidden(self, service, other_user, gym):
        with pytest.raises(ForbiddenException):
            service.update_gym(other_user, gym.id, GymUpdate(name="Hijacked"))

    def test_get_gym_with_spaces(self, service, owner, gym, space):
        found = service.get_gym_with_spaces(owner)

        assert found.id == gym.id
        assert [s.id for s in found.spaces] == [space.id]

    def test_get_gym_without_one(self, service, renter):
        with pytest.raises(NotFoundException) as exc_info:
            service.get_gym_with_spaces(renter)

        assert exc_info.value.code == "GYM_NOT_FOUND"


class TestSpaces:
    def test_create_space(self, db, service, owner, gym):
        space = service.create_space(
            owner, gym.id, SpaceCreate(name="Turf Lane", space_type="turf", hourly_rate=4000)
        )

        stored = db.get(Space, space.id)
        assert stored.gym_id == gym.id
        assert stored.space_type == "turf"
        assert stored.hourly_rate == 4000
        assert stored.is_active is True

    def test_rate_below_minimum_rejected(self, db, service, owner, gym):
        with pytest.raises(ValidationException) as exc_info:
            service.create_space(owner, gym.id, SpaceCreate(name="Cheap Mats", hourly_rate=1499))

        assert exc_info.value.code == "HOURLY_RATE_TOO_LOW"
        assert db.query(Space).count() == 0

    def test_configured_minimum_above_floor(self, db, owner, gym):
        service = GymService(db, min_hourly_rate=2500)

        with pytest.raises(ValidationException) as exc_info:
            service.create_space(owner, gym.id, SpaceCreate(name="Studio", hourly_rate=2000))

        assert exc_info.value.details["min_hourly_rate"] == 2500

    def test_create_space_at_other_gym_forbidden(self, service, other_user, gym):
        with pytest.raises(ForbiddenException):
            service.create_space(other_user, gym.id, SpaceCreate(name="Cage", hourly_rate=3000))

    def test_update_space_rate_checked(self, service, owner, space):
        with pytest.raises(ValidationException):
            service.update_space(owner, space.id, SpaceUpdate(hourly_rate=1000))

    def test_deactivate_space(self, service, owner, space):
        updated = service.update_space(owner, space.id, SpaceUpdate(is_active=False, description=None))

        assert updated.is_active is False
        assert updated.hourly_rate == 5000

    def test_list_spaces_hides_inactive_and_unpayable(self, db, service, owner, gym, space, other_user):
        db.add(Space(gym_id=gym.id, name="Closed Room", hourly_rate=3000, is_active=False))
        pending_gym = Gym(owner_id=other_user.id, name="Not Ready Gym", stripe_onboarded=False)
        db.add(pending_gym)
        db.flush()
        db.add(Space(gym_id=pending_gym.id, name="Hidden", hourly_rate=3000))
        db.commit()

        assert [s.id for s in service.list_spaces()] == [space.id]

    def test_list_spaces_filters_by_type(self, db, service, gym, space):
        turf = Space(gym_id=gym.id, name="Turf", space_type="turf", hourly_rate=3000)
        db.add(turf)
        db.commit()

        assert [s.id for s in service.list_spaces(space_type="turf")] == [turf.id]
        assert len(service.list_spaces(limit=1)) == 1
