# backend/hourgym/services/availability_service.py
"""
Availability Service for HourGym

Answers "which hours can be booked on this date" for a space and lets the
owning gym owner edit weekly templates and date overrides.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
import logging
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.orm import Session

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..core.timezone_utils import get_timezone, local_wall_time_to_utc
from ..models.availability import AvailabilityOverride, AvailabilityTemplate
from ..models.gym import Space
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import OverrideEntity, TemplateEntity
from ..schemas.booking import BookingEntity
from .base import BaseService
from .slot_generator import TimeSlot, generate_slots

if TYPE_CHECKING:
    from ..repositories.availability_repository import AvailabilityRepository
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.space_repository import SpaceRepository

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        rules: BookingRules = DEFAULT_BOOKING_RULES,
        availability_repository: Optional["AvailabilityRepository"] = None,
        booking_repository: Optional["BookingRepository"] = None,
        space_repository: Optional["SpaceRepository"] = None,
    ):
        super().__init__(db)
        self.rules = rules
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.space_repository = space_repository or RepositoryFactory.create_space_repository(db)

    def get_space(self, space_id: str) -> Space:
        space = self.space_repository.get_space_with_gym(space_id)
        if space is None or not space.is_active:
            raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")
        return space

    def _get_owned_space(self, owner: User, space_id: str) -> Space:
        space = self.get_space(space_id)
        if space.gym.owner_id != owner.id:
            raise ForbiddenException(
                "Only the gym owner can manage this space's availability",
                code="NOT_SPACE_OWNER",
            )
        return space

    @BaseService.measure_operation("get_slots_for_date")
    def get_slots_for_date(
        self, space_id: str, on_date: date, now: Optional[datetime] = None
    ) -> List[TimeSlot]:
        """
        Read templates, overrides and confirmed bookings for the date, then generate slots.

        Bookings are read for the local day padded by the buffer on both sides,
        so a booking just before midnight still blocks the first slot.
        """
        space = self.get_space(space_id)
        zone = get_timezone(space.gym.timezone)

        day_start = local_wall_time_to_utc(on_date, time(0, 0), zone)
        day_end = local_wall_time_to_utc(on_date + timedelta(days=1), time(0, 0), zone)

        templates = [
            TemplateEntity.model_validate(row)
            for row in self.availability_repository.get_templates_for_space(space_id)
        ]
        overrides = [
            OverrideEntity.model_validate(row)
            for row in self.availability_repository.get_overrides_for_date(space_id, on_date)
        ]
        bookings = [
            BookingEntity.model_validate(row)
            for row in self.booking_repository.get_confirmed_in_window(
                space_id, day_start - self.rules.buffer, day_end + self.rules.buffer
            )
        ]

        return generate_slots(
            on_date,
            templates,
            overrides,
            bookings,
            zone,
            now=now or datetime.now(timezone.utc),
            rules=self.rules,
        )

    @BaseService.measure_operation("set_weekly_template")
    def set_weekly_template(
        self, owner: User, space_id: str, day_of_week: int, start_time: time, end_time: time
    ) -> AvailabilityTemplate:
        self._get_owned_space(owner, space_id)
        try:
            with self.transaction():
                template = self.availability_repository.create_template(
                    space_id, day_of_week, start_time, end_time
                )
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_TEMPLATE") from exc
        self.logger.info(
            "Template %s added for space %s (dow=%s %s-%s)",
            template.id,
            space_id,
            day_of_week,
            start_time,
            end_time,
        )
        return template

    @BaseService.measure_operation("remove_template")
    def remove_template(self, owner: User, space_id: str, template_id: str) -> None:
        self._get_owned_space(owner, space_id)
        template = self.availability_repository.get_template(space_id, template_id)
        if template is None:
            raise NotFoundException("Availability template not found", code="TEMPLATE_NOT_FOUND")
        with self.transaction():
            self.availability_repository.delete(template_id)
        self.logger.info("Template %s removed from space %s", template_id, space_id)

    @BaseService.measure_operation("block_date")
    def block_date(
        self,
        owner: User,
        space_id: str,
        on_date: date,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        reason: Optional[str] = None,
    ) -> AvailabilityOverride:
        """Block a whole day, or just a window of it when start and end are given."""
        self._get_owned_space(owner, space_id)
        try:
            with self.transaction():
                override = self.availability_repository.create_override(
                    space_id, on_date, start_time=start_time, end_time=end_time, reason=reason
                )
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_OVERRIDE") from exc
        return override

    @BaseService.measure_operation("unblock_date")
    def remove_override(self, owner: User, space_id: str, override_id: str) -> None:
        self._get_owned_space(owner, space_id)
        with self.transaction():
            deleted = self.availability_repository.delete_override(space_id, override_id)
        if not deleted:
            raise NotFoundException("Availability override not found", code="OVERRIDE_NOT_FOUND")
