# backend/hourgym/repositories/availability_repository.py
"""
Availability Repository for HourGym

Reads and writes weekly templates and date overrides for a space.
"""

from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityOverride, AvailabilityTemplate
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityTemplate]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityTemplate)

    # Templates

    def get_templates_for_space(
        self, space_id: str, day_of_week: Optional[int] = None
    ) -> List[AvailabilityTemplate]:
        try:
            query = self.db.query(AvailabilityTemplate).filter(
                AvailabilityTemplate.space_id == space_id
            )
            if day_of_week is not None:
                query = query.filter(AvailabilityTemplate.day_of_week == day_of_week)
            return query.order_by(
                AvailabilityTemplate.day_of_week, AvailabilityTemplate.start_time
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting templates for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get templates: {str(e)}")

    def create_template(
        self, space_id: str, day_of_week: int, start_time: time, end_time: time
    ) -> AvailabilityTemplate:
        if not 0 <= day_of_week <= 6:
            raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
        if start_time >= end_time:
            raise ValueError("Template start time must be before end time")
        return self.create(
            space_id=space_id, day_of_week=day_of_week, start_time=start_time, end_time=end_time
        )

    def get_template(self, space_id: str, template_id: str) -> Optional[AvailabilityTemplate]:
        return self.find_one_by(space_id=space_id, id=template_id)

    # Overrides

    def get_overrides_for_date(self, space_id: str, on_date: date) -> List[AvailabilityOverride]:
        try:
            return (
                self.db.query(AvailabilityOverride)
                .filter(
                    AvailabilityOverride.space_id == space_id,
                    AvailabilityOverride.date == on_date,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overrides for space {space_id} on {on_date}: {str(e)}")
            raise RepositoryException(f"Failed to get overrides: {str(e)}")

    def create_override(
        self,
        space_id: str,
        on_date: date,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        reason: Optional[str] = None,
    ) -> AvailabilityOverride:
        if (start_time is None) != (end_time is None):
            raise ValueError("Override window needs both start and end, or neither")
        if start_time is not None and end_time is not None and start_time >= end_time:
            raise ValueError("Override start time must be before end time")
        try:
            override = AvailabilityOverride(
                space_id=space_id,
                date=on_date,
                blocked=True,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
            )
            self.db.add(override)
            self.db.flush()
            return override
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating override for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to create override: {str(e)}")

    def delete_override(self, space_id: str, override_id: str) -> bool:
        try:
            deleted = (
                self.db.query(AvailabilityOverride)
                .filter(
                    AvailabilityOverride.space_id == space_id,
                    AvailabilityOverride.id == override_id,
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return deleted > 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting override {override_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete override: {str(e)}")
