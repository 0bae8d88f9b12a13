# backend/hourgym/services/gym_service.py
"""
Gym Service for HourGym

Gym owners set up their gym (timezone, cancellation policy, contacts) and the
spaces renters book. Renters browse the active spaces.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import SPACES_PER_PAGE
from ..core.enums import UserRole
from ..core.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from ..models.gym import Gym, Space
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.gym import GymCreate, GymUpdate, SpaceCreate, SpaceUpdate
from .base import BaseService
from .pricing import ensure_min_hourly_rate

if TYPE_CHECKING:
    from ..repositories.space_repository import SpaceRepository

logger = logging.getLogger(__name__)


def _present_fields(data: BaseModel, required: Tuple[str, ...]) -> Dict[str, Any]:
    """Fields sent in a partial update. A null is kept only for columns that may be empty."""
    updates = data.model_dump(exclude_unset=True)
    return {k: v for k, v in updates.items() if v is not None or k not in required}


class GymService(BaseService):
    def __init__(
        self,
        db: Session,
        space_repository: Optional["SpaceRepository"] = None,
        min_hourly_rate: Optional[int] = None,
    ):
        super().__init__(db)
        self.space_repository = space_repository or RepositoryFactory.create_space_repository(db)
        self.min_hourly_rate = (
            min_hourly_rate if min_hourly_rate is not None else settings.min_hourly_rate_cents
        )

    # Gyms

    def get_gym_with_spaces(self, owner: User) -> Gym:
        gym = self.space_repository.get_gym_by_owner(owner.id)
        if gym is None:
            raise NotFoundException("You have not set up a gym yet", code="GYM_NOT_FOUND")
        return gym

    def _get_owned_gym(self, owner: User, gym_id: str) -> Gym:
        gym = self.space_repository.get_gym(gym_id)
        if gym is None:
            raise NotFoundException("Gym not found", code="GYM_NOT_FOUND")
        if gym.owner_id != owner.id:
            raise ForbiddenException("Only the gym owner can manage this gym", code="NOT_GYM_OWNER")
        return gym

    @BaseService.measure_operation("create_gym")
    def create_gym(self, owner: User, data: GymCreate) -> Gym:
        """
        Create the user's gym and make them a gym owner.

        Raises:
            BusinessRuleException: The user already runs a gym
        """
        if self.space_repository.get_gym_by_owner(owner.id) is not None:
            raise BusinessRuleException("You already have a gym", code="GYM_ALREADY_EXISTS")

        with self.transaction():
            values = data.model_dump()
            values["cancellation_policy"] = data.cancellation_policy.value
            gym = self.space_repository.create_gym(owner_id=owner.id, **values)
            if not owner.is_gym_owner:
                owner.role = UserRole.GYM_OWNER.value

        self.logger.info(f"Gym {gym.id} created for owner {owner.id}")
        return gym

    @BaseService.measure_operation("update_gym")
    def update_gym(self, owner: User, gym_id: str, data: GymUpdate) -> Gym:
        gym = self._get_owned_gym(owner, gym_id)
        updates = _present_fields(data, required=("name", "timezone", "cancellation_policy"))
        if "cancellation_policy" in updates:
            updates["cancellation_policy"] = updates["cancellation_policy"].value

        with self.transaction():
            for field, value in updates.items():
                setattr(gym, field, value)

        self.logger.info(f"Gym {gym.id} updated: {sorted(updates)}")
        return gym

    # Spaces

    @BaseService.measure_operation("create_space")
    def create_space(self, owner: User, gym_id: str, data: SpaceCreate) -> Space:
        """
        Add a space to the owner's gym.

        Raises:
            ValidationException: Hourly rate below the platform minimum
        """
        self._get_owned_gym(owner, gym_id)
        ensure_min_hourly_rate(data.hourly_rate, self.min_hourly_rate)

        with self.transaction():
            values = data.model_dump()
            values["space_type"] = data.space_type.value
            space = self.space_repository.create(gym_id=gym_id, **values)

        self.logger.info(f"Space {space.id} created at gym {gym_id} ({space.hourly_rate}c/h)")
        return space

    @BaseService.measure_operation("update_space")
    def update_space(self, owner: User, space_id: str, data: SpaceUpdate) -> Space:
        space = self.space_repository.get_space_with_gym(space_id)
        if space is None:
            raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")
        if space.gym.owner_id != owner.id:
            raise ForbiddenException("Only the gym owner can manage this space", code="NOT_SPACE_OWNER")

        updates = _present_fields(
            data, required=("name", "space_type", "hourly_rate", "is_active")
        )
        if "hourly_rate" in updates:
            ensure_min_hourly_rate(updates["hourly_rate"], self.min_hourly_rate)
        if "space_type" in updates:
            updates["space_type"] = updates["space_type"].value

        with self.transaction():
            for field, value in updates.items():
                setattr(space, field, value)

        return space

    def list_spaces(
        self, limit: int = SPACES_PER_PAGE, offset: int = 0, space_type: Optional[str] = None
    ) -> List[Space]:
        return self.space_repository.list_active_spaces(limit, offset, space_type)
