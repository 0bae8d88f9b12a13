# backend/hourgym/repositories/space_repository.py
"""Space and gym lookups and writes."""

import logging
from typing import Any, List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.exceptions import RepositoryException
from ..models.gym import Gym, Space
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SpaceRepository(BaseRepository[Space]):
    def __init__(self, db: Session):
        super().__init__(db, Space)

    def get_space_with_gym(self, space_id: str) -> Optional[Space]:
        try:
            return (
                self.db.query(Space)
                .options(joinedload(Space.gym))
                .filter(Space.id == space_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get space: {str(e)}")

    def lock_space(self, space_id: str) -> Optional[Space]:
        """
        Take a row lock on the space for the rest of the transaction.

        Serializes booking inserts per space on PostgreSQL. SQLite serializes
        writers on its own, so the plain read is enough there.
        """
        query = self.db.query(Space).filter(Space.id == space_id)
        if self.dialect_name == "postgresql":
            query = query.with_for_update()
        return query.first()

    def list_active_spaces(
        self, limit: int, offset: int = 0, space_type: Optional[str] = None
    ) -> List[Space]:
        """Active spaces at gyms that can take payments, oldest first."""
        query = (
            self.db.query(Space)
            .join(Space.gym)
            .options(joinedload(Space.gym))
            .filter(Space.is_active.is_(True), Gym.stripe_onboarded.is_(True))
        )
        if space_type:
            query = query.filter(Space.space_type == space_type)
        return cast(
            List[Space],
            query.order_by(Space.created_at, Space.id).offset(offset).limit(limit).all(),
        )

    # Gyms

    def get_gym(self, gym_id: str) -> Optional[Gym]:
        return self.db.get(Gym, gym_id)

    def get_gym_by_owner(self, owner_id: str) -> Optional[Gym]:
        """The owner's gym with its spaces loaded. Each owner runs a single gym."""
        return (
            self.db.query(Gym)
            .options(selectinload(Gym.spaces))
            .filter(Gym.owner_id == owner_id)
            .first()
        )

    def create_gym(self, **kwargs: Any) -> Gym:
        gym = Gym(**kwargs)
        try:
            self.db.add(gym)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating gym: {str(e)}")
            raise RepositoryException(f"Failed to create gym: {str(e)}")
        return gym

    def get_gym_by_stripe_account(self, stripe_account_id: str) -> Optional[Gym]:
        return self.db.query(Gym).filter(Gym.stripe_account_id == stripe_account_id).first()
