# backend/hourgym/routes/v1/gyms.py
"""
Gym routes - API v1

Gym setup and settings for owners, and adding spaces to a gym. Mounted
under /api/v1/gyms.
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_current_user, get_gym_service, require_gym_owner
from ...models.user import User
from ...schemas.gym import (
    GymCreate,
    GymResponse,
    GymUpdate,
    GymWithSpacesResponse,
    SpaceCreate,
    SpaceResponse,
)
from ...services.gym_service import GymService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gyms"])


@router.post(
    "",
    response_model=GymResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "The user already has a gym"}},
)
async def create_gym(
    payload: GymCreate = Body(...),
    current_user: User = Depends(get_current_user),
    gym_service: GymService = Depends(get_gym_service),
) -> GymResponse:
    """Set up the caller's gym. The caller becomes a gym owner."""
    gym = await asyncio.to_thread(gym_service.create_gym, current_user, payload)
    return GymResponse.model_validate(gym, from_attributes=True)


@router.get("/me", response_model=GymWithSpacesResponse)
async def get_my_gym(
    current_user: User = Depends(require_gym_owner),
    gym_service: GymService = Depends(get_gym_service),
) -> GymWithSpacesResponse:
    gym = await asyncio.to_thread(gym_service.get_gym_with_spaces, current_user)
    return GymWithSpacesResponse.model_validate(gym, from_attributes=True)


@router.patch("/{gym_id}", response_model=GymResponse)
async def update_gym(
    gym_id: str,
    payload: GymUpdate = Body(...),
    current_user: User = Depends(require_gym_owner),
    gym_service: GymService = Depends(get_gym_service),
) -> GymResponse:
    gym = await asyncio.to_thread(gym_service.update_gym, current_user, gym_id, payload)
    return GymResponse.model_validate(gym, from_attributes=True)


@router.post(
    "/{gym_id}/spaces",
    response_model=SpaceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Hourly rate below the platform minimum"}},
)
async def create_space(
    gym_id: str,
    payload: SpaceCreate = Body(...),
    current_user: User = Depends(require_gym_owner),
    gym_service: GymService = Depends(get_gym_service),
) -> SpaceResponse:
    space = await asyncio.to_thread(gym_service.create_space, current_user, gym_id, payload)
    return SpaceResponse.model_validate(space, from_attributes=True)
