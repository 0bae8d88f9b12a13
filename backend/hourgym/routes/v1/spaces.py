"""
Space availability routes - API v1

Public space browsing and slot lookup, plus gym-owner edits to a space and
its weekly templates and date overrides. Mounted under /api/v1/spaces.
"""

import asyncio
from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ...api.dependencies import get_availability_service, get_gym_service, require_gym_owner
from ...core.constants import SPACES_PER_PAGE
from ...core.enums import SpaceType
from ...models.user import User
from ...schemas.availability import (
    OverrideCreate,
    OverrideResponse,
    SlotsResponse,
    TemplateCreate,
    TemplateResponse,
    TimeSlotResponse,
)
from ...schemas.gym import SpaceListResponse, SpaceResponse, SpaceUpdate
from ...services.availability_service import AvailabilityService
from ...services.gym_service import GymService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["spaces"])


@router.get("", response_model=SpaceListResponse)
async def list_spaces(
    limit: int = Query(SPACES_PER_PAGE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    space_type: Optional[SpaceType] = Query(None),
    gym_service: GymService = Depends(get_gym_service),
) -> SpaceListResponse:
    """Bookable spaces at gyms that accept payments."""
    spaces = await asyncio.to_thread(
        gym_service.list_spaces, limit, offset, space_type.value if space_type else None
    )
    return SpaceListResponse(
        spaces=[SpaceResponse.model_validate(s, from_attributes=True) for s in spaces],
        limit=limit,
        offset=offset,
    )


@router.patch("/{space_id}", response_model=SpaceResponse)
async def update_space(
    space_id: str,
    payload: SpaceUpdate = Body(...),
    current_user: User = Depends(require_gym_owner),
    gym_service: GymService = Depends(get_gym_service),
) -> SpaceResponse:
    """Edit a space. Setting is_active to false hides it from browsing and booking."""
    space = await asyncio.to_thread(gym_service.update_space, current_user, space_id, payload)
    return SpaceResponse.model_validate(space, from_attributes=True)


@router.get("/{space_id}/slots", response_model=SlotsResponse)
async def get_space_slots(
    space_id: str,
    on_date: date = Query(..., alias="date", description="Local calendar date (YYYY-MM-DD)"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SlotsResponse:
    """Hourly slots for a space on a date, in chronological order."""
    space = await asyncio.to_thread(availability_service.get_space, space_id)
    slots = await asyncio.to_thread(availability_service.get_slots_for_date, space_id, on_date)
    return SlotsResponse(
        space_id=space_id,
        date=on_date,
        timezone=space.gym.timezone,
        slots=[
            TimeSlotResponse(start=slot.start, end=slot.end, available=slot.available)
            for slot in slots
        ],
    )


@router.post(
    "/{space_id}/availability/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_availability_template(
    space_id: str,
    payload: TemplateCreate = Body(...),
    current_user: User = Depends(require_gym_owner),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> TemplateResponse:
    template = await asyncio.to_thread(
        availability_service.set_weekly_template,
        current_user,
        space_id,
        payload.day_of_week,
        payload.start_time,
        payload.end_time,
    )
    return TemplateResponse.model_validate(template, from_attributes=True)


@router.delete(
    "/{space_id}/availability/templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_availability_template(
    space_id: str,
    template_id: str,
    current_user: User = Depends(require_gym_owner),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    await asyncio.to_thread(
        availability_service.remove_template, current_user, space_id, template_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{space_id}/availability/overrides",
    response_model=OverrideResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_availability_override(
    space_id: str,
    payload: OverrideCreate = Body(...),
    current_user: User = Depends(require_gym_owner),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> OverrideResponse:
    """Block a whole date, or a window of it when start_time and end_time are given."""
    override = await asyncio.to_thread(
        availability_service.block_date,
        current_user,
        space_id,
        payload.date,
        payload.start_time,
        payload.end_time,
        payload.reason,
    )
    return OverrideResponse.model_validate(override, from_attributes=True)


@router.delete(
    "/{space_id}/availability/overrides/{override_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_availability_override(
    space_id: str,
    override_id: str,
    current_user: User = Depends(require_gym_owner),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    await asyncio.to_thread(
        availability_service.remove_override, current_user, space_id, override_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
