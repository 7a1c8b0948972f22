"""Trimester routing endpoints."""

from fastapi import APIRouter

from lessonbook.api.dependencies import RouterDep
from lessonbook.api.models import APIResponse, TrimesterStatusResponse, period_to_response

router = APIRouter(prefix="/trimesters", tags=["trimesters"])


@router.get("", response_model=APIResponse[TrimesterStatusResponse])
async def get_trimester_status(trimesters: RouterDep) -> APIResponse[TrimesterStatusResponse]:
    """Get the current and enrollment tables and the surrounding periods."""
    current = await trimesters.get_current_period()
    upcoming = await trimesters.get_next_period()
    return APIResponse(
        data=TrimesterStatusResponse(
            current_table=await trimesters.get_current_trimester_table(),
            enrollment_table=await trimesters.get_enrollment_trimester_table(),
            current_period=period_to_response(current),
            next_period=period_to_response(upcoming) if upcoming else None,
            intent_period_active=await trimesters.is_intent_period_active(),
        )
    )
