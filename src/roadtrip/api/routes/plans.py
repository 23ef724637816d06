"""Trip planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from ...schemas.planning import TripPlanRequest, TripPlanResponse
from ...services.planning.service import plan_timeline_csv, plan_trip

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("", response_model=TripPlanResponse, status_code=status.HTTP_200_OK)
def create_plan(payload: TripPlanRequest) -> TripPlanResponse:
    try:
        return plan_trip(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning trip: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan trip: {str(exc)}"
        ) from exc


@router.post("/timeline.csv", status_code=status.HTTP_200_OK)
def export_timeline_csv(payload: TripPlanRequest) -> Response:
    """Consolidated timeline of the plan as a CSV download."""
    try:
        content = plan_timeline_csv(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting trip timeline: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export timeline: {str(exc)}"
        ) from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="timeline.csv"'},
    )
