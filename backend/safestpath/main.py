from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, HTTPException

from .errors import RoutePlanningError, normalize_reason_code
from .logging_utils import log_event
from .models import RoutePlanRequest, RoutePlanResponse
from .planner import plan_routes

app = FastAPI(title="Safest Path Planner", version="0.1.0")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# Plain def: planning is CPU-bound and runs in the threadpool.
@app.post("/routes", response_model=RoutePlanResponse)
def compute_routes(req: RoutePlanRequest) -> RoutePlanResponse:
    request_id = str(uuid.uuid4())
    t0 = time.perf_counter()

    try:
        response = plan_routes(req)
    except RoutePlanningError as e:
        reason_code = normalize_reason_code(e.reason_code)
        log_event(
            "route_plan_failed",
            stage="http",
            level=logging.WARNING,
            request_id=request_id,
            reason_code=reason_code,
            message=e.message,
        )
        raise HTTPException(
            status_code=422,
            detail={"reason_code": reason_code, "message": e.message},
        ) from e

    log_event(
        "route_plan_request",
        stage="http",
        request_id=request_id,
        road_count=len(req.roads),
        hazard_count=len(req.hazards),
        criteria=req.criteria.model_dump(),
        route_count=len(response.routes),
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    return response
