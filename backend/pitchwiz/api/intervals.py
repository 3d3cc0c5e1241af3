from fastapi import APIRouter, HTTPException, Query
from typing import Dict, List

from pitchwiz.schemas.pitch import IntervalDirection, IntervalProblem
from pitchwiz.services.analyzers.interval import INTERVAL_LEVELS, generate_interval

router = APIRouter(prefix="/intervals", tags=["intervals"])


@router.get("/levels")
def get_levels() -> Dict[str, List[dict]]:
    """Interval pool of every difficulty level."""
    return {level: [interval._asdict() for interval in pool] for level, pool in INTERVAL_LEVELS.items()}


@router.get("/problem", response_model=IntervalProblem)
def get_problem(
    level: str = "intermediate",
    direction: IntervalDirection = "asc",
    lowest: str = Query("C3", description="Lowest note of the singer's range"),
    highest: str = Query("C5", description="Highest note of the singer's range"),
):
    """A random interval problem inside the singer's range."""
    try:
        return generate_interval(level, direction, lowest, highest)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
