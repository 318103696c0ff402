"""Public catalogue endpoints."""

from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.services import get_program_service
from ...schemas.program import CategoryResponse, ParkResponse, ProgramDetail, ProgramSummary
from ...services.program_service import ProgramService

router = APIRouter(tags=["programs"])


def _today() -> date:
    return datetime.now(timezone.utc).date()


@router.get("/programs", response_model=List[ProgramSummary])
def list_programs(
    on_date: Optional[date] = Query(None, alias="date"),
    park_id: Optional[str] = Query(None, alias="park"),
    category_id: Optional[str] = Query(None, alias="category"),
    level: Optional[str] = Query(None),
    service: ProgramService = Depends(get_program_service),
) -> List[ProgramSummary]:
    """Open upcoming programs, optionally for one date, park, category or level."""
    return service.list_programs(
        today=_today(),
        on_date=on_date,
        park_id=park_id,
        category_id=category_id,
        level=level,
    )


@router.get("/programs/{program_id}", response_model=ProgramDetail)
def get_program(
    program_id: str,
    service: ProgramService = Depends(get_program_service),
) -> ProgramDetail:
    return service.get_program(program_id)


@router.get("/parks", response_model=List[ParkResponse])
def list_parks(service: ProgramService = Depends(get_program_service)) -> List[ParkResponse]:
    return service.list_parks()


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    service: ProgramService = Depends(get_program_service),
) -> List[CategoryResponse]:
    return service.list_categories()
