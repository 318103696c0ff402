# backend/parkbook/services/program_service.py
"""Public catalogue: upcoming programs, program detail, parks and categories."""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ProgramNotFound, ValidationException
from ..core.enums import ProgramLevel
from ..models.program import Program
from ..repositories.factory import RepositoryFactory
from ..schemas.program import (
    CapacityStatus,
    CategoryResponse,
    ParkResponse,
    ProgramDetail,
    ProgramSummary,
)
from .base import BaseService


def capacity_status(program: Program, threshold: Optional[int] = None) -> CapacityStatus:
    """Remaining seats plus the full / almost-full flags shown in listings."""
    limit = settings.almost_full_threshold if threshold is None else threshold
    remaining = program.remaining
    return CapacityStatus(
        capacity=program.capacity,
        current_count=program.current_count,
        remaining=remaining,
        is_full=program.is_full,
        is_almost_full=not program.is_full and remaining <= limit,
    )


def to_program_summary(program: Program) -> ProgramSummary:
    return ProgramSummary(
        id=program.id,
        title=program.title,
        date=program.date,
        start_time=program.start_time,
        end_time=program.end_time,
        price=program.price,
        status=program.status,
        level=program.level,
        park_id=program.park_id,
        park_name=program.park.name if program.park is not None else None,
        category_id=program.category_id,
        category_name=program.category.name if program.category is not None else None,
        availability=capacity_status(program),
    )


def to_program_detail(program: Program) -> ProgramDetail:
    summary = to_program_summary(program)
    return ProgramDetail(
        **summary.model_dump(exclude={"availability"}),
        availability=summary.availability,
        description=program.description,
        park=ParkResponse.model_validate(program.park) if program.park is not None else None,
        category=(
            CategoryResponse.model_validate(program.category)
            if program.category is not None
            else None
        ),
        created_at=program.created_at,
        updated_at=program.updated_at,
    )


class ProgramService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.program_repository = RepositoryFactory.create_program_repository(db)
        self.park_repository = RepositoryFactory.create_park_repository(db)
        self.category_repository = RepositoryFactory.create_category_repository(db)

    @BaseService.measure_operation("list_programs")
    def list_programs(
        self,
        *,
        today: date,
        on_date: Optional[date] = None,
        park_id: Optional[str] = None,
        category_id: Optional[str] = None,
        level: Optional[str] = None,
    ) -> List[ProgramSummary]:
        """Open programs from ``today`` onwards (or on ``on_date``), soonest first."""
        if level is not None and level not in {item.value for item in ProgramLevel}:
            raise ValidationException(f"Unknown level: {level}", code="VALIDATION_ERROR")
        programs = self.program_repository.list_upcoming(
            from_date=today,
            on_date=on_date,
            park_id=park_id,
            category_id=category_id,
            level=level,
        )
        return [to_program_summary(program) for program in programs]

    @BaseService.measure_operation("get_program")
    def get_program(self, program_id: str) -> ProgramDetail:
        program = self.program_repository.get_program(program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        return to_program_detail(program)

    def list_parks(self) -> List[ParkResponse]:
        return [ParkResponse.model_validate(park) for park in self.park_repository.list_parks()]

    def list_categories(self) -> List[CategoryResponse]:
        return [
            CategoryResponse.model_validate(category)
            for category in self.category_repository.list_categories()
        ]
