# backend/parkbook/services/program_admin_service.py
"""Administrator operations on programs, including capacity ledger repair."""

from typing import List

from sqlalchemy.orm import Session

from ..core.enums import ProgramStatus
from ..core.exceptions import (
    NotFoundException,
    ProgramNotFound,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from ..models.program import Program
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import CapacityRepairResponse
from ..schemas.program import ProgramCreate, ProgramDetail, ProgramSummary, ProgramUpdate
from .base import BaseService
from .program_service import to_program_detail, to_program_summary

ALLOWED_STATUSES = {status.value for status in ProgramStatus}


class ProgramAdminService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.program_repository = RepositoryFactory.create_program_repository(db)
        self.park_repository = RepositoryFactory.create_park_repository(db)

    def _load(self, program_id: str) -> Program:
        program = self.program_repository.get_program(program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        return program

    def _check_park(self, park_id: str) -> None:
        if self.park_repository.get_by_id(park_id) is None:
            raise NotFoundException("Park not found", code="PARK_NOT_FOUND", details={"park_id": park_id})

    @BaseService.measure_operation("admin_list_programs")
    def list_programs(self, principal: Principal) -> List[ProgramSummary]:
        return [
            to_program_summary(program)
            for program in self.program_repository.list_for_admin(principal)
        ]

    @BaseService.measure_operation("admin_create_program")
    def create_program(self, principal: Principal, payload: ProgramCreate) -> ProgramDetail:
        self._check_park(payload.park_id)
        fields = payload.model_dump()
        if payload.level is not None:
            fields["level"] = payload.level.value
        with self.transaction():
            program = self.program_repository.create_program(
                principal,
                **fields,
                current_count=0,
                status=ProgramStatus.OPEN.value,
            )
        self.logger.info("Program %s created by %s", program.id, principal.id)
        return to_program_detail(self._load(program.id))

    @BaseService.measure_operation("admin_update_program")
    def update_program(
        self, principal: Principal, program_id: str, payload: ProgramUpdate
    ) -> ProgramDetail:
        program = self._load(program_id)
        changes = payload.model_dump(exclude_unset=True)
        if "level" in changes and changes["level"] is not None:
            changes["level"] = payload.level.value
        if "park_id" in changes and changes["park_id"]:
            self._check_park(changes["park_id"])

        capacity = changes.get("capacity", program.capacity)
        if capacity < program.current_count:
            raise ValidationException(
                "Capacity cannot be lower than the number of confirmed bookings",
                code="CAPACITY_BELOW_BOOKINGS",
                details={"capacity": capacity, "current_count": program.current_count},
            )
        start = changes.get("start_time", program.start_time)
        end = changes.get("end_time", program.end_time)
        if end <= start:
            raise ValidationException("end_time must be after start_time", code="VALIDATION_ERROR")

        with self.transaction():
            self.program_repository.update_program(principal, program, **changes)
        return to_program_detail(self._load(program_id))

    @BaseService.measure_operation("admin_set_status")
    def set_status(self, principal: Principal, program_id: str, status: str) -> ProgramDetail:
        if status not in ALLOWED_STATUSES:
            raise ValidationException(
                "Invalid status",
                code="INVALID_STATUS",
                details={"status": status, "allowed": sorted(ALLOWED_STATUSES)},
            )
        program = self._load(program_id)
        with self.transaction():
            self.program_repository.update_program(principal, program, status=status)
        self.logger.info("Program %s status set to %s by %s", program_id, status, principal.id)
        return to_program_detail(self._load(program_id))

    @BaseService.measure_operation("admin_recount_capacity")
    def recount_capacity(self, principal: Principal, program_id: str) -> CapacityRepairResponse:
        """
        Rewrite ``current_count`` from the confirmed bookings.

        Repairs drift left by a failed increment during reconciliation. The
        count is capped at capacity, as the ledger cannot exceed it.
        """
        program = self._load(program_id)
        previous = self.program_repository.read_current_count(program_id) or 0
        confirmed = self.program_repository.count_confirmed_bookings(program_id)
        new_count = min(confirmed, program.capacity)
        if confirmed > program.capacity:
            self.logger.warning(
                "Program %s has %s confirmed bookings for %s seats",
                program_id,
                confirmed,
                program.capacity,
            )
        try:
            with self.transaction():
                written = self.program_repository.write_current_count(
                    principal, program_id, new_count
                )
        except RepositoryException as exc:
            raise ServiceException("Failed to write capacity ledger") from exc
        if not written:
            raise ProgramNotFound(program_id)
        self.logger.info(
            "Program %s current_count repaired %s -> %s", program_id, previous, new_count
        )
        return CapacityRepairResponse(
            program_id=program_id,
            previous_count=previous,
            current_count=new_count,
            capacity=program.capacity,
        )
