# backend/parkbook/repositories/program_repository.py
"""
Program repository, including the capacity ledger.

``events.current_count`` is read and written only through this class. The
increment is a single conditional UPDATE so concurrent reconciliations can
neither lose an update nor push the count past capacity.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.util import identity_key

from ..core.enums import BookingStatus, ProgramStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.program import Program
from ..principal import Principal
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProgramRepository(BaseRepository[Program]):
    def __init__(self, db: Session):
        super().__init__(db, Program)

    # Catalogue reads (public)

    def get_program(self, program_id: str) -> Optional[Program]:
        query = (
            self._build_query()
            .options(joinedload(Program.park), joinedload(Program.category))
            .filter(Program.id == program_id)
        )
        return self._execute_first(query)

    def list_upcoming(
        self,
        *,
        from_date: date,
        on_date: Optional[date] = None,
        park_id: Optional[str] = None,
        category_id: Optional[str] = None,
        level: Optional[str] = None,
        status: Optional[str] = ProgramStatus.OPEN.value,
        limit: Optional[int] = None,
    ) -> List[Program]:
        """Programs on or after ``from_date`` (or exactly ``on_date``), soonest first."""
        query = self._build_query().options(
            joinedload(Program.park), joinedload(Program.category)
        )
        if on_date is not None:
            query = query.filter(Program.date == on_date)
        else:
            query = query.filter(Program.date >= from_date)
        if status:
            query = query.filter(Program.status == status)
        if park_id:
            query = query.filter(Program.park_id == park_id)
        if category_id:
            query = query.filter(Program.category_id == category_id)
        if level:
            query = query.filter(Program.level == level)
        query = query.order_by(Program.date.asc(), Program.start_time.asc())
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    def list_for_admin(self, principal: Principal, *, limit: int = 200) -> List[Program]:
        self._require_admin(principal, "list all programs")
        query = (
            self._build_query()
            .options(joinedload(Program.park), joinedload(Program.category))
            .order_by(Program.date.desc(), Program.start_time.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def count_by(
        self,
        *,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> int:
        query = self.db.query(func.count(Program.id))
        if status:
            query = query.filter(Program.status == status)
        if on_date is not None:
            query = query.filter(Program.date == on_date)
        if from_date is not None:
            query = query.filter(Program.date >= from_date)
        return int(self._execute_scalar(query) or 0)

    # Admin writes

    def create_program(self, principal: Principal, **fields) -> Program:
        self._require_admin(principal, "create programs")
        return self.create(**fields)

    def update_program(self, principal: Principal, program: Program, **fields) -> Program:
        self._require_admin(principal, "update programs")
        return self.update(program, **fields)

    # Capacity ledger

    def read_current_count(self, program_id: str) -> Optional[int]:
        """Current confirmed-seat count straight from the database, or None if missing."""
        query = self.db.query(Program.current_count).filter(Program.id == program_id)
        return self._execute_scalar(query)

    def write_current_count(self, principal: Principal, program_id: str, new_count: int) -> bool:
        """
        Overwrite the counter.

        Only used for repair; reconciliation goes through ``increment_current_count``.
        Returns False when the program does not exist.
        """
        self._require_admin(principal, "write the capacity ledger")
        try:
            result = self.db.execute(
                update(Program)
                .where(Program.id == program_id)
                .values(current_count=new_count)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error("Failed to write current_count for %s: %s", program_id, e)
            raise RepositoryException(f"Failed to write current_count: {e}") from e
        self._expire_cached_count(program_id)
        return result.rowcount == 1

    def increment_current_count(self, principal: Principal, program_id: str) -> Optional[int]:
        """
        Atomically add one seat if the program is below capacity.

        Returns the new count, or None when the program is already at capacity.
        A missing program raises ``RepositoryException``.
        """
        self._require_elevated(principal, "increment the capacity ledger")
        try:
            result = self.db.execute(
                update(Program)
                .where(Program.id == program_id, Program.current_count < Program.capacity)
                .values(current_count=Program.current_count + 1)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error("Failed to increment current_count for %s: %s", program_id, e)
            raise RepositoryException(f"Failed to increment current_count: {e}") from e
        self._expire_cached_count(program_id)
        if result.rowcount == 1:
            return self.read_current_count(program_id)
        if self.read_current_count(program_id) is None:
            raise RepositoryException(f"Program {program_id} does not exist")
        return None

    def count_confirmed_bookings(self, program_id: str) -> int:
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.event_id == program_id, Booking.status == BookingStatus.CONFIRMED.value
        )
        return int(self._execute_scalar(query) or 0)

    def _expire_cached_count(self, program_id: str) -> None:
        # Bulk UPDATE bypasses the identity map; drop any stale loaded value.
        cached = self.db.identity_map.get(identity_key(Program, program_id))
        if cached is not None:
            self.db.expire(cached, ["current_count"])
