# backend/parkbook/repositories/booking_repository.py
"""
Booking repository.

Users see only their own bookings; admins and the service principal see all.
Only the service principal may create bookings, since a seat is granted
exclusively by payment reconciliation.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.enums import BookingStatus
from ..models.booking import Booking
from ..models.profile import Profile
from ..models.program import Program
from ..principal import Principal
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _scoped(self, principal: Principal) -> Query:
        self._require_authenticated(principal, "read bookings")
        query = self._build_query()
        if not self._sees_all_rows(principal):
            query = query.filter(Booking.user_id == principal.id)
        return query

    def _with_details(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.program).joinedload(Program.park),
            selectinload(Booking.payments),
            joinedload(Booking.profile),
        )

    def find_confirmed(
        self, principal: Principal, *, user_id: str, program_id: str
    ) -> Optional[Booking]:
        """The confirmed booking for (user, program), if any."""
        query = self._scoped(principal).filter(
            Booking.user_id == user_id,
            Booking.event_id == program_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        return self._execute_first(query)

    def create_confirmed(self, principal: Principal, *, user_id: str, program_id: str) -> Booking:
        """
        Insert a confirmed booking.

        Raises RepositoryException chained to an IntegrityError when a confirmed
        booking for the pair already exists.
        """
        self._require_elevated(principal, "create bookings")
        return self.create(
            user_id=user_id,
            event_id=program_id,
            status=BookingStatus.CONFIRMED.value,
        )

    def list_for_user(self, principal: Principal, user_id: str) -> List[Booking]:
        query = (
            self._with_details(self._scoped(principal))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
        )
        return self._execute_query(query)

    def list_for_program(self, principal: Principal, program_id: str) -> List[Booking]:
        self._require_admin(principal, "list program participants")
        query = (
            self._with_details(self._scoped(principal))
            .filter(Booking.event_id == program_id)
            .order_by(Booking.created_at.asc())
        )
        return self._execute_query(query)

    def list_recent(self, principal: Principal, *, limit: int = 100) -> List[Booking]:
        self._require_admin(principal, "list all bookings")
        query = (
            self._with_details(self._scoped(principal))
            .order_by(Booking.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def search_by_profile(self, principal: Principal, term: str, *, limit: int = 50) -> List[Booking]:
        """Bookings whose holder's nickname or phone contains ``term`` (case-insensitive)."""
        self._require_admin(principal, "search bookings")
        pattern = f"%{term}%"
        query = (
            self._with_details(self._scoped(principal))
            .join(Profile, Profile.id == Booking.user_id)
            .filter(or_(Profile.nickname.ilike(pattern), Profile.phone.ilike(pattern)))
            .order_by(Booking.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def count_confirmed_since(self, principal: Principal, since: datetime) -> int:
        self._require_admin(principal, "count bookings")
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.created_at >= since,
        )
        return int(self._execute_scalar(query) or 0)
