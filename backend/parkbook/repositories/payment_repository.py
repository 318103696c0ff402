# backend/parkbook/repositories/payment_repository.py
"""Payment record repository."""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..core.enums import PaymentStatus
from ..models.booking import Booking
from ..models.payment import Payment
from ..models.program import Program
from ..principal import Principal
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def create_succeeded(
        self,
        principal: Principal,
        *,
        booking_id: str,
        stripe_payment_id: Optional[str],
        amount: int,
        paid_at: datetime,
    ) -> Payment:
        self._require_elevated(principal, "record payments")
        return self.create(
            booking_id=booking_id,
            stripe_payment_id=stripe_payment_id,
            amount=amount,
            status=PaymentStatus.SUCCEEDED.value,
            paid_at=paid_at,
        )

    def find_by_stripe_payment_id(
        self, principal: Principal, stripe_payment_id: str
    ) -> Optional[Payment]:
        query = self._build_query().filter(Payment.stripe_payment_id == stripe_payment_id)
        if not self._sees_all_rows(principal):
            self._require_authenticated(principal, "read payments")
            query = query.join(Booking).filter(Booking.user_id == principal.id)
        return self._execute_first(query)

    def list_recent(self, principal: Principal, *, limit: int = 100) -> List[Payment]:
        self._require_admin(principal, "list payments")
        query = (
            self._build_query()
            .options(
                joinedload(Payment.booking).joinedload(Booking.program).joinedload(Program.park),
                joinedload(Payment.booking).joinedload(Booking.profile),
            )
            .order_by(Payment.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def sum_succeeded_since(self, principal: Principal, since: datetime) -> int:
        self._require_admin(principal, "aggregate revenue")
        query = self.db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.status == PaymentStatus.SUCCEEDED.value,
            Payment.paid_at >= since,
        )
        return int(self._execute_scalar(query) or 0)
