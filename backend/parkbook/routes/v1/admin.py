"""Administrator console endpoints. Every route requires an admin principal."""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies.auth import require_admin
from ...api.dependencies.services import (
    get_booking_query_service,
    get_program_admin_service,
    get_webhook_ledger_service,
)
from ...principal import Principal
from ...schemas.booking import (
    AdminBookingItem,
    AdminPaymentItem,
    CapacityRepairResponse,
    DashboardSummary,
    ParticipantList,
)
from ...schemas.payment import WebhookEventItem
from ...schemas.program import (
    ProgramCreate,
    ProgramDetail,
    ProgramStatusUpdate,
    ProgramSummary,
    ProgramUpdate,
)
from ...services.booking_query_service import BookingQueryService
from ...services.program_admin_service import ProgramAdminService
from ...services.webhook_ledger_service import WebhookLedgerService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    principal: Principal = Depends(require_admin),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> DashboardSummary:
    return service.dashboard(principal, today=datetime.now(timezone.utc).date())


@router.get("/programs", response_model=List[ProgramSummary])
def list_programs(
    principal: Principal = Depends(require_admin),
    service: ProgramAdminService = Depends(get_program_admin_service),
) -> List[ProgramSummary]:
    return service.list_programs(principal)


@router.post("/programs", response_model=ProgramDetail, status_code=status.HTTP_201_CREATED)
def create_program(
    payload: ProgramCreate,
    principal: Principal = Depends(require_admin),
    service: ProgramAdminService = Depends(get_program_admin_service),
) -> ProgramDetail:
    return service.create_program(principal, payload)


@router.patch("/programs/{program_id}", response_model=ProgramDetail)
def update_program(
    program_id: str,
    payload: ProgramUpdate,
    principal: Principal = Depends(require_admin),
    service: ProgramAdminService = Depends(get_program_admin_service),
) -> ProgramDetail:
    return service.update_program(principal, program_id, payload)


@router.patch("/programs/{program_id}/status", response_model=ProgramDetail)
def update_program_status(
    program_id: str,
    payload: ProgramStatusUpdate,
    principal: Principal = Depends(require_admin),
    service: ProgramAdminService = Depends(get_program_admin_service),
) -> ProgramDetail:
    return service.set_status(principal, program_id, payload.status)


@router.post("/programs/{program_id}/recount", response_model=CapacityRepairResponse)
def recount_program_capacity(
    program_id: str,
    principal: Principal = Depends(require_admin),
    service: ProgramAdminService = Depends(get_program_admin_service),
) -> CapacityRepairResponse:
    return service.recount_capacity(principal, program_id)


@router.get("/programs/{program_id}/participants", response_model=ParticipantList)
def list_participants(
    program_id: str,
    principal: Principal = Depends(require_admin),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> ParticipantList:
    return service.list_participants(principal, program_id)


@router.get("/bookings", response_model=List[AdminBookingItem])
def list_bookings(
    principal: Principal = Depends(require_admin),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> List[AdminBookingItem]:
    return service.list_bookings(principal)


@router.get("/bookings/search", response_model=List[AdminBookingItem])
def search_bookings(
    q: Optional[str] = Query(None, description="Nickname or phone fragment"),
    principal: Principal = Depends(require_admin),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> List[AdminBookingItem]:
    return service.search_bookings(principal, q)


@router.get("/payments", response_model=List[AdminPaymentItem])
def list_payments(
    principal: Principal = Depends(require_admin),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> List[AdminPaymentItem]:
    return service.list_payments(principal)


@router.get("/webhook-events", response_model=List[WebhookEventItem])
def list_webhook_events(
    event_status: Optional[str] = Query(None, alias="status"),
    event_type: Optional[str] = Query(None),
    since_hours: int = Query(24, ge=1, le=24 * 30),
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(require_admin),
    service: WebhookLedgerService = Depends(get_webhook_ledger_service),
) -> List[WebhookEventItem]:
    events = service.list_events(
        source="stripe",
        status=event_status,
        event_type=event_type,
        since_hours=since_hours,
        limit=limit,
    )
    return [WebhookEventItem.model_validate(event) for event in events]
