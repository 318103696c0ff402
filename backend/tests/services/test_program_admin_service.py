from __future__ import annotations

from datetime import time

import pytest

from parkbook.core.exceptions import (
    AccessDeniedException,
    NotFoundException,
    ProgramNotFound,
    ValidationException,
)
from parkbook.models import Program
from parkbook.principal import UserPrincipal
from parkbook.schemas.program import ProgramCreate, ProgramUpdate
from parkbook.services.program_admin_service import ProgramAdminService
from tests.utils.factories import future_date, make_booking, make_park, make_program, new_user_id


@pytest.fixture
def service(db) -> ProgramAdminService:
    return ProgramAdminService(db)


def _create_payload(park_id: str, **overrides) -> ProgramCreate:
    values = {
        "park_id": park_id,
        "title": "Sunset Yoga",
        "date": future_date(5),
        "start_time": time(17, 0),
        "end_time": time(18, 0),
        "price": 2000,
        "capacity": 12,
        "level": "all",
    }
    values.update(overrides)
    return ProgramCreate(**values)


def test_create_program_starts_open_and_empty(db, service, admin_principal):
    park = make_park(db)
    db.commit()

    detail = service.create_program(admin_principal, _create_payload(park.id))

    assert detail.status == "open"
    assert detail.level == "all"
    assert detail.availability.current_count == 0
    assert detail.availability.remaining == 12
    assert detail.park.name == park.name


def test_create_program_requires_known_park(service, admin_principal):
    with pytest.raises(NotFoundException) as exc_info:
        service.create_program(admin_principal, _create_payload("01HZXMISSINGPARK000000000"))
    assert exc_info.value.code == "PARK_NOT_FOUND"


def test_create_program_requires_admin(db, service):
    park = make_park(db)
    db.commit()

    with pytest.raises(AccessDeniedException):
        service.create_program(UserPrincipal(user_id=new_user_id()), _create_payload(park.id))


def test_update_cannot_shrink_below_confirmed_seats(db, service, admin_principal):
    program = make_program(db, make_park(db), capacity=5, current_count=3)
    db.commit()

    with pytest.raises(ValidationException) as exc_info:
        service.update_program(admin_principal, program.id, ProgramUpdate(capacity=2))
    assert exc_info.value.code == "CAPACITY_BELOW_BOOKINGS"

    detail = service.update_program(admin_principal, program.id, ProgramUpdate(capacity=3))
    assert detail.availability.is_full


def test_update_rejects_inverted_time_range(db, service, admin_principal):
    program = make_program(db, make_park(db), start_time=time(7, 0), end_time=time(8, 0))
    db.commit()

    with pytest.raises(ValidationException):
        service.update_program(admin_principal, program.id, ProgramUpdate(end_time=time(6, 0)))


def test_set_status(db, service, admin_principal):
    program = make_program(db, make_park(db))
    db.commit()

    detail = service.set_status(admin_principal, program.id, "closed")

    assert detail.status == "closed"


def test_set_status_rejects_unknown_value(db, service, admin_principal):
    program = make_program(db, make_park(db))
    db.commit()

    with pytest.raises(ValidationException) as exc_info:
        service.set_status(admin_principal, program.id, "archived")
    assert exc_info.value.code == "INVALID_STATUS"


def test_set_status_unknown_program(service, admin_principal):
    with pytest.raises(ProgramNotFound):
        service.set_status(admin_principal, "01HZXMISSING0000000000000", "closed")


def test_recount_repairs_drifted_counter(db, service, admin_principal, session_factory):
    program = make_program(db, make_park(db), capacity=5, current_count=0)
    for _ in range(3):
        make_booking(db, program, new_user_id())
    make_booking(db, program, new_user_id(), status="cancelled")
    db.commit()

    result = service.recount_capacity(admin_principal, program.id)

    assert result.previous_count == 0
    assert result.current_count == 3
    with session_factory() as fresh:
        assert fresh.get(Program, program.id).current_count == 3


def test_recount_caps_at_capacity(db, service, admin_principal):
    program = make_program(db, make_park(db), capacity=2, current_count=2)
    for _ in range(3):
        make_booking(db, program, new_user_id())
    db.commit()

    result = service.recount_capacity(admin_principal, program.id)

    assert result.current_count == 2
    assert result.capacity == 2
