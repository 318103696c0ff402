from __future__ import annotations

from datetime import time, timedelta

import pytest

from parkbook.core.exceptions import AccessDeniedException, RepositoryException
from parkbook.principal import WEBHOOK_PRINCIPAL, UserPrincipal
from parkbook.repositories.program_repository import ProgramRepository
from tests.utils.factories import (
    future_date,
    make_booking,
    make_category,
    make_park,
    make_program,
    new_user_id,
)


@pytest.fixture
def repo(db) -> ProgramRepository:
    return ProgramRepository(db)


def test_increment_adds_one_seat(db, repo):
    program = make_program(db, make_park(db), capacity=3, current_count=1)

    assert repo.increment_current_count(WEBHOOK_PRINCIPAL, program.id) == 2
    assert repo.read_current_count(program.id) == 2
    # the loaded instance is refreshed rather than left stale
    assert program.current_count == 2


def test_increment_stops_at_capacity(db, repo):
    program = make_program(db, make_park(db), capacity=2, current_count=2)

    assert repo.increment_current_count(WEBHOOK_PRINCIPAL, program.id) is None
    assert repo.read_current_count(program.id) == 2


def test_increment_missing_program_is_an_error_not_a_full_program(repo):
    with pytest.raises(RepositoryException, match="does not exist"):
        repo.increment_current_count(WEBHOOK_PRINCIPAL, "01HZXMISSING0000000000000")


def test_increment_requires_elevated_principal(db, repo):
    program = make_program(db, make_park(db))

    with pytest.raises(AccessDeniedException):
        repo.increment_current_count(UserPrincipal(user_id=new_user_id()), program.id)
    with pytest.raises(AccessDeniedException):
        repo.increment_current_count(UserPrincipal(user_id="a", role="admin"), program.id)
    assert repo.read_current_count(program.id) == 0


def test_write_current_count_is_admin_only(db, repo, admin_principal):
    program = make_program(db, make_park(db), capacity=5, current_count=4)

    assert repo.write_current_count(admin_principal, program.id, 1) is True
    assert repo.read_current_count(program.id) == 1
    assert repo.write_current_count(admin_principal, "01HZXMISSING0000000000000", 1) is False
    with pytest.raises(AccessDeniedException):
        repo.write_current_count(UserPrincipal(user_id=new_user_id()), program.id, 0)


def test_count_confirmed_bookings_ignores_cancelled(db, repo):
    program = make_program(db, make_park(db))
    make_booking(db, program, new_user_id())
    make_booking(db, program, new_user_id())
    make_booking(db, program, new_user_id(), status="cancelled")

    assert repo.count_confirmed_bookings(program.id) == 2


def test_list_upcoming_filters_and_orders(db, repo):
    park = make_park(db)
    other_park = make_park(db, name="駒沢オリンピック公園")
    day = future_date(10)
    late = make_program(db, park, title="Late", date=day, start_time=time(18, 0), end_time=time(19, 0))
    early = make_program(db, park, title="Early", date=day, start_time=time(6, 0), end_time=time(7, 0))
    next_day = make_program(db, other_park, title="Next", date=day + timedelta(days=1))
    make_program(db, park, title="Closed", date=day, status="closed")
    make_program(db, park, title="Past", date=future_date(-3))

    titles = [p.title for p in repo.list_upcoming(from_date=future_date(0))]
    assert titles == ["Early", "Late", "Next"]

    on_day = repo.list_upcoming(from_date=future_date(0), on_date=day)
    assert [p.id for p in on_day] == [early.id, late.id]

    by_park = repo.list_upcoming(from_date=future_date(0), park_id=other_park.id)
    assert [p.id for p in by_park] == [next_day.id]


def test_list_upcoming_filters_by_category_and_level(db, repo):
    park = make_park(db)
    yoga = make_category(db, name="ヨガ")
    match = make_program(db, park, category_id=yoga.id, level="advanced")
    make_program(db, park, category_id=yoga.id, level="beginner")
    make_program(db, park, level="advanced")

    found = repo.list_upcoming(from_date=future_date(0), category_id=yoga.id, level="advanced")

    assert [p.id for p in found] == [match.id]
    assert found[0].category.name == "ヨガ"


def test_admin_writes_require_admin(db, repo, admin_principal):
    park = make_park(db)
    user = UserPrincipal(user_id=new_user_id())

    with pytest.raises(AccessDeniedException):
        repo.create_program(
            user,
            park_id=park.id,
            title="Nope",
            date=future_date(),
            start_time=time(7, 0),
            end_time=time(8, 0),
            price=0,
            capacity=1,
        )

    program = repo.create_program(
        admin_principal,
        park_id=park.id,
        title="Bootcamp",
        date=future_date(),
        start_time=time(7, 0),
        end_time=time(8, 0),
        price=1000,
        capacity=8,
    )
    assert program.id is not None
    assert program.current_count == 0
    assert program.status == "open"
