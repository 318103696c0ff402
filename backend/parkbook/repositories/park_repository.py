# backend/parkbook/repositories/park_repository.py
"""Public catalogue lookups for parks and categories."""

from typing import List

from sqlalchemy.orm import Session

from ..models.park import EventCategory, Park
from .base_repository import BaseRepository


class ParkRepository(BaseRepository[Park]):
    def __init__(self, db: Session):
        super().__init__(db, Park)

    def list_parks(self) -> List[Park]:
        return self._execute_query(self._build_query().order_by(Park.name.asc()))


class EventCategoryRepository(BaseRepository[EventCategory]):
    def __init__(self, db: Session):
        super().__init__(db, EventCategory)

    def list_categories(self) -> List[EventCategory]:
        query = self._build_query().order_by(EventCategory.sort_order.asc(), EventCategory.name)
        return self._execute_query(query)
