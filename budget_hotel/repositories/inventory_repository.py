"""
Repositories for hotels and room inventory.
"""

from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from budget_hotel.core.pagination import Page
from budget_hotel.models import Amenity, Hotel, Room, RoomImage, RoomType, RoomTypeAmenity
from budget_hotel.models.base import RoomStatus
from budget_hotel.repositories.base_repository import BaseRepository
from budget_hotel.services.access import AccessScope


class HotelRepository(BaseRepository[Hotel]):

    def __init__(self, db: Session):
        super().__init__(Hotel, db)

    def search(self, scope: Optional[AccessScope], page: Page, search: Optional[str] = None) -> Page:
        stmt = self.select()
        if scope is not None:
            stmt = scope.apply(stmt, Hotel.id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(func.lower(Hotel.name).like(pattern), func.lower(Hotel.city).like(pattern))
            )
        return self.paginate(stmt.order_by(Hotel.name), page)

    def count_room_types(self, hotel_id: str) -> int:
        stmt = select(func.count(RoomType.id)).where(RoomType.hotel_id == hotel_id)
        return self.db.execute(stmt).scalar_one()


class RoomTypeRepository(BaseRepository[RoomType]):

    def __init__(self, db: Session):
        super().__init__(RoomType, db)

    def find_detailed(self, room_type_id: str) -> Optional[RoomType]:
        stmt = (
            self.select()
            .where(RoomType.id == room_type_id)
            .options(
                joinedload(RoomType.hotel),
                selectinload(RoomType.images),
                selectinload(RoomType.amenity_links).joinedload(RoomTypeAmenity.amenity),
            )
        )
        return self.scalar_one_or_none(stmt)

    def search(
        self,
        scope: Optional[AccessScope],
        page: Page,
        hotel_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page:
        stmt = self.select().options(joinedload(RoomType.hotel))
        if scope is not None:
            stmt = scope.apply(stmt, RoomType.hotel_id)
        if hotel_id:
            stmt = stmt.where(RoomType.hotel_id == hotel_id)
        if search:
            stmt = stmt.where(func.lower(RoomType.name).like(f"%{search.lower()}%"))
        return self.paginate(stmt.order_by(RoomType.name), page)

    def random_selection(self, limit: int) -> List[RoomType]:
        stmt = (
            self.select()
            .options(joinedload(RoomType.hotel), selectinload(RoomType.images))
            .order_by(func.random())
            .limit(limit)
        )
        return self.scalars(stmt)

    def count_rooms(self, room_type_id: str) -> int:
        stmt = select(func.count(Room.id)).where(Room.room_type_id == room_type_id)
        return self.db.execute(stmt).scalar_one()


class RoomRepository(BaseRepository[Room]):

    def __init__(self, db: Session):
        super().__init__(Room, db)

    def lock(self, room_id: str) -> Optional[Room]:
        """Lock the room row for the rest of the transaction"""
        return self.find_by_id(room_id, for_update=True)

    def find_detailed(self, room_id: str) -> Optional[Room]:
        stmt = (
            self.select()
            .where(Room.id == room_id)
            .options(joinedload(Room.room_type).joinedload(RoomType.hotel))
        )
        return self.scalar_one_or_none(stmt)

    def find_by_number(self, room_number: str, include_deleted: bool = True) -> Optional[Room]:
        return self.find_one_by_criteria({"room_number": room_number}, include_deleted=include_deleted)

    def bookable_rooms(self, room_type_id: str, for_update: bool = False) -> List[Room]:
        stmt = (
            self.select()
            .where(Room.room_type_id == room_type_id, Room.status != RoomStatus.UNDER_MAINTENANCE)
            .order_by(Room.room_number)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.scalars(stmt)

    def search(
        self,
        scope: Optional[AccessScope],
        page: Page,
        room_type_id: Optional[str] = None,
        status: Optional[RoomStatus] = None,
        search: Optional[str] = None,
    ) -> Page:
        stmt = (
            self.select()
            .join(Room.room_type)
            .options(joinedload(Room.room_type).joinedload(RoomType.hotel))
        )
        if scope is not None:
            stmt = scope.apply(stmt, RoomType.hotel_id)
        if room_type_id:
            stmt = stmt.where(Room.room_type_id == room_type_id)
        if status is not None:
            stmt = stmt.where(Room.status == status)
        if search:
            stmt = stmt.where(func.lower(Room.room_number).like(f"%{search.lower()}%"))
        return self.paginate(stmt.order_by(Room.room_number), page)


class RoomImageRepository(BaseRepository[RoomImage]):

    def __init__(self, db: Session):
        super().__init__(RoomImage, db)

    def for_room_type(self, room_type_id: str) -> List[RoomImage]:
        return self.find_by_criteria({"room_type_id": room_type_id})


class AmenityRepository(BaseRepository[Amenity]):

    def __init__(self, db: Session):
        super().__init__(Amenity, db)

    def search(self, page: Page, search: Optional[str] = None) -> Page:
        stmt = self.select()
        if search:
            stmt = stmt.where(func.lower(Amenity.name).like(f"%{search.lower()}%"))
        return self.paginate(stmt.order_by(Amenity.name), page)


class RoomTypeAmenityRepository(BaseRepository[RoomTypeAmenity]):

    def __init__(self, db: Session):
        super().__init__(RoomTypeAmenity, db)

    def find_link(self, room_type_id: str, amenity_id: str) -> Optional[RoomTypeAmenity]:
        return self.find_one_by_criteria({"room_type_id": room_type_id, "amenity_id": amenity_id})

    def links_for_amenity(self, amenity_id: str) -> List[RoomTypeAmenity]:
        return self.find_by_criteria({"amenity_id": amenity_id})
