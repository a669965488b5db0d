"""
Repositories for add-on services and packages.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from budget_hotel.core.pagination import Page
from budget_hotel.models import Package, PackageItem, Service
from budget_hotel.repositories.base_repository import BaseRepository


class ServiceRepository(BaseRepository[Service]):

    def __init__(self, db: Session):
        super().__init__(Service, db)

    def search(self, page: Page, search: Optional[str] = None) -> Page:
        stmt = self.select()
        if search:
            stmt = stmt.where(func.lower(Service.name).like(f"%{search.lower()}%"))
        return self.paginate(stmt.order_by(Service.name), page)

    def count_package_items(self, service_id: str) -> int:
        stmt = select(func.count(PackageItem.id)).where(PackageItem.service_id == service_id)
        return self.db.execute(stmt).scalar_one()


class PackageRepository(BaseRepository[Package]):

    def __init__(self, db: Session):
        super().__init__(Package, db)

    def find_detailed(self, package_id: str, include_deleted: bool = False) -> Optional[Package]:
        stmt = (
            self.select(include_deleted)
            .where(Package.id == package_id)
            .options(
                selectinload(Package.items).selectinload(PackageItem.service),
                selectinload(Package.items).selectinload(PackageItem.room_type),
            )
        )
        return self.scalar_one_or_none(stmt)

    def search(self, page: Page, search: Optional[str] = None, active_only: bool = False) -> Page:
        stmt = self.select().options(
            selectinload(Package.items).selectinload(PackageItem.service),
            selectinload(Package.items).selectinload(PackageItem.room_type),
        )
        if active_only:
            stmt = stmt.where(Package.is_active.is_(True))
        if search:
            stmt = stmt.where(func.lower(Package.name).like(f"%{search.lower()}%"))
        return self.paginate(stmt.order_by(Package.name), page)


class PackageItemRepository(BaseRepository[PackageItem]):

    def __init__(self, db: Session):
        super().__init__(PackageItem, db)

    def for_package(self, package_id: str) -> List[PackageItem]:
        return self.find_by_criteria({"package_id": package_id})
