"""
Administration of add-on services, amenities, packages and promotions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from budget_hotel.api import deps
from budget_hotel.schemas.catalog import (
    PackageCreate,
    PackageResponse,
    PackageUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from budget_hotel.schemas.common import MessageResponse, PageResponse, page_response
from budget_hotel.schemas.promotion import PromotionCreate, PromotionResponse, PromotionUpdate
from budget_hotel.schemas.room import AmenityCreate, AmenityResponse, AmenityUpdate
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.catalog_service import CatalogService
from budget_hotel.services.promotion_service import PromotionService

router = APIRouter(prefix="/admin", tags=["Admin: Catalogue"])


# ==================== Services ====================

@router.get("/services", response_model=PageResponse[ServiceResponse])
def list_services(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    ctx: RequestContext = Depends(deps.require_manager),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return page_response(service.list_services(search, page, page_size))


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ServiceCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.create_service(scope, payload.model_dump())


@router.put("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str,
    payload: ServiceUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.update_service(scope, service_id, payload.model_dump(exclude_unset=True))


@router.delete("/services/{service_id}", response_model=MessageResponse)
def delete_service(
    service_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    service.delete_service(scope, service_id)
    return MessageResponse(message="Service deleted")


# ==================== Amenities ====================

@router.post("/amenities", response_model=AmenityResponse, status_code=status.HTTP_201_CREATED)
def create_amenity(
    payload: AmenityCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.create_amenity(scope, payload.model_dump())


@router.put("/amenities/{amenity_id}", response_model=AmenityResponse)
def update_amenity(
    amenity_id: str,
    payload: AmenityUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.update_amenity(scope, amenity_id, payload.model_dump(exclude_unset=True))


@router.post("/amenities/{amenity_id}/image", response_model=AmenityResponse)
def upload_amenity_image(
    amenity_id: str,
    file: UploadFile = File(...),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.set_amenity_image(scope, amenity_id, file.filename or "", file.file.read())


@router.delete("/amenities/{amenity_id}", response_model=MessageResponse)
def delete_amenity(
    amenity_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    service.delete_amenity(scope, amenity_id)
    return MessageResponse(message="Amenity deleted")


# ==================== Packages ====================

@router.get("/packages", response_model=PageResponse[PackageResponse])
def list_packages(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return page_response(service.list_packages(scope, search, page, page_size))


@router.post("/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(
    payload: PackageCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    items = [item.model_dump() for item in payload.items]
    return service.create_package(scope, payload.model_dump(exclude={"items"}), items)


@router.get("/packages/{package_id}", response_model=PackageResponse)
def get_package(
    package_id: str,
    ctx: RequestContext = Depends(deps.require_manager),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.get_package(package_id, active_only=False)


@router.put("/packages/{package_id}", response_model=PackageResponse)
def update_package(
    package_id: str,
    payload: PackageUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    data = payload.model_dump(exclude_unset=True, exclude={"items"})
    items = [item.model_dump() for item in payload.items] if payload.items is not None else None
    return service.update_package(scope, package_id, data, items)


@router.post("/packages/{package_id}/image", response_model=PackageResponse)
def upload_package_image(
    package_id: str,
    file: UploadFile = File(...),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.set_package_image(scope, package_id, file.filename or "", file.file.read())


@router.delete("/packages/{package_id}", response_model=MessageResponse)
def delete_package(
    package_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    service.delete_package(scope, package_id)
    return MessageResponse(message="Package deleted")


# ==================== Promotions ====================

@router.get("/promotions", response_model=PageResponse[PromotionResponse])
def list_promotions(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    ctx: RequestContext = Depends(deps.get_request_context),
    service: PromotionService = Depends(deps.get_promotion_service),
):
    return page_response(service.list_promotions(ctx.scope, ctx.now, search, page, page_size))


@router.post("/promotions", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
def create_promotion(
    payload: PromotionCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: PromotionService = Depends(deps.get_promotion_service),
):
    return service.create_promotion(scope, payload.model_dump())


@router.get("/promotions/{promotion_id}", response_model=PromotionResponse)
def get_promotion(
    promotion_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: PromotionService = Depends(deps.get_promotion_service),
):
    return service.get_promotion(scope, promotion_id)


@router.put("/promotions/{promotion_id}", response_model=PromotionResponse)
def update_promotion(
    promotion_id: str,
    payload: PromotionUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: PromotionService = Depends(deps.get_promotion_service),
):
    return service.update_promotion(scope, promotion_id, payload.model_dump(exclude_unset=True))


@router.delete("/promotions/{promotion_id}", response_model=MessageResponse)
def delete_promotion(
    promotion_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: PromotionService = Depends(deps.get_promotion_service),
):
    service.delete_promotion(scope, promotion_id)
    return MessageResponse(message="Promotion deleted")
