"""
Public catalogue: hotels, room types, availability, services, packages
and currently offered promotions. No sign-in required.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from budget_hotel.api import deps
from budget_hotel.schemas.catalog import PackageResponse, ServiceResponse
from budget_hotel.schemas.common import PageResponse, page_response
from budget_hotel.schemas.hotel import HotelResponse
from budget_hotel.schemas.promotion import PublicPromotion
from budget_hotel.schemas.review import RoomTypeReviews
from budget_hotel.schemas.room import AmenityResponse, AvailabilityResponse, RoomTypeDetail, RoomTypeResponse
from budget_hotel.services.catalog_service import CatalogService
from budget_hotel.services.hotel_service import HotelService
from budget_hotel.services.promotion_service import PromotionService
from budget_hotel.services.review_service import ReviewService
from budget_hotel.utils.datetime_utils import utcnow

router = APIRouter(tags=["Catalogue"])


@router.get("/hotels", response_model=PageResponse[HotelResponse])
def browse_hotels(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return page_response(service.browse_hotels(search, page, page_size))


@router.get("/hotels/{hotel_id}", response_model=HotelResponse)
def get_hotel(hotel_id: str, service: HotelService = Depends(deps.get_hotel_service)):
    return service.public_hotel(hotel_id)


@router.get("/room-types", response_model=PageResponse[RoomTypeResponse])
def browse_room_types(
    hotel_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return page_response(service.browse_room_types(hotel_id, search, page, page_size))


@router.get("/room-types/featured", response_model=List[RoomTypeDetail])
def featured_room_types(
    limit: int = Query(3, ge=1, le=12),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.featured_room_types(limit)


@router.get("/room-types/{room_type_id}", response_model=RoomTypeDetail)
def room_type_detail(room_type_id: str, service: CatalogService = Depends(deps.get_catalog_service)):
    return service.room_type_detail(room_type_id)


@router.get("/room-types/{room_type_id}/availability", response_model=AvailabilityResponse)
def room_type_availability(
    room_type_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return service.availability(room_type_id, check_in, check_out)


@router.get("/room-types/{room_type_id}/reviews", response_model=RoomTypeReviews)
def room_type_reviews(room_type_id: str, service: ReviewService = Depends(deps.get_review_service)):
    return service.room_type_reviews(room_type_id)


@router.get("/services", response_model=List[ServiceResponse])
def list_services(service: CatalogService = Depends(deps.get_catalog_service)):
    return service.all_services()


@router.get("/amenities", response_model=PageResponse[AmenityResponse])
def list_amenities(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return page_response(service.list_amenities(search, page, page_size))


@router.get("/packages", response_model=PageResponse[PackageResponse])
def list_packages(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    service: CatalogService = Depends(deps.get_catalog_service),
):
    return page_response(service.list_packages(None, search, page, page_size))


@router.get("/packages/{package_id}", response_model=PackageResponse)
def get_package(package_id: str, service: CatalogService = Depends(deps.get_catalog_service)):
    return service.get_package(package_id)


@router.get("/promotions/available", response_model=List[PublicPromotion])
def available_promotions(service: PromotionService = Depends(deps.get_promotion_service)):
    return service.available_promotions(utcnow())
