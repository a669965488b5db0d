"""
Hotel, room type and room administration.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from budget_hotel.api import deps
from budget_hotel.models.base import RoomStatus
from budget_hotel.schemas.common import MessageResponse, PageResponse, page_response
from budget_hotel.schemas.hotel import HotelCreate, HotelResponse, HotelUpdate, StaffAssignment
from budget_hotel.schemas.room import (
    AmenityLink,
    RoomCreate,
    RoomImageResponse,
    RoomResponse,
    RoomTypeCreate,
    RoomTypeDetail,
    RoomTypeResponse,
    RoomTypeUpdate,
    RoomUpdate,
)
from budget_hotel.services.access import AccessScope
from budget_hotel.services.hotel_service import HotelService
from budget_hotel.services.room_service import RoomService

router = APIRouter(prefix="/admin", tags=["Admin: Inventory"])


# ==================== Hotels ====================

@router.get("/hotels", response_model=PageResponse[HotelResponse])
def list_hotels(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return page_response(service.list_hotels(scope, search, page, page_size))


@router.post("/hotels", response_model=HotelResponse, status_code=status.HTTP_201_CREATED)
def create_hotel(
    payload: HotelCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return service.create_hotel(scope, payload.model_dump())


@router.get("/hotels/{hotel_id}", response_model=HotelResponse)
def get_hotel(
    hotel_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return service.get_hotel(scope, hotel_id)


@router.put("/hotels/{hotel_id}", response_model=HotelResponse)
def update_hotel(
    hotel_id: str,
    payload: HotelUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return service.update_hotel(scope, hotel_id, payload.model_dump(exclude_unset=True))


@router.post("/hotels/{hotel_id}/image", response_model=HotelResponse)
def upload_hotel_image(
    hotel_id: str,
    file: UploadFile = File(...),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return service.set_image(scope, hotel_id, file.filename or "", file.file.read())


@router.put("/hotels/{hotel_id}/staff", response_model=HotelResponse)
def assign_staff(
    hotel_id: str,
    payload: StaffAssignment,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    return service.assign_staff(scope, hotel_id, payload.manager_id, payload.staff_id)


@router.delete("/hotels/{hotel_id}", response_model=MessageResponse)
def delete_hotel(
    hotel_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: HotelService = Depends(deps.get_hotel_service),
):
    service.delete_hotel(scope, hotel_id)
    return MessageResponse(message="Hotel deleted")


# ==================== Room types ====================

@router.get("/room-types", response_model=PageResponse[RoomTypeResponse])
def list_room_types(
    hotel_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return page_response(service.list_room_types(scope, hotel_id, search, page, page_size))


@router.post("/room-types", response_model=RoomTypeDetail, status_code=status.HTTP_201_CREATED)
def create_room_type(
    payload: RoomTypeCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    data = payload.model_dump(exclude={"amenity_ids"})
    return service.create_room_type(scope, data, payload.amenity_ids)


@router.get("/room-types/{room_type_id}", response_model=RoomTypeDetail)
def get_room_type(
    room_type_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.get_room_type(scope, room_type_id)


@router.put("/room-types/{room_type_id}", response_model=RoomTypeDetail)
def update_room_type(
    room_type_id: str,
    payload: RoomTypeUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.update_room_type(scope, room_type_id, payload.model_dump(exclude_unset=True))


@router.delete("/room-types/{room_type_id}", response_model=MessageResponse)
def delete_room_type(
    room_type_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    service.delete_room_type(scope, room_type_id)
    return MessageResponse(message="Room type deleted")


@router.post("/room-types/{room_type_id}/amenities", response_model=RoomTypeDetail)
def add_amenity(
    room_type_id: str,
    payload: AmenityLink,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.add_amenity(scope, room_type_id, payload.amenity_id)


@router.delete("/room-types/{room_type_id}/amenities/{amenity_id}", response_model=RoomTypeDetail)
def remove_amenity(
    room_type_id: str,
    amenity_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.remove_amenity(scope, room_type_id, amenity_id)


@router.post(
    "/room-types/{room_type_id}/images",
    response_model=RoomImageResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_room_image(
    room_type_id: str,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.add_image(scope, room_type_id, file.filename or "", file.file.read(), caption)


@router.delete("/room-images/{image_id}", response_model=MessageResponse)
def delete_room_image(
    image_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    service.delete_image(scope, image_id)
    return MessageResponse(message="Image deleted")


# ==================== Rooms ====================

@router.get("/rooms", response_model=PageResponse[RoomResponse])
def list_rooms(
    room_type_id: Optional[str] = Query(None),
    room_status: Optional[RoomStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return page_response(service.list_rooms(scope, room_type_id, room_status, search, page, page_size))


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.create_room(scope, payload.model_dump())


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.get_room(scope, room_id)


@router.put("/rooms/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: str,
    payload: RoomUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    return service.update_room(scope, room_id, payload.model_dump(exclude_unset=True))


@router.delete("/rooms/{room_id}", response_model=MessageResponse)
def delete_room(
    room_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: RoomService = Depends(deps.get_room_service),
):
    service.delete_room(scope, room_id)
    return MessageResponse(message="Room deleted")
