"""
User account administration and review moderation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from budget_hotel.api import deps
from budget_hotel.models.base import UserRole
from budget_hotel.schemas.common import MessageResponse, PageResponse, page_response
from budget_hotel.schemas.review import ReviewResponse
from budget_hotel.schemas.user import UserCreate, UserResponse, UserUpdate
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.review_service import ReviewService
from budget_hotel.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Admin: Users"])


@router.get("/users", response_model=PageResponse[UserResponse])
def list_users(
    search: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: UserService = Depends(deps.get_user_service),
):
    return page_response(service.list_users(scope, search, role, page, page_size))


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: UserService = Depends(deps.get_user_service),
):
    return service.create_user(scope, payload.model_dump(exclude={"password"}), payload.password)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: UserService = Depends(deps.get_user_service),
):
    return service.get_user(scope, user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    payload: UserUpdate,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: UserService = Depends(deps.get_user_service),
):
    data = payload.model_dump(exclude_unset=True, exclude={"new_password"})
    return service.update_user(scope, user_id, data, payload.new_password)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    scope: AccessScope = Depends(deps.get_access_scope),
    service: UserService = Depends(deps.get_user_service),
):
    service.delete_user(scope, user_id)
    return MessageResponse(message="User deleted")


# ==================== Reviews ====================

@router.get("/reviews", response_model=PageResponse[ReviewResponse])
def list_reviews(
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    scope: AccessScope = Depends(deps.get_access_scope),
    service: ReviewService = Depends(deps.get_review_service),
):
    return page_response(service.list_reviews(scope, page, page_size))


@router.delete("/reviews/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: str,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: ReviewService = Depends(deps.get_review_service),
):
    service.delete_review(ctx, review_id)
    return MessageResponse(message="Review deleted")
