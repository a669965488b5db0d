"""
Registration, login, password reset and the caller's own profile.
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from budget_hotel.api import deps
from budget_hotel.schemas.auth import (
    CodeDeliveryResponse,
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from budget_hotel.schemas.common import MessageResponse
from budget_hotel.schemas.user import ChangePasswordRequest, ProfileUpdate, UserResponse
from budget_hotel.services.access import RequestContext
from budget_hotel.services.auth_service import AuthService, CodeDelivery
from budget_hotel.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _delivery(result: CodeDelivery, message: str) -> CodeDeliveryResponse:
    return CodeDeliveryResponse(
        message=message,
        email=result.email,
        email_sent=result.email_sent,
        fallback_code=result.fallback_code,
    )


@router.post("/register", response_model=CodeDeliveryResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthService = Depends(deps.get_auth_service)):
    result = service.register(payload.full_name, payload.email, payload.password, payload.phone_number)
    return _delivery(result, "Registration successful. Check your email for the verification code.")


@router.post("/verify-email", response_model=UserResponse)
def verify_email(payload: VerifyEmailRequest, service: AuthService = Depends(deps.get_auth_service)):
    return service.verify_email(payload.email, payload.code)


@router.post("/resend-verification", response_model=CodeDeliveryResponse)
def resend_verification(payload: EmailRequest, service: AuthService = Depends(deps.get_auth_service)):
    return _delivery(service.resend_verification(payload.email), "Verification code sent.")


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, service: AuthService = Depends(deps.get_auth_service)):
    result = service.login(payload.email, payload.password, ip_address=deps.client_ip(request))
    return TokenResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/forgot-password", response_model=CodeDeliveryResponse)
def forgot_password(payload: EmailRequest, service: AuthService = Depends(deps.get_auth_service)):
    result = service.request_password_reset(payload.email)
    return _delivery(result, "If the email is registered, a reset code has been sent.")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, service: AuthService = Depends(deps.get_auth_service)):
    service.reset_password(payload.email, payload.code, payload.new_password)
    return MessageResponse(message="Password has been reset. You can now sign in.")


# ==================== Own profile ====================

@router.get("/me", response_model=UserResponse)
def read_me(
    ctx: RequestContext = Depends(deps.get_request_context),
    service: UserService = Depends(deps.get_user_service),
):
    return service.get_profile(ctx)


@router.put("/me", response_model=UserResponse)
def update_me(
    payload: ProfileUpdate,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: UserService = Depends(deps.get_user_service),
):
    return service.update_profile(ctx, payload.model_dump(exclude_unset=True))


@router.post("/me/password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: UserService = Depends(deps.get_user_service),
):
    service.change_password(ctx, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed")


@router.post("/me/profile-picture", response_model=UserResponse)
def upload_profile_picture(
    file: UploadFile = File(...),
    ctx: RequestContext = Depends(deps.get_request_context),
    service: UserService = Depends(deps.get_user_service),
):
    return service.set_profile_picture(ctx, file.filename or "", file.file.read())
