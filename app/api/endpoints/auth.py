from fastapi import APIRouter, Depends

from app.schemas.auth_schema import (
    AuthResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPVerifyRequest,
    UserCreate,
    UserLogin,
    UserOut,
)
from app.schemas.user_schema import UserRecord
from app.api.deps import get_auth_service, get_current_user, get_otp_service
from app.services.auth_services import AuthService
from app.services.otp_service import OTPService

router = APIRouter(tags=["auth"], prefix="/auth")


def _auth_response(auth_svc: AuthService, user: UserRecord) -> AuthResponse:
    token = auth_svc.create_token_for_user(user)
    return AuthResponse(token=token, user=UserOut.model_validate(user))


@router.post("/register", response_model=AuthResponse)
async def register(user_in: UserCreate, auth_svc: AuthService = Depends(get_auth_service)):
    user = await auth_svc.register_user(user_in.email, user_in.password, user_in.name)
    return _auth_response(auth_svc, user)


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, auth_svc: AuthService = Depends(get_auth_service)):
    user = await auth_svc.authenticate(credentials.email, credentials.password)
    return _auth_response(auth_svc, user)


@router.post("/send-otp", response_model=OTPSendResponse, response_model_exclude_none=True)
async def send_otp(body: OTPSendRequest, otp_svc: OTPService = Depends(get_otp_service)):
    return await otp_svc.send_code(body.phone)


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(body: OTPVerifyRequest, auth_svc: AuthService = Depends(get_auth_service)):
    user = await auth_svc.verify_phone_code(body.phone, body.otp)
    return _auth_response(auth_svc, user)


@router.get("/me", response_model=UserOut)
async def read_current_user(current_user: UserRecord = Depends(get_current_user)):
    return current_user
