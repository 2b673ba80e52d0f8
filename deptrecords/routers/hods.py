from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from deptrecords.database import get_db
from deptrecords.models import HOD
from deptrecords.schemas.hod import HODCreate, HODOut, LoginRequest, OTPResend, OTPVerify, RefreshRequest
from deptrecords.utils import registration
from deptrecords.utils.auth import get_current_hod
from deptrecords.utils.mailer import Mailer, get_mailer
from deptrecords.utils.responses import ok
from deptrecords.utils.sessions import refresh_session, revoke_refresh

router = APIRouter(prefix="/hods", tags=["HOD"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: HODCreate, db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)):
    """
    Создаёт учётную запись в состоянии "ожидает подтверждения" и отправляет код.
    Токен не выдаётся до подтверждения почты.
    """
    hod = registration.register_hod(
        db,
        mailer,
        institution_name=payload.institution_name,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    return ok(
        message="Registration initiated. Please verify your email with the OTP sent.",
        hodId=hod.id,
        email=hod.email,
    )


@router.post("/verify-otp")
def verify_otp(payload: OTPVerify, db: Session = Depends(get_db)):
    hod, tokens = registration.verify_hod_otp(db, payload.email, payload.otp)
    return ok(
        message="Email verified successfully",
        hod=HODOut.model_validate(hod).dump(),
        **tokens,
    )


@router.post("/resend-otp")
def resend_otp(payload: OTPResend, db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)):
    hod = registration.resend_hod_otp(db, mailer, payload.email)
    return ok(message="OTP resent successfully", email=hod.email)


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    hod, tokens = registration.login_hod(db, payload.username, payload.password)
    return ok(message="Login successful", hod=HODOut.model_validate(hod).dump(), **tokens)


@router.get("/profile")
def profile(hod: HOD = Depends(get_current_hod)):
    return ok(hod=HODOut.model_validate(hod).dump())


@router.post("/refresh-token")
def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)):
    """Обменивает токен обновления на новую пару; использованный токен больше не принимается."""
    return ok(**refresh_session(db, payload.refresh_token))


@router.post("/logout")
def logout(hod: HOD = Depends(get_current_hod), db: Session = Depends(get_db)):
    revoke_refresh(db, hod)
    return ok(message="Logged out")
