from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth_jwt import create_access_token, hash_password, verify_password
from ..database import get_db
from ..deps_jwt import get_current_user
from ..errors import AuthenticationError, ValidationError
from ..models import User, UserRole
from ..schemas import AuthOut, Envelope, LoginRequest, ProfileOut, UserCreate, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])

DUPLICATE_EMAIL = "User already exists with this email"


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


def _auth_payload(user: User) -> dict:
    return {"token": create_access_token(user.id, user.email, user.role.value), "user": UserOut.model_validate(user)}


@router.post("/register", response_model=Envelope[AuthOut], status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a vendor or delivery partner account and log it in."""
    if _email_taken(db, payload.email):
        raise ValidationError(DUPLICATE_EMAIL)
    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        name=payload.name.strip(),
        phone=payload.phone,
        role=UserRole(payload.role),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent registration won the unique email index
        db.rollback()
        raise ValidationError(DUPLICATE_EMAIL)
    db.refresh(user)
    return {"success": True, "message": "User registered successfully", "data": _auth_payload(user)}


@router.post("/login", response_model=Envelope[AuthOut])
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    if not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return {"success": True, "message": "Login successful", "data": _auth_payload(user)}


@router.get("/profile", response_model=Envelope[ProfileOut])
def profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "message": "Profile retrieved successfully", "data": {"user": UserOut.model_validate(current_user)}}
