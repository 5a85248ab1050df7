import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr

from stagescout.models.user import User, UserRole
from stagescout.routes.deps import get_current_user, get_or_404
from stagescout.security.auth import create_user_token, get_password_hash, verify_password, verify_token
from stagescout.security.validation import validate_password, validate_username
from stagescout.services.users import public_profile

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterRequest(BaseModel):
    full_name: str
    username: str
    email: EmailStr
    password: str
    role: Optional[UserRole] = None
    location: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class VerifyTokenRequest(BaseModel):
    token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ChangeEmailRequest(BaseModel):
    new_email: EmailStr
    password: str


class DeleteAccountRequest(BaseModel):
    password: str


def _raise_if_invalid(validation: dict):
    if not validation['is_valid']:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=' '.join(validation['errors'])
        )


def auth_response(user: User, token: str) -> dict:
    return {
        **public_profile(user),
        'token': token,
        'needs_profile_completion': user.is_new_user or not user.username,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """Register a new user"""
    _raise_if_invalid(validate_username(request.username))
    _raise_if_invalid(validate_password(request.password))

    if await User.find_one(User.email == request.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email."
        )

    if await User.find_one(User.username == request.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This username is already taken."
        )

    user = User(
        full_name=request.full_name,
        username=request.username,
        email=request.email,
        role=request.role,
        location=request.location,
        password_hash=get_password_hash(request.password),
        # The registration form collects everything a profile needs
        is_new_user=False,
    )
    await user.insert()

    logger.info(f"User registered: {user.username}")
    return {
        'success': True,
        'message': 'Registration successful!',
        'user': public_profile(user),
    }


@router.post("/login")
async def login(request: LoginRequest):
    """Authenticate a user"""
    user = await User.find_one(User.email == request.email)

    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials"
        )

    logger.info(f"User logged in: {user.username or user.email}")
    return auth_response(user, create_user_token(str(user.id)))


@router.post("/verify-token")
async def verify_user_token(request: VerifyTokenRequest):
    """Verify a token and return the user it belongs to"""
    if not request.token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided"
        )

    payload = verify_token(request.token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid or has expired"
        )

    user = await get_or_404(User, payload.get('user_id') or "", "User")

    return auth_response(user, request.token)


@router.put("/change-password")
async def change_password(request: ChangePasswordRequest, current_user: User = Depends(get_current_user)):
    if current_user.password_hash and not verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    _raise_if_invalid(validate_password(request.new_password))

    current_user.password_hash = get_password_hash(request.new_password)
    await current_user.save()

    return {'success': True, 'message': 'Password updated successfully'}


@router.put("/change-email")
async def change_email(request: ChangeEmailRequest, current_user: User = Depends(get_current_user)):
    if not verify_password(request.password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password is incorrect"
        )

    existing = await User.find_one(User.email == request.new_email)
    if existing and existing.id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use"
        )

    current_user.email = request.new_email
    await current_user.save()

    return {'success': True, 'message': 'Email updated successfully', 'new_email': current_user.email}


@router.delete("/delete-account")
async def delete_account(request: DeleteAccountRequest, current_user: User = Depends(get_current_user)):
    if current_user.password_hash and not verify_password(request.password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password is incorrect"
        )

    await current_user.delete()
    logger.info(f"Account deleted: {current_user.id}")

    return {'success': True, 'message': 'Account deleted successfully'}
