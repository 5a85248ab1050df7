from typing import Type, TypeVar

from beanie import Document
from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stagescout.errors import NotFoundError
from stagescout.models.user import User
from stagescout.security.auth import verify_token
from stagescout.services.messaging import MessagingService

security = HTTPBearer()

DocumentT = TypeVar("DocumentT", bound=Document)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> User:
    """Get current user from JWT token"""
    token = credentials.credentials
    payload = verify_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed"
        )

    user_id = payload.get('user_id')
    user = await User.get(user_id) if user_id and ObjectId.is_valid(user_id) else None

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found"
        )

    return user


async def get_or_404(model: Type[DocumentT], document_id: str, label: str) -> DocumentT:
    """Load a document by id string, treating malformed ids as missing"""
    document = await model.get(document_id) if ObjectId.is_valid(document_id) else None
    if document is None:
        raise NotFoundError(f"{label} not found")
    return document


def get_messaging_service() -> MessagingService:
    return MessagingService()
