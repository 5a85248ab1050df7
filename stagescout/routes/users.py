import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional

from beanie import PydanticObjectId
from bson import ObjectId
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel

from stagescout.config import settings
from stagescout.models.post import Post
from stagescout.models.user import User, UserRole
from stagescout.routes.deps import get_current_user, get_or_404
from stagescout.security.validation import validate_username
from stagescout.services.media import media_store
from stagescout.services.posts import serialize_posts
from stagescout.services.users import author_summary, public_profile

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_ROLES = "All Roles"

# upload kind -> (media folder, user field, response key)
UPLOAD_TARGETS = {
    'avatar': ('avatars', 'profile_picture_url', 'Avatar'),
    'resume': ('resumes', 'resume_url', 'Resume'),
    'cover': ('covers', 'cover_photo_url', 'Cover photo'),
}


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    profile_picture_url: Optional[str] = None
    resume_url: Optional[str] = None
    location: Optional[str] = None
    cover_photo_url: Optional[str] = None


class CompleteProfileRequest(BaseModel):
    role: Optional[UserRole] = None
    location: Optional[str] = None
    username: Optional[str] = None


class UpdateUsernameRequest(BaseModel):
    username: str


class BulkUsersRequest(BaseModel):
    ids: List[str]


async def _ensure_username_free(username: str, user: User):
    existing = await User.find_one(User.username == username)
    if existing and existing.id != user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username is already taken."
        )


@router.get("/search")
async def search_users(
    q: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user)
):
    """Search users by name or role, optionally narrowed by role and location"""
    role_filter = role if role and role != ALL_ROLES else None

    if not q and not role_filter and not location:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query or specific filters are required"
        )

    query = {}
    if q:
        pattern = {'$regex': re.escape(q), '$options': 'i'}
        query['$or'] = [{'full_name': pattern}, {'role': pattern}]
    if role_filter:
        query['role'] = role_filter
    if location:
        query['location'] = {'$regex': re.escape(location), '$options': 'i'}

    users = await User.find(query).sort('+full_name').to_list()
    return [
        {**author_summary(user), 'location': user.location}
        for user in users
    ]


@router.put("/me")
async def update_me(request: UpdateProfileRequest, current_user: User = Depends(get_current_user)):
    """Partial profile update; username changes go through /username"""
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(current_user, field, value)

    await current_user.save()
    return public_profile(current_user)


@router.put("/profile")
async def complete_profile(request: CompleteProfileRequest, current_user: User = Depends(get_current_user)):
    """Finish a new user's profile"""
    if request.username:
        validation = validate_username(request.username)
        if not validation['is_valid']:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=' '.join(validation['errors'])
            )
        await _ensure_username_free(request.username, current_user)
        current_user.username = request.username

    current_user.role = request.role or current_user.role
    current_user.location = request.location or current_user.location
    current_user.is_new_user = False

    await current_user.save()
    return public_profile(current_user)


@router.put("/username")
async def update_username(request: UpdateUsernameRequest, current_user: User = Depends(get_current_user)):
    validation = validate_username(request.username)
    if not validation['is_valid']:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=' '.join(validation['errors'])
        )

    await _ensure_username_free(request.username, current_user)

    cooldown = timedelta(days=settings.USERNAME_CHANGE_COOLDOWN_DAYS)
    if current_user.username_last_changed and current_user.username_last_changed > datetime.utcnow() - cooldown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"You can only change your username once every {settings.USERNAME_CHANGE_COOLDOWN_DAYS} days."
        )

    current_user.username = request.username
    current_user.username_last_changed = datetime.utcnow()
    await current_user.save()
    logger.info(f"User {current_user.id} changed username to {current_user.username}")

    return {'success': True, 'message': 'Username updated successfully', 'username': current_user.username}


@router.post("/bulk")
async def get_users_by_ids(request: BulkUsersRequest, current_user: User = Depends(get_current_user)):
    object_ids = [PydanticObjectId(uid) for uid in request.ids if ObjectId.is_valid(uid)]
    users = await User.find({'_id': {'$in': object_ids}}).to_list()
    return [
        {**author_summary(user), 'location': user.location}
        for user in users
    ]


@router.post("/upload/{kind}")
async def upload_user_media(
    kind: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """Upload an avatar, resume or cover photo"""
    target = UPLOAD_TARGETS.get(kind)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown upload type"
        )

    folder, field, label = target
    url = media_store.save(folder, await file.read(), file.filename or "")

    setattr(current_user, field, url)
    await current_user.save()

    return {'success': True, 'message': f'{label} uploaded successfully', field: url}


@router.get("/{user_id}")
async def get_user_profile(user_id: str):
    """Public profile with the user's posts, newest first"""
    user = await get_or_404(User, user_id, "User")
    posts = await Post.find(Post.user_id == user_id).sort('-created_at').to_list()

    return {
        'user': public_profile(user),
        'posts': await serialize_posts(posts),
    }


@router.post("/{user_id}/follow")
async def follow_user(user_id: str, current_user: User = Depends(get_current_user)):
    current_user_id = str(current_user.id)
    if user_id == current_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot follow yourself"
        )

    target = await get_or_404(User, user_id, "User to follow")

    if user_id in current_user.following:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are already following this user"
        )

    current_user.following.append(user_id)
    await current_user.save()

    target.followers.append(current_user_id)
    await target.save()

    return {'success': True, 'message': 'User followed successfully', 'followers_count': len(target.followers)}


@router.delete("/{user_id}/follow")
async def unfollow_user(user_id: str, current_user: User = Depends(get_current_user)):
    current_user_id = str(current_user.id)
    target = await get_or_404(User, user_id, "User to unfollow")

    if user_id not in current_user.following:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are not following this user"
        )

    current_user.following = [uid for uid in current_user.following if uid != user_id]
    await current_user.save()

    target.followers = [uid for uid in target.followers if uid != current_user_id]
    await target.save()

    return {'success': True, 'message': 'User unfollowed successfully', 'followers_count': len(target.followers)}
