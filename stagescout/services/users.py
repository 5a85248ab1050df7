from typing import Any, Dict, Iterable

from beanie import PydanticObjectId
from bson import ObjectId

from stagescout.models.user import User


def public_profile(user: User) -> Dict[str, Any]:
    """User fields safe to show to anyone"""
    return {
        'id': str(user.id),
        'full_name': user.full_name,
        'username': user.username,
        'email': user.email,
        'role': user.role,
        'location': user.location,
        'bio': user.bio,
        'skills': user.skills,
        'profile_picture_url': user.profile_picture_url,
        'cover_photo_url': user.cover_photo_url,
        'resume_url': user.resume_url,
        'followers': user.followers,
        'following': user.following,
        'is_verified': user.is_verified,
        'is_new_user': user.is_new_user,
        'created_at': user.created_at.isoformat(),
    }


def author_summary(user: User) -> Dict[str, Any]:
    return {
        'id': str(user.id),
        'full_name': user.full_name,
        'username': user.username,
        'role': user.role,
        'profile_picture_url': user.profile_picture_url,
    }


async def load_user_map(user_ids: Iterable[str]) -> Dict[str, User]:
    """Fetch users by id string; unknown or malformed ids are skipped"""
    object_ids = [PydanticObjectId(uid) for uid in set(user_ids) if ObjectId.is_valid(uid)]
    if not object_ids:
        return {}

    users = await User.find({'_id': {'$in': object_ids}}).to_list()
    return {str(user.id): user for user in users}
