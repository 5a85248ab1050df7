import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from stagescout.config import settings
from stagescout.errors import ConflictError, PermissionDeniedError
from stagescout.models.group import Group
from stagescout.models.post import Post
from stagescout.models.user import User
from stagescout.routes.deps import get_current_user, get_or_404
from stagescout.services.media import media_store
from stagescout.services.posts import serialize_posts
from stagescout.services.users import author_summary, load_user_map

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateGroupRequest(BaseModel):
    name: str
    description: str
    is_private: bool = False
    cover_image: Optional[str] = None


class RemoveMemberRequest(BaseModel):
    member_id: str


def serialize_group(group: Group, users: Optional[dict] = None) -> dict:
    users = users or {}
    admin = users.get(group.admin_id)
    return {
        'id': str(group.id),
        'name': group.name,
        'description': group.description,
        'cover_image': group.cover_image,
        'admin_id': group.admin_id,
        'admin': author_summary(admin) if admin else None,
        'member_ids': group.member_ids,
        'member_count': len(group.member_ids),
        'is_private': group.is_private,
        'created_at': group.created_at.isoformat(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(request: CreateGroupRequest, current_user: User = Depends(get_current_user)):
    """Create a group; the creator becomes its admin and first member"""
    user_id = str(current_user.id)

    administered = await Group.find(Group.admin_id == user_id).count()
    if administered >= settings.MAX_GROUPS_PER_USER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"You have reached the maximum limit of {settings.MAX_GROUPS_PER_USER} groups."
        )

    if await Group.find_one(Group.name == request.name):
        raise ConflictError("A group with this name already exists.")

    group = Group(
        name=request.name,
        description=request.description,
        is_private=request.is_private,
        admin_id=user_id,
        member_ids=[user_id],
    )
    if request.cover_image:
        group.cover_image = request.cover_image

    await group.insert()
    logger.info(f"Group {group.name} created by {user_id}")

    return serialize_group(group, {user_id: current_user})


@router.get("")
async def list_groups(current_user: User = Depends(get_current_user)):
    """Public groups, newest first"""
    groups = await Group.find(Group.is_private == False).sort('-created_at').to_list()  # noqa: E712
    users = await load_user_map(group.admin_id for group in groups)
    return [serialize_group(group, users) for group in groups]


@router.get("/{group_id}")
async def get_group(group_id: str, current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")
    users = await load_user_map([group.admin_id, *group.member_ids])

    data = serialize_group(group, users)
    data['members'] = [author_summary(users[uid]) for uid in group.member_ids if uid in users]
    return data


@router.post("/{group_id}/join")
async def join_group(group_id: str, current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")
    user_id = str(current_user.id)

    if group.is_member(user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are already a member of this group."
        )

    group.member_ids.append(user_id)
    await group.save()

    return {'success': True, 'message': 'Successfully joined the group.'}


@router.post("/{group_id}/leave")
async def leave_group(group_id: str, current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")
    user_id = str(current_user.id)

    if not group.is_member(user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are not a member of this group."
        )

    if group.is_admin(user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin cannot leave the group."
        )

    group.member_ids = [uid for uid in group.member_ids if uid != user_id]
    await group.save()

    return {'success': True, 'message': 'Successfully left the group.'}


@router.post("/{group_id}/remove-member")
async def remove_member(group_id: str, request: RemoveMemberRequest, current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")

    if not group.is_admin(str(current_user.id)):
        raise PermissionDeniedError("Only the group admin can remove members.")

    if group.is_admin(request.member_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin cannot be removed from the group."
        )

    group.member_ids = [uid for uid in group.member_ids if uid != request.member_id]
    await group.save()

    return {'success': True, 'message': 'Member removed successfully.'}


@router.put("/{group_id}/cover")
async def update_group_cover(group_id: str, file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")

    if not group.is_admin(str(current_user.id)):
        raise PermissionDeniedError("User not authorized to update this group")

    group.cover_image = media_store.save('group_covers', await file.read(), file.filename or "")
    await group.save()

    return serialize_group(group)


@router.delete("/{group_id}")
async def delete_group(group_id: str, current_user: User = Depends(get_current_user)):
    """Delete a group together with all of its posts"""
    group = await get_or_404(Group, group_id, "Group")

    if not group.is_admin(str(current_user.id)):
        raise PermissionDeniedError("Only the group admin can delete the group.")

    await Post.find(Post.group_id == group_id).delete()
    await group.delete()
    logger.info(f"Group {group_id} deleted with its posts")

    return {'success': True, 'message': 'Group and all associated posts have been deleted.'}


@router.get("/{group_id}/posts")
async def get_group_posts(group_id: str, current_user: User = Depends(get_current_user)):
    group = await get_or_404(Group, group_id, "Group")

    if group.is_private and not group.is_member(str(current_user.id)):
        raise PermissionDeniedError("You do not have permission to view posts in this private group.")

    posts = await Post.find(Post.group_id == group_id).sort('-created_at').to_list()
    return await serialize_posts(posts)
