import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from stagescout.errors import PermissionDeniedError
from stagescout.models.group import Group
from stagescout.models.post import Comment, MediaType, Post, Reaction
from stagescout.models.user import User
from stagescout.routes.deps import get_current_user, get_or_404
from stagescout.services.media import media_store, media_type_for
from stagescout.services.posts import is_group_admin, serialize_posts

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdatePostRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None


class ReactRequest(BaseModel):
    emoji: str


class CommentRequest(BaseModel):
    text: str


async def _serialize_one(post: Post) -> dict:
    return (await serialize_posts([post]))[0]


async def _require_owner_or_group_admin(post: Post, user: User, action: str):
    user_id = str(user.id)
    if post.user_id != user_id and not await is_group_admin(post, user_id):
        raise PermissionDeniedError(f"Not authorized to {action} this post")


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_post_media(file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    """Upload media for a post without creating it"""
    media_url = media_store.save('posts', await file.read(), file.filename or "")
    return {
        'message': 'File uploaded successfully.',
        'media_url': media_url,
        'media_type': media_type_for(file.filename or ""),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    title: str = Form(""),
    description: Optional[str] = Form(None),
    group_id: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user)
):
    if not title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title content is required."
        )

    user_id = str(current_user.id)

    if group_id:
        group = await Group.get(group_id) if ObjectId.is_valid(group_id) else None
        if not group or not group.is_member(user_id):
            raise PermissionDeniedError("You are not a member of this group.")

    media_url = None
    media_type = None
    if file is not None and file.filename:
        media_url = media_store.save('posts', await file.read(), file.filename)
        media_type = media_type_for(file.filename)

    post = Post(
        user_id=user_id,
        group_id=group_id or None,
        title=title,
        description=description,
        media_url=media_url,
        media_type=media_type,
    )
    await post.insert()

    logger.info(f"Post {post.id} created by {user_id}")
    return await _serialize_one(post)


@router.get("")
async def get_feed(current_user: User = Depends(get_current_user)):
    """Feed of posts that do not belong to a group, newest first"""
    posts = await Post.find({'group_id': None}).sort('-created_at').to_list()
    return await serialize_posts(posts)


@router.put("/{post_id}")
async def update_post(post_id: str, request: UpdatePostRequest, current_user: User = Depends(get_current_user)):
    post = await get_or_404(Post, post_id, "Post")
    await _require_owner_or_group_admin(post, current_user, "update")

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(post, field, value)

    await post.save()
    return await _serialize_one(post)


@router.delete("/{post_id}")
async def delete_post(post_id: str, current_user: User = Depends(get_current_user)):
    post = await get_or_404(Post, post_id, "Post")
    await _require_owner_or_group_admin(post, current_user, "delete")

    await post.delete()
    logger.info(f"Post {post_id} deleted by {current_user.id}")

    return {'success': True, 'message': 'Post removed successfully'}


@router.put("/{post_id}/like")
async def toggle_like(post_id: str, current_user: User = Depends(get_current_user)):
    post = await get_or_404(Post, post_id, "Post")
    user_id = str(current_user.id)

    if user_id in post.likes:
        post.likes = [uid for uid in post.likes if uid != user_id]
    else:
        post.likes.append(user_id)

    await post.save()
    return {'likes': post.likes}


@router.post("/{post_id}/react")
async def react_to_post(post_id: str, request: ReactRequest, current_user: User = Depends(get_current_user)):
    """One reaction per user; reacting again replaces the emoji"""
    if not request.emoji:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Emoji is required."
        )

    post = await get_or_404(Post, post_id, "Post")
    user_id = str(current_user.id)

    for reaction in post.reactions:
        if reaction.user_id == user_id:
            reaction.emoji = request.emoji
            break
    else:
        post.reactions.append(Reaction(user_id=user_id, emoji=request.emoji))

    await post.save()
    return (await _serialize_one(post))['reactions']


@router.post("/{post_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(post_id: str, request: CommentRequest, current_user: User = Depends(get_current_user)):
    if not request.text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment text is required."
        )

    post = await get_or_404(Post, post_id, "Post")
    post.comments.append(Comment(user_id=str(current_user.id), text=request.text))
    await post.save()

    return (await _serialize_one(post))['comments']


@router.delete("/{post_id}/comment/{comment_id}")
async def delete_comment(post_id: str, comment_id: str, current_user: User = Depends(get_current_user)):
    post = await get_or_404(Post, post_id, "Post")

    comment = post.find_comment(comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    user_id = str(current_user.id)
    if comment.user_id != user_id and post.user_id != user_id and not await is_group_admin(post, user_id):
        raise PermissionDeniedError("Not authorized to delete this comment")

    post.comments = [c for c in post.comments if c.id != comment.id]
    await post.save()

    return {'success': True, 'message': 'Comment removed'}
