from typing import Any, Dict, List, Optional

from bson import ObjectId

from stagescout.models.group import Group
from stagescout.models.post import Post
from stagescout.models.user import User
from stagescout.services.users import author_summary, load_user_map


def serialize_post(post: Post, users: Dict[str, User]) -> Dict[str, Any]:
    """Post as JSON with authors resolved from ``users``"""

    def author(user_id: str) -> Optional[Dict[str, Any]]:
        user = users.get(user_id)
        return author_summary(user) if user else None

    return {
        'id': str(post.id),
        'user': author(post.user_id),
        'group_id': post.group_id,
        'title': post.title,
        'description': post.description,
        'media_url': post.media_url,
        'media_type': post.media_type,
        'likes': post.likes,
        'reactions': [
            {'user': author(reaction.user_id), 'emoji': reaction.emoji}
            for reaction in post.reactions
        ],
        'comments': [
            {
                'id': str(comment.id),
                'user': author(comment.user_id),
                'text': comment.text,
                'created_at': comment.created_at.isoformat(),
            }
            for comment in post.comments
        ],
        'created_at': post.created_at.isoformat(),
        'updated_at': post.updated_at.isoformat(),
    }


def referenced_user_ids(posts: List[Post]) -> List[str]:
    user_ids = []
    for post in posts:
        user_ids.append(post.user_id)
        user_ids.extend(reaction.user_id for reaction in post.reactions)
        user_ids.extend(comment.user_id for comment in post.comments)
    return user_ids


async def serialize_posts(posts: List[Post]) -> List[Dict[str, Any]]:
    users = await load_user_map(referenced_user_ids(posts))
    return [serialize_post(post, users) for post in posts]


async def is_group_admin(post: Post, user_id: str) -> bool:
    """True when the post belongs to a group administered by ``user_id``"""
    if not post.group_id or not ObjectId.is_valid(post.group_id):
        return False
    group = await Group.get(post.group_id)
    return group is not None and group.is_admin(user_id)
