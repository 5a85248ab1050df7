from typing import Any, Dict, List, Optional

from stagescout.models.post import Post

LIKE_WEIGHT = 1
POST_WEIGHT = 5


def build_leaderboard_pipeline(limit: int, role: Optional[str] = None) -> List[Dict[str, Any]]:
    """Aggregation ranking authors by engagement: likes + 5 per post"""
    pipeline: List[Dict[str, Any]] = []

    if role:
        pipeline += [
            {'$lookup': {
                'from': 'users',
                'let': {'author_id': {'$toObjectId': '$user_id'}},
                'pipeline': [{'$match': {'$expr': {'$eq': ['$_id', '$$author_id']}}}],
                'as': 'author',
            }},
            {'$unwind': '$author'},
            {'$match': {'author.role': role}},
        ]

    pipeline += [
        {'$group': {
            '_id': '$user_id',
            'total_likes': {'$sum': {'$size': {'$ifNull': ['$likes', []]}}},
            'total_posts': {'$sum': 1},
        }},
        {'$lookup': {
            'from': 'users',
            'let': {'author_id': {'$toObjectId': '$_id'}},
            'pipeline': [{'$match': {'$expr': {'$eq': ['$_id', '$$author_id']}}}],
            'as': 'user',
        }},
        {'$unwind': '$user'},
        {'$project': {
            '_id': 0,
            'user_id': '$_id',
            'full_name': '$user.full_name',
            'username': '$user.username',
            'role': '$user.role',
            'profile_picture_url': '$user.profile_picture_url',
            'total_likes': 1,
            'total_posts': 1,
            'engagement_score': {'$add': [
                {'$multiply': ['$total_likes', LIKE_WEIGHT]},
                {'$multiply': ['$total_posts', POST_WEIGHT]},
            ]},
        }},
        {'$sort': {'engagement_score': -1}},
        {'$limit': limit},
    ]
    return pipeline


async def get_leaderboard(limit: int, role: Optional[str] = None) -> List[Dict[str, Any]]:
    pipeline = build_leaderboard_pipeline(limit, role)
    return await Post.aggregate(pipeline).to_list()
