from .user import User, UserRole
from .post import Post, Comment, Reaction, MediaType
from .group import Group
from .casting_call import CastingCall, ProjectType, RoleType
from .notification import Notification, NotificationStatus, NotificationType
from .conversation import Conversation
from .message import Message

DOCUMENT_MODELS = [User, Post, Group, CastingCall, Notification, Conversation, Message]
