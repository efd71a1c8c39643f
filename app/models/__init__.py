from .user import User
from .article import Article
from .comment import Comment
from .like import Like
from .notification import Notification, NotificationType

__all__ = [
    "User",
    "Article",
    "Comment",
    "Like",
    "Notification",
    "NotificationType"
]
