from .users import User
from .posts import Post
from .enums import PostStatus, StatusFilter

__all__ = [
    "User",
    "Post",
    "PostStatus",
    "StatusFilter",
]
