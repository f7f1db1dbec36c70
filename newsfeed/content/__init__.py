"""
Content services: articles, comments and client-side state.
"""

from newsfeed.content.local_state import LocalState, LocalStateStore
from newsfeed.content.articles import AdminGate, ArticleDraft, ArticleService, ArticleView, ClaimAdminGate
from newsfeed.content.comments import CommentService

__all__ = [
    "LocalState",
    "LocalStateStore",
    "AdminGate",
    "ArticleDraft",
    "ArticleService",
    "ArticleView",
    "ClaimAdminGate",
    "CommentService",
]
