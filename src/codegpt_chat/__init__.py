from codegpt_chat.models import ChatSession, Identity, Message, User
from codegpt_chat.results import LoadResult, SendResult
from codegpt_chat.session_store import SessionStore

__all__ = [
    "ChatSession",
    "Identity",
    "LoadResult",
    "Message",
    "SendResult",
    "SessionStore",
    "User",
]
