from codegpt_chat.persistence.repository import SessionRepository
from codegpt_chat.persistence.sqlite_repository import SqliteSessionRepository
from codegpt_chat.persistence.supabase_repository import SupabaseSessionRepository

__all__ = [
    "SessionRepository",
    "SqliteSessionRepository",
    "SupabaseSessionRepository",
]
