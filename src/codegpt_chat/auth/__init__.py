from codegpt_chat.auth.identity import IdentityProvider, LocalIdentityProvider
from codegpt_chat.auth.supabase_auth import SupabaseAuthClient

__all__ = [
    "IdentityProvider",
    "LocalIdentityProvider",
    "SupabaseAuthClient",
]
