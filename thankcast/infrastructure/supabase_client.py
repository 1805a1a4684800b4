import os
from functools import lru_cache
from supabase import create_client, Client

from thankcast.config import SUPABASE_URL, SUPABASE_KEY


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Shared service-role client. Built on first use so that local mode
    and tests never need Supabase credentials.
    """
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ValueError(
            "Supabase credentials not found in environment. "
            f"Checked SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY and NEXT_PUBLIC_* variants. CWD: {os.getcwd()}"
        )
    return create_client(SUPABASE_URL, SUPABASE_KEY)
