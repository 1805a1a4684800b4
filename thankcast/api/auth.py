import logging
from fastapi import Header, HTTPException
from thankcast.infrastructure.supabase_client import get_supabase

logger = logging.getLogger(__name__)

async def get_current_user(authorization: str = Header(...)):
    """
    Validates the Supabase JWT token and returns the user object.
    Expected format: Bearer <token>
    """
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    token = authorization.split(" ")[1]
    logger.debug(f"Validating token starting with: {token[:20]}...")

    try:
        # res is a UserResponse object in recent supabase-py versions
        res = get_supabase().auth.get_user(token)
    except Exception as e:
        logger.warning(f"Auth error exception: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=401, detail=f"Unauthenticated: {str(e)}")

    if not res or not res.user:
        logger.warning("Auth error: No user returned from Supabase")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return res.user
