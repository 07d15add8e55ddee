"""
Authentication Module (v3.0.0)
Firebase ID token authentication for SmartStyle.
"""
import asyncio
import logging
from typing import Optional
from fastapi import Header, HTTPException

from smartstyle.config import get_settings

logger = logging.getLogger(__name__)

# Configuration
BEARER_PREFIX = "Bearer "
DEV_USER_ID = "dev_user"


class User:
    """Authenticated user representation."""
    
    def __init__(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None):
        self.user_id = user_id
        self.email = email
        self.name = name
    
    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name
        }


_firebase_app = None


def _get_firebase_app():
    """Initialize the Firebase Admin app once (lazy)."""
    global _firebase_app
    
    if _firebase_app is not None:
        return _firebase_app
    
    import firebase_admin
    from firebase_admin import credentials
    
    try:
        _firebase_app = firebase_admin.get_app()
        return _firebase_app
    except ValueError:
        pass
    
    settings = get_settings()
    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    
    cred = None
    if settings.firebase_credentials:
        cred = credentials.Certificate(settings.firebase_credentials)
    
    _firebase_app = firebase_admin.initialize_app(cred, options or None)
    logger.info("Firebase Admin initialized")
    return _firebase_app


def verify_id_token(id_token: str) -> Optional[User]:
    """
    Verify a Firebase ID token.
    
    Args:
        id_token: Raw token from the Authorization header
    
    Returns:
        User if the token is valid, None otherwise
    """
    try:
        from firebase_admin import auth as firebase_auth
        
        decoded = firebase_auth.verify_id_token(id_token, app=_get_firebase_app())
        return User(
            user_id=decoded["uid"],
            email=decoded.get("email"),
            name=decoded.get("name")
        )
        
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        return None


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> User:
    """
    FastAPI dependency for authentication.
    
    Usage:
        @router.post("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            ...
    
    Raises:
        HTTPException 401: If the bearer token is missing or invalid
    """
    # Bypass auth for development
    if get_settings().bypass_auth:
        logger.warning("Auth bypass enabled - DEV MODE")
        return User(user_id=DEV_USER_ID, name="Development User")
    
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(
            status_code=401,
            detail="Unauthorized - Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"}
        )
    
    id_token = authorization[len(BEARER_PREFIX):].strip()
    if not id_token:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized - Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"}
        )
    
    # firebase-admin verification is blocking (certificate fetch)
    user = await asyncio.to_thread(verify_id_token, id_token)
    
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized - Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    
    logger.debug(f"Authenticated user: {user.user_id}")
    return user


def check_user_ownership(user: User, requested_user_id: str) -> bool:
    """True if the authenticated user may act on `requested_user_id`'s data."""
    if get_settings().bypass_auth:
        return True
    return user.user_id == requested_user_id
