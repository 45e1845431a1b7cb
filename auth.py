"""
Request authentication and ownership checks.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Union

from bson.objectid import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import get_settings
from database import Database, get_db
from errors import Forbidden, Unauthenticated
from security import ExpiredToken, InvalidToken, decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# A stored owner reference is either the raw id or an expanded user summary.
OwnerRef = Union[ObjectId, str, Mapping[str, Any]]


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    """Resolve the bearer token to a stored user and attach it to the request."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Authentication token required")

    settings = request.app.state.settings
    try:
        principal_id = decode_access_token(credentials.credentials, settings)
    except ExpiredToken:
        raise Unauthenticated("Token expired")
    except InvalidToken:
        raise Unauthenticated("Invalid token")

    if not ObjectId.is_valid(principal_id):
        raise Unauthenticated("Invalid token")
    user = db.collection("user").find_one({"_id": ObjectId(principal_id)})
    if user is None:
        logger.info("Rejected token for missing user %s", principal_id)
        raise Unauthenticated("User no longer exists")

    request.state.user = user
    return user


def owner_id(ref: OwnerRef) -> str:
    if isinstance(ref, Mapping):
        ref = ref.get("id", ref.get("_id"))
    return str(ref)


def is_owner(ref: OwnerRef, principal_id: Union[ObjectId, str]) -> bool:
    return owner_id(ref) == str(principal_id)


def ensure_owner(ref: OwnerRef, principal_id: Union[ObjectId, str], resource: str, action: str) -> None:
    if not is_owner(ref, principal_id):
        logger.info("User %s denied %s on %s owned by %s", principal_id, action, resource, owner_id(ref))
        raise Forbidden(f"You are not authorized to {action} this {resource}")
