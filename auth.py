import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from bson import ObjectId
from fastapi import Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from config import get_settings
from database import USERS, get_db
from responses import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

GRAVATAR_URL = "https://www.gravatar.com/avatar/"


# Utilities

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def gravatar_url(email: str, size: int = 200) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return GRAVATAR_URL + digest + "?" + urlencode({"s": size, "r": "pg", "d": "mm"})


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=settings.jwt_expire_seconds))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise Unauthenticated("Unauthorized, invalid token")


def token_for(user: Dict[str, Any]) -> str:
    return create_access_token({"id": str(user["_id"]), "email": user["email"]})


# Credential verification

def read_claim(authorization: Optional[str]) -> dict:
    """Validate a bearer header and return its {id, email} claim."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("No Token Provided")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthenticated("No Token Provided")
    payload = decode_token(token)
    user_id = payload.get("id")
    if not user_id or not ObjectId.is_valid(user_id):
        raise Unauthenticated("Unauthorized, invalid token")
    return {"id": user_id, "email": payload.get("email")}


class AuthContext:
    """The resolved caller for one request, with its role flags."""

    def __init__(self, user: Dict[str, Any], claim: dict):
        self.user = user
        self.claim = claim

    @property
    def id(self) -> ObjectId:
        return self.user["_id"]

    @property
    def username(self) -> str:
        return self.user.get("username", "")

    @property
    def email(self) -> str:
        return self.user.get("email", "")

    @property
    def is_super_admin(self) -> bool:
        return bool(self.user.get("isSuperAdmin"))

    @property
    def is_admin(self) -> bool:
        return bool(self.user.get("isAdmin")) or self.is_super_admin

    def owns(self, owner_id: Any) -> bool:
        return owner_id is not None and str(owner_id) == str(self.id)

    def require_owner(self, owner_id: Any) -> None:
        if not self.owns(owner_id):
            logger.warning("User %s denied access to a resource owned by %s", self.id, owner_id)
            raise Forbidden()

    def require_owner_or_admin(self, owner_id: Any) -> None:
        if not self.is_admin:
            self.require_owner(owner_id)

    def require_admin(self) -> None:
        if not self.is_admin:
            logger.warning("User %s attempted an admin-only action", self.id)
            raise Forbidden("Admins only")

    def require_super_admin(self) -> None:
        if not self.is_super_admin:
            logger.warning("User %s attempted a super-admin-only action", self.id)
            raise Forbidden("Super admins only")


def resolve_user(db: Database, claim: dict) -> AuthContext:
    user = db[USERS].find_one({"_id": ObjectId(claim["id"])})
    if not user:
        logger.warning("Token for missing user %s", claim["id"])
        raise Unauthenticated("User is not Found!")
    return AuthContext(user, claim)


# Dependency to get current user

def get_auth(
    authorization: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
) -> AuthContext:
    claim = read_claim(authorization)
    return resolve_user(db, claim)
