import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AuthContext, get_auth, gravatar_url, hash_password, token_for, verify_password
from database import USERS, create_document, get_db, serialize_doc, to_object_id, utcnow
from responses import Conflict, NotFound, Unauthenticated, success
from schemas import ChangePasswordInput, LoginInput, ProfilePictureInput, RegisterInput, RoleInput, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register")
def register(payload: RegisterInput, db: Database = Depends(get_db)):
    user = User(
        username=payload.username,
        email=payload.email,
        password=hash_password(payload.password),
        image_url=gravatar_url(payload.email),
    )
    try:
        user_id = create_document(db, USERS, user)
    except DuplicateKeyError:
        raise Conflict("User with this Email already exists")
    logger.info("New user registered with ID: %s", user_id)
    return success("User Registration is Success!", None, status_code=201)


@router.post("/login")
def login(payload: LoginInput, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"email": payload.email})
    if not user:
        logger.warning("Login failed: unknown email")
        raise Unauthenticated("Invalid Email ID")
    if not verify_password(payload.password, user.get("password", "")):
        logger.warning("Login failed: wrong password for user %s", user["_id"])
        raise Unauthenticated("Invalid Password")
    logger.info("User %s logged in", user["_id"])
    return success(f"Welcome Back! {user['username']}", serialize_doc(user), token=token_for(user))


@router.get("/me")
def me(auth: AuthContext = Depends(get_auth)):
    return success("Current User Data", serialize_doc(auth.user))


def _set_own_fields(db: Database, auth: AuthContext, fields: dict):
    fields["updatedAt"] = utcnow()
    return db[USERS].find_one_and_update(
        {"_id": auth.id}, {"$set": fields}, return_document=ReturnDocument.AFTER
    )


@router.post("/profile")
def update_profile_picture(
    payload: ProfilePictureInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    user = _set_own_fields(db, auth, {"imageUrl": payload.image_url})
    return success("Profile Picture is Updated!", serialize_doc(user))


@router.post("/change-password")
def change_password(
    payload: ChangePasswordInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    user = _set_own_fields(db, auth, {"password": hash_password(payload.password)})
    logger.info("User %s changed their password", auth.id)
    return success("Password has changed successfully!", serialize_doc(user))


@router.get("/")
def list_users(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    auth.require_admin()
    users = list(db[USERS].find().sort("createdAt", 1))
    return success("All Users", serialize_doc(users))


@router.put("/{user_id}")
def update_role(
    user_id: str,
    payload: RoleInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    auth.require_admin()
    oid = to_object_id(user_id, "The User")
    if not db[USERS].find_one({"_id": oid}):
        raise NotFound("The User does not exist!")

    changes = payload.model_dump(by_alias=True, exclude_none=True)
    if "isSuperAdmin" in changes:
        auth.require_super_admin()
    changes["updatedAt"] = utcnow()
    updated = db[USERS].find_one_and_update(
        {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise NotFound("The User does not exist!")
    logger.info("User %s changed roles of user %s: %s", auth.id, oid,
                {k: v for k, v in changes.items() if k != "updatedAt"})
    return success("User is Updated Successfully!", serialize_doc(updated))


@router.delete("/{user_id}")
def delete_user(user_id: str, auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    oid = to_object_id(user_id, "User")
    user = db[USERS].find_one({"_id": oid})
    if not user:
        raise NotFound("User is not Found!")
    auth.require_owner_or_admin(oid)

    deleted = db[USERS].find_one_and_delete({"_id": oid})
    if not deleted:
        raise NotFound("User is not Found!")
    logger.info("User %s deleted user %s", auth.id, oid)
    return success(f"The User {deleted['username']} is Deleted!", serialize_doc(deleted))
