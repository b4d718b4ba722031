"""
Address book: one shipping address per user.

Creating an address replaces the caller's previous one instead of adding a
second. Update and delete address a document by id and are limited to its
owner.
"""

import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AuthContext, get_auth
from database import ADDRESSES, create_document, get_db, serialize_doc, to_object_id, utcnow
from responses import Conflict, NotFound, success
from schemas import Address, AddressInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/addresses", tags=["addresses"])


def build_address(payload: AddressInput, auth: AuthContext) -> Address:
    return Address(
        name=auth.username,
        email=auth.email,
        user_obj=auth.id,
        **payload.model_dump(),
    )


@router.post("/new")
def create_address(
    payload: AddressInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    removed = db[ADDRESSES].delete_many({"userObj": auth.id}).deleted_count
    if removed:
        logger.info("Replacing the address of user %s", auth.id)
    try:
        address_id = create_document(db, ADDRESSES, build_address(payload, auth))
    except DuplicateKeyError:
        # another request created this user's address between delete and insert
        raise Conflict("Address is already being created for this user")
    address = db[ADDRESSES].find_one({"_id": address_id})
    return success("New Shipping Address is Added!", serialize_doc(address))


@router.put("/{address_id}")
def update_address(
    address_id: str,
    payload: AddressInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    oid = to_object_id(address_id, "Address")
    existing = db[ADDRESSES].find_one({"_id": oid})
    if not existing:
        raise NotFound("No Address Found")
    auth.require_owner(existing.get("userObj"))

    changes = build_address(payload, auth).model_dump(by_alias=True)
    changes["updatedAt"] = utcnow()
    address = db[ADDRESSES].find_one_and_update(
        {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not address:
        raise NotFound("No Address Found")
    return success("Shipping Address is Updated!", serialize_doc(address))


@router.get("/me")
def get_address(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    address = db[ADDRESSES].find_one({"userObj": auth.id})
    if not address:
        raise NotFound("No Address Found")
    return success("Address Found", serialize_doc(address))


@router.delete("/{address_id}")
def delete_address(address_id: str, auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    oid = to_object_id(address_id, "Address")
    address = db[ADDRESSES].find_one({"_id": oid})
    if not address:
        raise NotFound("No Address Found")
    auth.require_owner(address.get("userObj"))

    db[ADDRESSES].delete_one({"_id": oid})
    logger.info("User %s deleted address %s", auth.id, oid)
    return success("Shipping Address is Deleted Successfully!", serialize_doc(address))
