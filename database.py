"""
Database helpers

MongoDB access for the storefront. Collections:
users, categories, subcategories, products, addresses, carts, orders.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import get_settings
from responses import NotFound

logger = logging.getLogger(__name__)

USERS = "users"
CATEGORIES = "categories"
SUBCATEGORIES = "subcategories"
PRODUCTS = "products"
ADDRESSES = "addresses"
CARTS = "carts"
ORDERS = "orders"

# (collection, field) pairs the store itself keeps unique
UNIQUE_FIELDS = [
    (USERS, "email"),
    (CATEGORIES, "name"),
    (SUBCATEGORIES, "name"),
    (PRODUCTS, "title"),
    (ADDRESSES, "userObj"),
    (CARTS, "userObj"),
]

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def connect() -> Database:
    global _client, _db
    settings = get_settings()
    _client = MongoClient(settings.database_url)
    _db = _client[settings.database_name]
    ensure_indexes(_db)
    logger.info("Connected to database %s", settings.database_name)
    return _db


def close() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
        logger.info("Database connection closed.")
    _client = None
    _db = None


def get_db() -> Database:
    if _db is None:
        return connect()
    return _db


def ensure_indexes(db: Database) -> None:
    for collection, field in UNIQUE_FIELDS:
        db[collection].create_index([(field, ASCENDING)], unique=True)
    db[PRODUCTS].create_index([("categoryObj", ASCENDING)])
    db[ORDERS].create_index([("orderBy", ASCENDING), ("createdAt", ASCENDING)])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(id_str: Union[str, ObjectId], what: str = "Document") -> ObjectId:
    # an id that cannot exist is reported the same way as one that does not
    if isinstance(id_str, ObjectId):
        return id_str
    if not ObjectId.is_valid(id_str):
        raise NotFound(f"{what} is not Found!")
    return ObjectId(id_str)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> ObjectId:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict["createdAt"] = now
    data_dict["updatedAt"] = now
    result = db[collection_name].insert_one(data_dict)
    return result.inserted_id


def serialize_doc(doc: Any) -> Any:
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        if doc.tzinfo is None:
            doc = doc.replace(tzinfo=timezone.utc)
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        if k == "password":
            # Never send password hash
            continue
        if k == "_id":
            out["id"] = serialize_doc(v)
        else:
            out[k] = serialize_doc(v)
    return out
