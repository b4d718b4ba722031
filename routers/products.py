import logging
from typing import Any, Dict, List, Union

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AuthContext, get_auth
from database import (
    CATEGORIES,
    PRODUCTS,
    SUBCATEGORIES,
    USERS,
    create_document,
    get_db,
    serialize_doc,
    to_object_id,
    utcnow,
)
from populate import populate
from responses import Conflict, NotFound, success
from schemas import Product, ProductInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def expand(db: Database, products: Union[Dict[str, Any], List[Dict[str, Any]]]):
    populate(db, products, "userObj", USERS)
    populate(db, products, "categoryObj", CATEGORIES)
    populate(db, products, "subCategoryObj", SUBCATEGORIES)
    return products


def build_product(payload: ProductInput, owner: ObjectId) -> Product:
    return Product(
        title=payload.title,
        description=payload.description,
        image_url=payload.image_url,
        brand=payload.brand,
        price=payload.price,
        quantity=payload.quantity,
        category_obj=ObjectId(payload.category_id),
        sub_category_obj=ObjectId(payload.sub_category_id) if payload.sub_category_id else None,
        user_obj=owner,
    )


@router.post("/")
def create_product(
    payload: ProductInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    try:
        product_id = create_document(db, PRODUCTS, build_product(payload, auth.id))
    except DuplicateKeyError:
        raise Conflict("The Product is already exists!")
    logger.info("User %s created product %s (%s)", auth.id, payload.title, product_id)
    product = db[PRODUCTS].find_one({"_id": product_id})
    return success("New Product is Created Successfully!", serialize_doc(product))


@router.put("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    oid = to_object_id(product_id, "The Product")
    existing = db[PRODUCTS].find_one({"_id": oid})
    if not existing:
        raise NotFound("The Product is not exists!")
    auth.require_owner_or_admin(existing.get("userObj"))

    # admin edits leave the owner in place
    changes = build_product(payload, existing.get("userObj")).model_dump(by_alias=True, exclude={"sold"})
    changes["updatedAt"] = utcnow()
    try:
        updated = db[PRODUCTS].find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise Conflict("The Product is already exists!")
    if not updated:
        raise NotFound("The Product is not exists!")
    logger.info("User %s updated product %s", auth.id, oid)
    return success("Product is Updated Successfully!", serialize_doc(updated))


@router.get("/")
def list_products(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    products = list(db[PRODUCTS].find().sort("createdAt", 1))
    return success("All Products", serialize_doc(expand(db, products)))


@router.get("/categories/{category_id}")
def list_products_by_category(
    category_id: str,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    if not ObjectId.is_valid(category_id):
        return success("All the products based on Category", [])
    products = list(db[PRODUCTS].find({"categoryObj": ObjectId(category_id)}).sort("createdAt", 1))
    return success("All the products based on Category", serialize_doc(expand(db, products)))


@router.get("/{product_id}")
def get_product(product_id: str, auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    oid = to_object_id(product_id, "Product")
    product = db[PRODUCTS].find_one({"_id": oid})
    if not product:
        raise NotFound("Product is not Found!")
    return success("Product Found", serialize_doc(expand(db, product)))


@router.delete("/{product_id}")
def delete_product(product_id: str, auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    oid = to_object_id(product_id, "Product")
    product = db[PRODUCTS].find_one({"_id": oid})
    if not product:
        raise NotFound("Product is not Found!")
    auth.require_owner_or_admin(product.get("userObj"))

    expand(db, product)
    db[PRODUCTS].delete_one({"_id": oid})
    logger.info("User %s deleted product %s", auth.id, oid)
    return success(f"The Product {product['title']} is Deleted!", serialize_doc(product))
