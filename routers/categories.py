import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AuthContext, get_auth
from database import CATEGORIES, SUBCATEGORIES, create_document, get_db, serialize_doc, to_object_id, utcnow
from populate import populate
from responses import Conflict, NotFound, success
from schemas import Category, CategoryInput, SubCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.post("/")
def create_category(
    payload: CategoryInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    category = Category(name=payload.name, description=payload.description)
    try:
        category_id = create_document(db, CATEGORIES, category)
    except DuplicateKeyError:
        raise Conflict("This Category is Already Exists")
    logger.info("User %s created category %s (%s)", auth.id, payload.name, category_id)
    return success("New Category is Created!", serialize_doc(db[CATEGORIES].find_one({"_id": category_id})))


@router.post("/{category_id}")
def create_sub_category(
    category_id: str,
    payload: CategoryInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    oid = to_object_id(category_id, "Category")
    if not db[CATEGORIES].find_one({"_id": oid}):
        raise NotFound("Category is not Found!")

    try:
        sub_id = db[SUBCATEGORIES].insert_one(
            SubCategory(name=payload.name, description=payload.description).model_dump(by_alias=True)
        ).inserted_id
    except DuplicateKeyError:
        raise Conflict("Sub Category is already Exists")

    # not atomic with the insert above; a failure here leaves the subcategory orphaned
    category = db[CATEGORIES].find_one_and_update(
        {"_id": oid},
        {"$push": {"subCategories": sub_id}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not category:
        raise NotFound("Category is not Found!")
    logger.info("User %s created sub category %s under %s", auth.id, payload.name, oid)
    populate(db, category, "subCategories", SUBCATEGORIES)
    return success("Sub Category is Created!", serialize_doc(category), status_code=201)


@router.get("/")
def list_categories(db: Database = Depends(get_db)):
    categories = list(db[CATEGORIES].find().sort("createdAt", 1))
    populate(db, categories, "subCategories", SUBCATEGORIES)
    return success("All Categories", serialize_doc(categories))
