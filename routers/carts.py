import logging

from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import AuthContext, get_auth
from database import CARTS, PRODUCTS, USERS, create_document, get_db, serialize_doc, to_object_id
from populate import populate
from responses import Conflict, NotFound, success
from schemas import Cart, CartInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/carts", tags=["carts"])


# Totals are computed by the client and stored as given.
@router.post("/")
def create_cart(
    payload: CartInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    db[CARTS].delete_many({"userObj": auth.id})
    cart = Cart(
        products=[item.to_line_item() for item in payload.products],
        total=payload.total,
        tax=payload.tax,
        grand_total=payload.grand_total,
        user_obj=auth.id,
    )
    try:
        cart_id = create_document(db, CARTS, cart)
    except DuplicateKeyError:
        raise Conflict("Cart is already being created for this user")
    logger.info("User %s saved a cart with %d items", auth.id, len(payload.products))

    created = db[CARTS].find_one({"_id": cart_id})
    populate(db, created, "userObj", USERS)
    return success("Cart is created Successfully!", serialize_doc(created))


@router.get("/me")
def get_cart(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    cart = db[CARTS].find_one({"userObj": auth.id})
    if not cart:
        raise NotFound("No Cart Found")
    populate(db, cart, "products.product", PRODUCTS)
    populate(db, cart, "userObj", USERS)
    return success("Cart Info", serialize_doc(cart))


@router.delete("/{cart_id}")
def delete_cart(cart_id: str, auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    oid = to_object_id(cart_id, "Cart")
    cart = db[CARTS].find_one({"_id": oid})
    if not cart:
        raise NotFound("No Cart Found")
    auth.require_owner(cart.get("userObj"))

    db[CARTS].delete_one({"_id": oid})
    return success("Cart is Deleted Successfully!", serialize_doc(cart))
