import logging

from fastapi import APIRouter, Depends
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from auth import AuthContext, get_auth
from database import ORDERS, PRODUCTS, USERS, create_document, get_db, serialize_doc, to_object_id, utcnow
from populate import populate
from responses import NotFound, success
from schemas import Order, OrderInput, OrderStatusInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


def expand(db: Database, orders):
    populate(db, orders, "products.product", PRODUCTS)
    populate(db, orders, "orderBy", USERS)
    return orders


@router.post("/place")
def place_order(
    payload: OrderInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    # payment type is stored as given; no stock or payment checks happen here
    order = Order(
        products=[item.to_line_item() for item in payload.products],
        total=payload.total,
        tax=payload.tax,
        grand_total=payload.grand_total,
        payment_type=payload.payment_type,
        order_by=auth.id,
    )
    order_id = create_document(db, ORDERS, order)
    logger.info("User %s placed order %s. Total: %s", auth.id, order_id, payload.grand_total)

    placed = db[ORDERS].find_one({"_id": order_id})
    populate(db, placed, "orderBy", USERS)
    return success("Order is placed Successfully!", serialize_doc(placed))


@router.get("/all")
def list_all_orders(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    auth.require_admin()
    orders = list(db[ORDERS].find().sort(NEWEST_FIRST))
    return success("All Orders Info", serialize_doc(expand(db, orders)))


@router.get("/me")
def list_my_orders(auth: AuthContext = Depends(get_auth), db: Database = Depends(get_db)):
    orders = list(db[ORDERS].find({"orderBy": auth.id}).sort(NEWEST_FIRST))
    return success("My Orders Info", serialize_doc(expand(db, orders)))


@router.post("/{order_id}")
def update_order_status(
    order_id: str,
    payload: OrderStatusInput,
    auth: AuthContext = Depends(get_auth),
    db: Database = Depends(get_db),
):
    oid = to_object_id(order_id, "Order")
    existing = db[ORDERS].find_one({"_id": oid})
    if not existing:
        raise NotFound("No Order Found!")
    auth.require_owner_or_admin(existing.get("orderBy"))

    order = db[ORDERS].find_one_and_update(
        {"_id": oid},
        {"$set": {"orderStatus": payload.order_status, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise NotFound("No Order Found!")
    logger.info("User %s set status of order %s to %s", auth.id, oid, payload.order_status)
    populate(db, order, "products.product", PRODUCTS)
    return success("Order Status Updated!", serialize_doc(order))
