import mongomock
import pytest
from bson import ObjectId

from populate import collect_ids, populate


@pytest.fixture
def store():
    db = mongomock.MongoClient()["populate_test"]
    db.products.insert_many([
        {"_id": ObjectId(), "title": "Widget"},
        {"_id": ObjectId(), "title": "Gadget"},
    ])
    return db


def test_single_reference(store):
    widget = store.products.find_one({"title": "Widget"})
    doc = {"productObj": widget["_id"]}
    populate(store, doc, "productObj", "products")
    assert doc["productObj"]["title"] == "Widget"


def test_string_reference_is_resolved(store):
    widget = store.products.find_one({"title": "Widget"})
    doc = {"productObj": str(widget["_id"])}
    populate(store, doc, "productObj", "products")
    assert doc["productObj"]["title"] == "Widget"


def test_reference_list_keeps_order_and_drops_missing(store):
    ids = [p["_id"] for p in store.products.find()]
    doc = {"items": [ids[1], ObjectId(), ids[0]]}
    populate(store, doc, "items", "products")
    assert [p["title"] for p in doc["items"]] == ["Gadget", "Widget"]


def test_nested_references_across_many_documents(store):
    widget = store.products.find_one({"title": "Widget"})
    gadget = store.products.find_one({"title": "Gadget"})
    orders = [
        {"products": [{"product": widget["_id"], "count": 1}, {"product": gadget["_id"], "count": 2}]},
        {"products": [{"product": widget["_id"], "count": 3}]},
    ]
    populate(store, orders, "products.product", "products")
    assert [i["product"]["title"] for i in orders[0]["products"]] == ["Widget", "Gadget"]
    assert orders[1]["products"][0]["product"]["title"] == "Widget"
    assert orders[1]["products"][0]["count"] == 3


def test_dangling_reference_becomes_none(store):
    doc = {"productObj": ObjectId()}
    populate(store, doc, "productObj", "products")
    assert doc["productObj"] is None


def test_collect_ids_deduplicates():
    a, b = ObjectId(), ObjectId()
    docs = [{"ref": a}, {"ref": a}, {"ref": [b, a]}, {"other": 1}]
    assert collect_ids(docs, "ref") == [a, b]


def test_none_passes_through(store):
    assert populate(store, None, "productObj", "products") is None
