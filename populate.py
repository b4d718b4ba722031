"""
Reference expansion

Replaces stored ObjectId references with the documents they point to.
One `$in` query is issued per call, however many primary documents are
given.

    orders = list(db[ORDERS].find(...))
    populate(db, orders, "products.product", PRODUCTS)
    populate(db, orders, "orderBy", USERS)

A path is either a top-level field (holding one id or a list of ids) or
`<list field>.<field>` for ids held inside a list of sub-documents.
References that no longer resolve become None; unresolved entries of an
id list are dropped.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from pymongo.database import Database

Doc = Dict[str, Any]


def _as_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _split(path: str):
    if "." in path:
        outer, inner = path.split(".", 1)
        return outer, inner
    return path, None


def _holders(docs: Iterable[Doc], path: str):
    """Yield (container, key) pairs where a reference lives."""
    outer, inner = _split(path)
    for doc in docs:
        if inner is None:
            if outer in doc:
                yield doc, outer
            continue
        for item in doc.get(outer) or []:
            if isinstance(item, dict) and inner in item:
                yield item, inner


def collect_ids(docs: Iterable[Doc], path: str) -> List[ObjectId]:
    ids: List[ObjectId] = []
    seen = set()
    for holder, key in _holders(docs, path):
        value = holder[key]
        values = value if isinstance(value, list) else [value]
        for v in values:
            oid = _as_id(v)
            if oid is not None and oid not in seen:
                seen.add(oid)
                ids.append(oid)
    return ids


def populate(db: Database, docs: Union[Doc, List[Doc], None], path: str, collection: str):
    if docs is None:
        return None
    many = docs if isinstance(docs, list) else [docs]
    ids = collect_ids(many, path)
    found = {d["_id"]: d for d in db[collection].find({"_id": {"$in": ids}})} if ids else {}

    for holder, key in _holders(many, path):
        value = holder[key]
        if isinstance(value, list):
            holder[key] = [found[oid] for oid in map(_as_id, value) if oid in found]
        else:
            holder[key] = found.get(_as_id(value))
    return docs
