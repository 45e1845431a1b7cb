"""
MongoDB storage handle.

The handle is built once at startup, held on the application for the process
lifetime and handed to request handlers through the `get_db` dependency.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson.errors import InvalidId
from bson.objectid import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient

from errors import MalformedIdentifier

logger = logging.getLogger(__name__)

NEWEST_FIRST: List[Tuple[str, int]] = [("created_at", DESCENDING), ("_id", DESCENDING)]


class Database:
    def __init__(self, client: MongoClient, name: str):
        self.client = client
        self.name = name
        self.db = client[name]

    @classmethod
    def connect(cls, url: str, name: str, timeout_ms: int = 5000) -> "Database":
        client = MongoClient(url, serverSelectionTimeoutMS=timeout_ms)
        return cls(client, name)

    def ping(self) -> None:
        self.client.admin.command("ping")

    def ensure_indexes(self) -> None:
        self.db["user"].create_index("username", unique=True)
        self.db["user"].create_index("email", unique=True)
        self.db["project"].create_index("owner")
        self.db["blogpost"].create_index("author")
        self.db["blogpost"].create_index([("created_at", DESCENDING)])
        self.db["comment"].create_index([("post", ASCENDING), ("created_at", ASCENDING)])
        self.db["comment"].create_index("author")
        self.db["message"].create_index([("created_at", DESCENDING)])
        self.db["message"].create_index("email")

    def collection(self, name: str):
        return self.db[name]

    def list_collection_names(self) -> List[str]:
        return self.db.list_collection_names()

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        """Insert `data` stamped with created_at/updated_at; returns the new id."""
        if isinstance(data, BaseModel):
            doc = data.model_dump()
        else:
            doc = dict(data)
        now = datetime.now(timezone.utc)
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self.db[collection_name].insert_one(doc)
        return str(result.inserted_id)

    def get_documents(self, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                      sort: Optional[Sequence[Tuple[str, int]]] = None) -> List[Dict[str, Any]]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(list(sort))
        return list(cursor)

    def close(self) -> None:
        self.client.close()


def get_db(request: Request) -> Database:
    return request.app.state.db


# Helpers

def parse_object_id(value: Any, resource: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise MalformedIdentifier(resource)


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = {k: v for k, v in doc.items() if k != "password_hash"}
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
    return doc


def user_summary(user: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": str(user["_id"]), "username": user["username"], "email": user["email"]}


def expand_users(db: Database, docs: List[Dict[str, Any]], field: str) -> List[Dict[str, Any]]:
    """Shape `docs` for output, replacing the user reference in `field` by a summary."""
    ids = {doc[field] for doc in docs if isinstance(doc.get(field), ObjectId)}
    users = {}
    if ids:
        for user in db.collection("user").find({"_id": {"$in": list(ids)}}):
            users[user["_id"]] = user_summary(user)
    shaped = []
    for doc in docs:
        ref = doc.get(field)
        public = to_public(doc)
        public[field] = users.get(ref, str(ref) if ref is not None else None)
        shaped.append(public)
    return shaped


def expand_user(db: Database, doc: Dict[str, Any], field: str) -> Dict[str, Any]:
    return expand_users(db, [doc], field)[0]
