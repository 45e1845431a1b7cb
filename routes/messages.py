import logging

from bson.objectid import ObjectId
from fastapi import APIRouter, Depends, status

from auth import get_current_user
from database import NEWEST_FIRST, Database, get_db, parse_object_id, to_public
from errors import MissingFields, NotFound, validate_model
from schemas import ContactRequest, Message as MessageSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_message(payload: ContactRequest, db: Database = Depends(get_db)):
    if not payload.name or not payload.email or not payload.message:
        raise MissingFields("Please provide name, email, and message")

    message = validate_model(MessageSchema, payload.model_dump())
    mid = db.create_document("message", message)
    logger.info("Stored contact message %s from %s", mid, message.email)
    stored = db.collection("message").find_one({"_id": ObjectId(mid)})
    return {
        "success": True,
        "message": "Message sent successfully",
        "data": {
            "id": mid,
            "name": stored["name"],
            "email": stored["email"],
            "message": stored["message"],
            "created_at": stored["created_at"],
        },
    }


# Inbox, readable by any authenticated account

@router.get("/messages")
def list_messages(current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    items = db.get_documents("message", sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": [to_public(i) for i in items]}


@router.get("/messages/{message_id}")
def get_message(message_id: str, current_user: dict = Depends(get_current_user),
                db: Database = Depends(get_db)):
    oid = parse_object_id(message_id, "message")
    message = db.collection("message").find_one({"_id": oid})
    if not message:
        raise NotFound("message", message_id)
    return {"success": True, "data": to_public(message)}
