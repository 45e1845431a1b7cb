import logging

from bson.objectid import ObjectId
from fastapi import APIRouter, Depends, status

from auth import get_current_user
from database import NEWEST_FIRST, Database, expand_user, expand_users, get_db
from errors import ValidationFailed, validate_model
from routes.blog import load_post
from schemas import Comment as CommentSchema, CommentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog/{post_id}/comments", tags=["comments"])


@router.get("")
def list_comments(post_id: str, db: Database = Depends(get_db)):
    post = load_post(db, post_id)
    items = db.get_documents("comment", {"post": post["_id"]}, sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": expand_users(db, items, "author")}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_comment(post_id: str, payload: CommentRequest,
                   current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    body = payload.body
    if not isinstance(body, str) or not body.strip():
        raise ValidationFailed(["Please provide a comment body"], error="Comment body is required")

    post = load_post(db, post_id)
    comment = validate_model(CommentSchema, {
        "body": body,
        "author": current_user["_id"],
        "post": post["_id"],
    })
    cid = db.create_document("comment", comment)
    logger.info("User %s commented on blog post %s", current_user["_id"], post_id)
    created = db.collection("comment").find_one({"_id": ObjectId(cid)})
    return {
        "success": True,
        "message": "Comment created successfully",
        "data": expand_user(db, created, "author"),
    }
