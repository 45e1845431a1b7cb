import logging
from datetime import datetime, timezone
from typing import Any, Dict

from bson.objectid import ObjectId
from fastapi import APIRouter, Body, Depends, status

from auth import ensure_owner, get_current_user
from database import NEWEST_FIRST, Database, expand_user, expand_users, get_db, parse_object_id
from errors import NotFound, validate_model
from schemas import BlogPost as BlogPostSchema, BlogPostCreate, BlogPostUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])


def load_post(db: Database, post_id: str) -> Dict[str, Any]:
    oid = parse_object_id(post_id, "blog post")
    post = db.collection("blogpost").find_one({"_id": oid})
    if not post:
        raise NotFound("blog post", post_id)
    return post


@router.get("")
def list_posts(db: Database = Depends(get_db)):
    items = db.get_documents("blogpost", sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": expand_users(db, items, "author")}


@router.get("/{post_id}")
def get_post(post_id: str, db: Database = Depends(get_db)):
    post = load_post(db, post_id)
    comments = db.get_documents("comment", {"post": post["_id"]}, sort=NEWEST_FIRST)
    data = expand_user(db, post, "author")
    data["comments"] = expand_users(db, comments, "author")
    return {"success": True, "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(payload: BlogPostCreate, current_user: dict = Depends(get_current_user),
                db: Database = Depends(get_db)):
    post = BlogPostSchema(author=current_user["_id"], **payload.model_dump())
    bid = db.create_document("blogpost", post)
    logger.info("User %s created blog post %s", current_user["_id"], bid)
    created = db.collection("blogpost").find_one({"_id": ObjectId(bid)})
    return {
        "success": True,
        "message": "Blog post created successfully",
        "data": expand_user(db, created, "author"),
    }


@router.put("/{post_id}")
def update_post(post_id: str, payload: Any = Body(...),
                current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    post = load_post(db, post_id)
    ensure_owner(post["author"], current_user["_id"], "blog post", "update")

    changes = validate_model(BlogPostUpdate, payload).model_dump()
    update = {k: v for k, v in changes.items() if v is not None}
    posts = db.collection("blogpost")
    if update:
        update["updated_at"] = datetime.now(timezone.utc)
        posts.update_one({"_id": post["_id"]}, {"$set": update})
    post = posts.find_one({"_id": post["_id"]})
    return {
        "success": True,
        "message": "Blog post updated successfully",
        "data": expand_user(db, post, "author"),
    }


@router.delete("/{post_id}")
def delete_post(post_id: str, current_user: dict = Depends(get_current_user),
                db: Database = Depends(get_db)):
    post = load_post(db, post_id)
    ensure_owner(post["author"], current_user["_id"], "blog post", "delete")
    db.collection("blogpost").delete_one({"_id": post["_id"]})
    removed = db.collection("comment").delete_many({"post": post["_id"]}).deleted_count
    logger.info("User %s deleted blog post %s and %d comment(s)", current_user["_id"], post_id, removed)
    return {"success": True, "message": "Blog post deleted successfully", "data": None}
