import logging
from datetime import datetime, timezone
from typing import Any, Dict

from bson.objectid import ObjectId
from fastapi import APIRouter, Body, Depends, status

from auth import ensure_owner, get_current_user
from database import NEWEST_FIRST, Database, expand_user, expand_users, get_db, parse_object_id
from errors import NotFound, validate_model
from schemas import Project as ProjectSchema, ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def load_project(db: Database, project_id: str) -> Dict[str, Any]:
    oid = parse_object_id(project_id, "project")
    project = db.collection("project").find_one({"_id": oid})
    if not project:
        raise NotFound("project", project_id)
    return project


@router.get("")
def list_projects(db: Database = Depends(get_db)):
    items = db.get_documents("project", sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": expand_users(db, items, "owner")}


@router.get("/{project_id}")
def get_project(project_id: str, db: Database = Depends(get_db)):
    project = load_project(db, project_id)
    return {"success": True, "data": expand_user(db, project, "owner")}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreate, current_user: dict = Depends(get_current_user),
                   db: Database = Depends(get_db)):
    project = ProjectSchema(owner=current_user["_id"], **payload.model_dump())
    pid = db.create_document("project", project)
    logger.info("User %s created project %s", current_user["_id"], pid)
    created = db.collection("project").find_one({"_id": ObjectId(pid)})
    return {
        "success": True,
        "message": "Project created successfully",
        "data": expand_user(db, created, "owner"),
    }


@router.put("/{project_id}")
def update_project(project_id: str, payload: Any = Body(...),
                   current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    project = load_project(db, project_id)
    ensure_owner(project["owner"], current_user["_id"], "project", "update")

    changes = validate_model(ProjectUpdate, payload).model_dump()
    update = {k: v for k, v in changes.items() if v is not None}
    projects = db.collection("project")
    if update:
        update["updated_at"] = datetime.now(timezone.utc)
        projects.update_one({"_id": project["_id"]}, {"$set": update})
    project = projects.find_one({"_id": project["_id"]})
    return {
        "success": True,
        "message": "Project updated successfully",
        "data": expand_user(db, project, "owner"),
    }


@router.delete("/{project_id}")
def delete_project(project_id: str, current_user: dict = Depends(get_current_user),
                   db: Database = Depends(get_db)):
    project = load_project(db, project_id)
    ensure_owner(project["owner"], current_user["_id"], "project", "delete")
    db.collection("project").delete_one({"_id": project["_id"]})
    logger.info("User %s deleted project %s", current_user["_id"], project_id)
    return {"success": True, "message": "Project deleted successfully", "data": None}
