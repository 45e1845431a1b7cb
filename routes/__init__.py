from fastapi import APIRouter

from routes import blog, comments, messages, projects, users

api_router = APIRouter()
api_router.include_router(users.router)
api_router.include_router(projects.router)
api_router.include_router(blog.router)
api_router.include_router(comments.router)
api_router.include_router(messages.router)
