"""
Database Schemas for the Portfolio Blog API

Each Pydantic model corresponds to a MongoDB collection.
The collection name is the lowercase of the class name.

Collections:
- User: authentication + identity
- Project: portfolio projects
- BlogPost: blog posts
- Comment: comments on blog posts, linked by post reference
- Message: contact form submissions

Request bodies for register/login/contact/comment accept missing fields so
handlers can report them before running schema validation.
"""
import re
from typing import Any, Optional

from bson.objectid import ObjectId
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

IMAGE_URL_RE = re.compile(r"^(https?://.*\.(?:png|jpg|jpeg|gif|webp|svg))$", re.IGNORECASE)
REPO_URL_RE = re.compile(r"^(https?://github\.com/[^/]+/[^/]+(?:\.git)?)$", re.IGNORECASE)
LIVE_URL_RE = re.compile(r"^(https?://.*)$", re.IGNORECASE)
MESSAGE_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}$")


def normalize_email(value: str) -> str:
    """Canonical form used for storing and looking up account emails."""
    value = value.strip()
    try:
        return validate_email(value, check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        # unparseable input can never match a stored account
        return value.lower()


class Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, arbitrary_types_allowed=True)


def _match(pattern: re.Pattern, value: Optional[str], message: str) -> Optional[str]:
    if value and not pattern.match(value):
        raise PydanticCustomError("pattern_mismatch", message)
    return value


class User(Schema):
    username: str = Field(..., min_length=3, max_length=30, description="Unique handle")
    email: EmailStr
    password_hash: str = Field(..., description="bcrypt hash")


class Registration(Schema):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)


class ProjectFields(Schema):
    @field_validator("image_url", check_fields=False)
    @classmethod
    def check_image_url(cls, v):
        return _match(IMAGE_URL_RE, v, "Please provide a valid image URL")

    @field_validator("repo_url", check_fields=False)
    @classmethod
    def check_repo_url(cls, v):
        return _match(REPO_URL_RE, v, "Please provide a valid GitHub repository URL")

    @field_validator("live_url", check_fields=False)
    @classmethod
    def check_live_url(cls, v):
        return _match(LIVE_URL_RE, v, "Please provide a valid live project URL")


class ProjectCreate(ProjectFields):
    title: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    image_url: str = ""
    repo_url: str = ""
    live_url: str = ""


class ProjectUpdate(ProjectFields):
    title: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = Field(None, min_length=10)
    image_url: Optional[str] = None
    repo_url: Optional[str] = None
    live_url: Optional[str] = None


class Project(ProjectCreate):
    owner: ObjectId


class BlogPostCreate(Schema):
    title: str = Field(..., min_length=5)
    content: str = Field(..., min_length=20)


class BlogPostUpdate(Schema):
    title: Optional[str] = Field(None, min_length=5)
    content: Optional[str] = Field(None, min_length=20)


class BlogPost(BlogPostCreate):
    author: ObjectId


class Comment(Schema):
    body: str = Field(..., min_length=1, max_length=1000)
    author: ObjectId
    post: ObjectId


class Message(Schema):
    name: str = Field(..., min_length=2)
    email: str
    message: str = Field(..., min_length=5, max_length=2000)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not MESSAGE_EMAIL_RE.match(v):
            raise PydanticCustomError("pattern_mismatch", "Please provide a valid email")
        return v.lower()


# Request bodies

class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class CommentRequest(BaseModel):
    body: Optional[Any] = None


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
