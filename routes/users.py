import logging

from fastapi import APIRouter, Depends, Request, status

from auth import get_current_user
from database import Database, get_db, user_summary
from errors import DuplicateIdentity, InvalidCredentials, MissingFields, validate_model
from schemas import LoginRequest, RegisterRequest, Registration, User as UserSchema, normalize_email
from security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Database = Depends(get_db)):
    if not payload.username or not payload.email or not payload.password:
        raise MissingFields("Please provide username, email, and password")

    registration = validate_model(Registration, payload.model_dump())
    email = normalize_email(registration.email)

    users = db.collection("user")
    existing = users.find_one({"$or": [{"email": email}, {"username": registration.username}]})
    if existing:
        if existing["email"] == email:
            raise DuplicateIdentity("Email already registered")
        raise DuplicateIdentity("Username already taken")

    settings = request.app.state.settings
    user = UserSchema(
        username=registration.username,
        email=email,
        password_hash=hash_password(payload.password, settings.password_hash_rounds),
    )
    user_id = db.create_document("user", user)
    logger.info("Registered user %s (%s)", registration.username, user_id)

    return {
        "success": True,
        "message": "User registered successfully",
        "data": {
            "user": {"id": user_id, "username": user.username, "email": user.email},
            "token": create_access_token(user_id, settings),
        },
    }


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Database = Depends(get_db)):
    if not payload.email or not payload.password:
        raise MissingFields("Please provide email and password")

    user = db.collection("user").find_one({"email": normalize_email(payload.email)})
    if not user or not verify_password(payload.password, user["password_hash"]):
        logger.info("Failed login for %s", payload.email)
        raise InvalidCredentials()

    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "user": user_summary(user),
            "token": create_access_token(str(user["_id"]), request.app.state.settings),
        },
    }


@router.get("/me")
def me(current_user: dict = Depends(get_current_user)):
    return {"success": True, "data": user_summary(current_user)}
