# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from database import DatabaseAdapter, get_db
from utils.hashing import get_password_hash
from utils.audit import write_log
from schemas import user as schemas

router = APIRouter(tags=["Auth"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


# Register a new user
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user: schemas.UserCreate, request: Request, db: DatabaseAdapter = Depends(get_db)):
    # Normalize email input
    normalized_email = user.email.strip().lower()

    # Check for existing username / email
    if await db.find_user_by_username(user.username):
        write_log(action="REGISTER", resource="auth", status="FAIL", ip=_client_ip(request),
                  meta={"username": user.username, "reason": "Username exists"})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    if await db.find_user_by_email(normalized_email):
        write_log(action="REGISTER", resource="auth", status="FAIL", ip=_client_ip(request),
                  meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    # Create new user with hashed password
    profile = user.profile or schemas.Profile()
    new_user = await db.create_user({
        "username": user.username,
        "email": normalized_email,
        "password": get_password_hash(user.password),
        "role": user.role,
        "profile": profile.model_dump(),
        "isActive": True,
    })

    write_log(user_id=new_user["id"], action="REGISTER", resource="auth", ip=_client_ip(request),
              meta={"email": new_user["email"], "role": new_user["role"]})
    return new_user
