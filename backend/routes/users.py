# backend/routes/users.py
from fastapi import APIRouter, Depends
from database import DatabaseAdapter, NotFoundError, get_db
from schemas.user import UserResponse, UserUpdate
from utils.hashing import get_password_hash

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: DatabaseAdapter = Depends(get_db)):
    user = await db.find_user_by_id(user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


# Update profile fields; only what the client sent is written
@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: str, payload: UserUpdate, db: DatabaseAdapter = Depends(get_db)):
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("password"):
        updates["password"] = get_password_hash(updates["password"])
    if updates.get("email"):
        updates["email"] = updates["email"].strip().lower()

    user = await db.update_user(user_id, updates)
    if not user:
        raise NotFoundError("User", user_id)
    return user
