# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional
from database import DatabaseAdapter, NotFoundError, get_db
from schemas.user import Role, RoleUpdate, UserResponse
from utils.audit import write_log

router = APIRouter(prefix="/admin", tags=["Admin"])


# List users, optionally narrowed to one role
@router.get("/users", response_model=List[UserResponse])
async def get_all_users(
    role: Optional[Role] = Query(None, description="Filter by role"),
    db: DatabaseAdapter = Depends(get_db),
):
    return await db.find_users({"role": role} if role else None)


# Update user role
@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    new_role: RoleUpdate,
    request: Request,
    db: DatabaseAdapter = Depends(get_db),
):
    user = await db.find_user_by_id(user_id)
    if not user:
        raise NotFoundError("User", user_id)

    updated = await db.update_user(user_id, {"role": new_role.role})
    write_log(user_id=user_id, action="ROLE_CHANGE", resource="users",
              ip=request.client.host if request.client else None,
              meta={"old": user["role"], "new": new_role.role})
    return updated


# Delete a user account; admin accounts are protected
@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    request: Request,
    db: DatabaseAdapter = Depends(get_db),
):
    user = await db.find_user_by_id(user_id)
    if not user:
        raise NotFoundError("User", user_id)

    if user["role"] == "admin":
        write_log(user_id=user_id, action="USER_DELETE", resource="users", status="FAIL",
                  meta={"reason": "admin account"})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete admin users")

    await db.delete_user(user_id)
    write_log(user_id=user_id, action="USER_DELETE", resource="users",
              ip=request.client.host if request.client else None, meta={"email": user["email"]})
    return {"message": f"User {user['email']} has been deleted"}
