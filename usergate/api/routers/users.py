from fastapi import APIRouter, Depends, HTTPException, Query, status

from usergate.api.context import AppContext, get_context
from usergate.api.schemas import Preferences, UserUpdatePayload
from usergate.auth import TokenClaims
from usergate.auth.dependencies import require_access, require_roles
from usergate.users import Role, UserNotFoundError

router = APIRouter(prefix="/api/users", tags=["Users"])

require_admin = require_roles(Role.ADMIN.value)


def _ensure_self_or_admin(claims: TokenClaims, user_id: str, detail: str) -> None:
    if claims.id != user_id and claims.role != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@router.get("/me")
async def get_current_user(
    claims: TokenClaims = Depends(require_access), context: AppContext = Depends(get_context)
) -> dict:
    user = await context.users.find_user_by_id(claims.id)
    if user is None:
        raise UserNotFoundError("User not found")
    return {"success": True, "data": user.public().model_dump(mode="json")}


@router.get("")
async def list_users(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    claims: TokenClaims = Depends(require_admin),
    context: AppContext = Depends(get_context),
) -> dict:
    users = await context.users.list_users(skip=skip, limit=limit)
    return {"success": True, "data": [user.public().model_dump(mode="json") for user in users]}


@router.get("/{user_id}")
async def get_user(
    user_id: str, claims: TokenClaims = Depends(require_access), context: AppContext = Depends(get_context)
) -> dict:
    user = await context.users.find_user_by_id(user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    return {"success": True, "data": user.public().model_dump(mode="json")}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdatePayload,
    claims: TokenClaims = Depends(require_access),
    context: AppContext = Depends(get_context),
) -> dict:
    _ensure_self_or_admin(claims, user_id, "Unauthorized to update this user")
    changes = payload.model_dump(exclude_none=True)
    if "role" in changes and claims.role != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can change roles")

    user = await context.users.update_user(user_id, changes)
    if user is None:
        raise UserNotFoundError("User not found")
    return {"success": True, "data": user.public().model_dump(mode="json")}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str, claims: TokenClaims = Depends(require_admin), context: AppContext = Depends(get_context)
) -> dict:
    if not await context.users.delete_user(user_id):
        raise UserNotFoundError("User not found")
    return {"success": True, "message": "User deleted successfully"}


@router.get("/{user_id}/preferences")
async def get_user_preferences(
    user_id: str, claims: TokenClaims = Depends(require_access), context: AppContext = Depends(get_context)
) -> dict:
    _ensure_self_or_admin(claims, user_id, "Unauthorized to access these preferences")
    user = await context.users.find_user_by_id(user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    preferences = Preferences(theme=user.theme)
    return {"success": True, "data": {"preferences": preferences.model_dump(mode="json")}}
