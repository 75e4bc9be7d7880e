from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status

from usergate.api.context import AppContext, get_context
from usergate.api.schemas import LoginPayload, RegisterPayload
from usergate.auth import REFRESH_COOKIE

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterPayload, context: AppContext = Depends(get_context)) -> dict:
    user = await context.users.create_user(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        theme=payload.theme,
    )
    return {"success": True, "data": user.public().model_dump(mode="json")}


@router.post("/login")
async def login(payload: LoginPayload, response: Response, context: AppContext = Depends(get_context)) -> dict:
    user = await context.users.authenticate_user(payload.username, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    context.cookies.set_session(response, user.principal)
    return {
        "success": True,
        "message": "Authentication successful",
        "data": {"user": user.public().model_dump(mode="json")},
    }


@router.post("/refresh")
async def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    context: AppContext = Depends(get_context),
) -> dict:
    outcome = await context.refresh.run(refresh_token, response)
    response.status_code = outcome.status_code
    return {"success": outcome.succeeded, "message": outcome.message}


@router.post("/logout")
async def logout(response: Response, context: AppContext = Depends(get_context)) -> dict:
    context.cookies.clear_session(response)
    return {"success": True, "message": "Logged out successfully"}
