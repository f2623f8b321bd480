"""Session Routes — /login, /logout and /verifyToken.

Invariants:
    - Mounted at the application root (not under /{database})
    - Token strings are returned only by /login
"""

from fastapi import APIRouter, Depends

from reapi.api.dependencies import get_engine
from reapi.core.engine_context import EngineContext
from reapi.schemas.requests import LoginRequest, SuccessResponse, TokenRequest
from reapi.services.session_service import login, logout, verify_token

router = APIRouter(tags=["sessions"])


@router.post("/login")
async def login_route(
    body: LoginRequest, engine: EngineContext = Depends(get_engine),
):
    token = await login(engine, body.username, body.password)
    return SuccessResponse(data={"token": token})


@router.post("/logout")
async def logout_route(
    body: TokenRequest, engine: EngineContext = Depends(get_engine),
):
    await logout(engine, body.username, body.token)
    return SuccessResponse()


@router.post("/verifyToken")
async def verify_token_route(
    body: TokenRequest, engine: EngineContext = Depends(get_engine),
):
    await verify_token(engine, body.username, body.token)
    return SuccessResponse()
