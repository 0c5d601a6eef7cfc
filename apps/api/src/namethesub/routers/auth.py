from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..services.identity import PLAYER_COOKIE, PLAYER_COOKIE_MAX_AGE, get_identity_manager


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/guest")
async def issue_guest(request: Request) -> JSONResponse:
    manager = get_identity_manager()
    existing = manager.read(request.cookies.get(PLAYER_COOKIE))
    player_id, token = manager.issue(existing)
    response = JSONResponse({"player_id": player_id, "issued": existing is None})
    response.set_cookie(
        PLAYER_COOKIE,
        token,
        secure=False,
        httponly=True,
        samesite="lax",
        max_age=PLAYER_COOKIE_MAX_AGE,
    )
    return response


@router.get("/me")
async def current_player(request: Request) -> JSONResponse:
    identity = get_identity_manager().resolve(request)
    return JSONResponse({"player_id": identity.player_id, "anonymous": identity.anonymous})


@router.post("/logout")
async def logout() -> JSONResponse:
    response = JSONResponse({"ok": True})
    response.delete_cookie(PLAYER_COOKIE)
    return response
