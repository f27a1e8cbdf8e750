"""
Authentication routes: login, token check, logout.
"""
from fastapi import APIRouter, Request, Form
from fastapi.responses import JSONResponse

from adp_portal.auth import authenticate, issue_token, username_exists
from adp_portal.config import APP_NAME
from adp_portal.dependencies import get_current_user
from adp_portal.roles import get_role_display_name, get_role_label

router = APIRouter()


def _user_payload(user: dict) -> dict:
    return {
        "id": user["id"],
        "username": user["username"],
        "role": user["role"],
        "roleLabel": get_role_label(user["role"]),
        "roleName": get_role_display_name(user["role"]),
    }


@router.post("/api/login", response_class=JSONResponse)
async def login(username: str = Form(""), password: str = Form("")):
    """Exchange username and password for a bearer token."""
    user = authenticate(username, password)
    return JSONResponse({
        "success": True,
        "token": issue_token(user),
        "user": _user_payload(user),
    })


@router.post("/api/validate-username", response_class=JSONResponse)
async def validate_username(username: str = Form("")):
    exists = username_exists(username)
    return JSONResponse({"success": exists, "exists": exists})


@router.get("/api/verify", response_class=JSONResponse)
async def verify(request: Request):
    """Check the bearer token and return its user."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"success": False, "message": "Invalid or expired token"}, status_code=401)
    return JSONResponse({"success": True, "user": _user_payload(user)})


@router.post("/api/logout", response_class=JSONResponse)
async def logout():
    """Tokens are stateless; the client drops its copy."""
    return JSONResponse({"success": True, "message": "Logged out"})


@router.get("/api/health", response_class=JSONResponse)
async def health(request: Request):
    store = request.app.state.store
    return JSONResponse({"status": "ok", "app": APP_NAME, "works": len(store), "version": store.version})
