"""
Common dependencies for route handlers.
"""
from typing import Optional

from fastapi import Request

from adp_portal.auth import verify_token
from adp_portal.dashboards import dashboard_for
from adp_portal.exceptions import AuthError, PermissionDenied
from adp_portal import roles


def get_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_user(request: Request) -> Optional[dict]:
    """
    Get the current user from the bearer token.
    Returns user dict or None if not authenticated.
    """
    return verify_token(get_token(request))


def require_auth(request: Request) -> dict:
    """
    Dependency that requires authentication.
    Raises AuthError if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise AuthError("Not authenticated")
    return user


def require_originator(request: Request) -> dict:
    user = require_auth(request)
    if not roles.is_originator(user):
        raise PermissionDenied("Only the engineer can do this")
    return user


def require_reviewer(request: Request) -> dict:
    user = require_auth(request)
    if user['role'] not in roles.REVIEWER_ROLES:
        raise PermissionDenied("Only reviewers can do this")
    return user


def get_dashboard(request: Request, user: dict):
    """Dashboard of the session's own role; a session never reaches another role's."""
    state = request.app.state
    return dashboard_for(user, state.store, state.originators)
