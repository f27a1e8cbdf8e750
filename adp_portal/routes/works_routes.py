"""
Shared works routes: role views, summary, export and reviewer actions.
"""
import logging
from typing import List

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import JSONResponse, StreamingResponse

from adp_portal.dashboards import FILTER_FIELDS
from adp_portal.dependencies import get_dashboard, require_auth, require_reviewer
from adp_portal.exports import XLSX_MEDIA_TYPE, workbook_bytes
from adp_portal.roles import get_role_label, is_final_approver, session_actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/works")


def _filters(request: Request) -> dict:
    return {k: v for k, v in request.query_params.items() if k in FILTER_FIELDS}


def _serialize(result):
    if isinstance(result, dict):
        return {key: [i.to_dict() for i in items] for key, items in result.items()}
    return [i.to_dict() for i in result]


def _action_response(result, user):
    body = {
        "success": result.applied,
        "applied": result.applied,
        "message": result.message,
        "ids": result.ids,
    }
    if result.applied:
        logger.info("%s: %s", get_role_label(user["role"]), result.message)
        return JSONResponse(body)
    return JSONResponse(body, status_code=409)


# ── Views ─────────────────────────────────────────────────────────────

@router.get("/summary", response_class=JSONResponse)
async def summary(request: Request, user: dict = Depends(require_auth)):
    dashboard = get_dashboard(request, user)
    return JSONResponse({"success": True, "role": user["role"], "counts": dashboard.counts()})


@router.get("/export")
async def export_works(request: Request, user: dict = Depends(require_auth)):
    """Excel workbook of the role's all-works view."""
    dashboard = get_dashboard(request, user)
    items = dashboard.view("all", **_filters(request))
    output, filename = workbook_bytes(items, f"{get_role_label(user['role'])} Works")
    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/certificates", response_class=JSONResponse)
async def certificates(request: Request, user: dict = Depends(require_reviewer)):
    if not is_final_approver(user):
        return JSONResponse({"success": False, "message": "Only CDMA issues certificates"}, status_code=403)
    dashboard = get_dashboard(request, user)
    return JSONResponse({"success": True, "items": dashboard.certificates()})


@router.get("/{view}", response_class=JSONResponse)
async def works_view(request: Request, view: str, user: dict = Depends(require_auth)):
    dashboard = get_dashboard(request, user)
    result = dashboard.view(view, **_filters(request))
    return JSONResponse({"success": True, "view": view, "items": _serialize(result)})


# ── Bulk actions ─────────────────────────────────────────────────────

@router.post("/bulk/approve", response_class=JSONResponse)
async def bulk_approve(request: Request, ids: List[str] = Form(...), remarks: str = Form(""),
                       user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.bulk_approve(ids, remarks, actor=session_actor(user)), user)


@router.post("/bulk/reject", response_class=JSONResponse)
async def bulk_reject(request: Request, ids: List[str] = Form(...), remarks: str = Form(""),
                      user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.bulk_reject(ids, remarks), user)


@router.post("/bulk/forward", response_class=JSONResponse)
async def bulk_forward(request: Request, ids: List[str] = Form(...), department: str = Form(""),
                       remarks: str = Form(""), user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.bulk_forward(ids, department, remarks, actor=session_actor(user)), user)


# ── Single actions ───────────────────────────────────────────────────

@router.post("/{item_id}/approve", response_class=JSONResponse)
async def approve(request: Request, item_id: str, remarks: str = Form(""),
                  user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.approve(item_id, remarks, actor=session_actor(user)), user)


@router.post("/{item_id}/reject", response_class=JSONResponse)
async def reject(request: Request, item_id: str, remarks: str = Form(""),
                 user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.reject(item_id, remarks), user)


@router.post("/{item_id}/forward", response_class=JSONResponse)
async def forward(request: Request, item_id: str, department: str = Form(""), remarks: str = Form(""),
                  user: dict = Depends(require_reviewer)):
    dashboard = get_dashboard(request, user)
    return _action_response(dashboard.forward(item_id, department, remarks, actor=session_actor(user)), user)
