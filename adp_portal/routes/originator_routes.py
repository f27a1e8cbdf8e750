"""
Engineer routes: CR cycle, local submissions, budget and the batch forward.
"""
from typing import Optional

from fastapi import APIRouter, Request, Depends, Form, File, UploadFile
from fastapi.responses import JSONResponse

from adp_portal import attachments, budget
from adp_portal.dependencies import get_dashboard, require_originator
from adp_portal.roles import session_actor


router = APIRouter(prefix="/api/originator")


def _budget_payload(dashboard) -> dict:
    summary = dashboard.budget_summary()
    data = {key: float(value) for key, value in summary.items()}
    data["formatted"] = {key: budget.format_inr(value) for key, value in summary.items()}
    return data


@router.post("/cycle", response_class=JSONResponse)
async def open_cycle(request: Request, numberOfWorks: str = Form(""), crNumber: str = Form(""),
                     crDate: str = Form(""), user: dict = Depends(require_originator)):
    """Declare (or retarget) the CR the next works belong to."""
    dashboard = get_dashboard(request, user)
    cycle = dashboard.open_cycle(numberOfWorks, crNumber, crDate)
    return JSONResponse({
        "success": True,
        "activeCR": cycle.to_dict() if cycle else None,
        "budget": _budget_payload(dashboard),
    })


@router.get("/submissions", response_class=JSONResponse)
async def list_submissions(request: Request, user: dict = Depends(require_originator)):
    dashboard = get_dashboard(request, user)
    return JSONResponse({"success": True, **dashboard.state()})


@router.post("/submissions", response_class=JSONResponse)
async def submit_work(
    request: Request,
    sector: str = Form(""),
    proposal: str = Form(""),
    area: str = Form(""),
    locality: str = Form(""),
    wardNo: str = Form(""),
    latlong: str = Form(""),
    cost: str = Form(""),
    priority: str = Form(""),
    crNumber: str = Form(""),
    crDate: str = Form(""),
    numberOfWorks: str = Form(""),
    workImage: Optional[UploadFile] = File(None),
    detailedReport: Optional[UploadFile] = File(None),
    user: dict = Depends(require_originator),
):
    """Hold one work locally until the batch is forwarded."""
    dashboard = get_dashboard(request, user)
    fields = {
        "sector": sector,
        "proposal": proposal,
        "area": area,
        "locality": locality,
        "wardNo": wardNo,
        "latlong": latlong,
        "cost": cost,
        "priority": priority,
        "crNumber": crNumber,
        "crDate": crDate,
        "numberOfWorks": numberOfWorks,
        "workImage": await attachments.read_upload(workImage, "workImage"),
        "detailedReport": await attachments.read_upload(detailedReport, "detailedReport"),
    }
    item = dashboard.submit(fields)
    return JSONResponse({
        "success": True,
        "item": item.to_dict(),
        "budget": _budget_payload(dashboard),
        **dashboard.state(),
    })


@router.post("/submissions/{item_id}/edit", response_class=JSONResponse)
async def edit_submission(request: Request, item_id: str, user: dict = Depends(require_originator)):
    dashboard = get_dashboard(request, user)
    item = dashboard.edit(item_id)
    return JSONResponse({"success": True, "item": item.to_dict()})


@router.get("/budget", response_class=JSONResponse)
async def get_budget(request: Request, user: dict = Depends(require_originator)):
    dashboard = get_dashboard(request, user)
    return JSONResponse({"success": True, "budget": _budget_payload(dashboard)})


@router.post("/forward", response_class=JSONResponse)
async def forward_batch(
    request: Request,
    committeeReport: Optional[UploadFile] = File(None),
    councilResolution: Optional[UploadFile] = File(None),
    user: dict = Depends(require_originator),
):
    """Send every held work to the Commissioner."""
    dashboard = get_dashboard(request, user)
    committee = await attachments.read_upload(committeeReport, "committeeReport")
    council = await attachments.read_upload(councilResolution, "councilResolution")
    promoted = await dashboard.forward(committee, council, actor=session_actor(user))
    return JSONResponse({
        "success": True,
        "message": f"{len(promoted)} work(s) forwarded to Commissioner",
        "items": [item.to_dict() for item in promoted],
    })
