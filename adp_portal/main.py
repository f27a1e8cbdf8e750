"""
Main FastAPI application entry point.
ADP Works Portal - municipal works approval chain
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from adp_portal.auth import seed_default_users
from adp_portal.config import APP_NAME, LOG_LEVEL
from adp_portal.exceptions import PortalError
from adp_portal.routes import auth_routes, works_routes, originator_routes
from adp_portal.storage import build_storage
from adp_portal.store import WorkItemStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Municipal works proposal and multi-level approval portal",
    version="1.0.0"
)

# Engineer dashboards, keyed by user id
app.state.originators = {}
app.state.store = WorkItemStore()


# Initialize storage and the shared store on startup
@app.on_event("startup")
async def startup_event():
    storage = build_storage()
    app.state.store = WorkItemStore.load(storage)
    app.state.originators = {}
    seed_default_users()
    logger.info("%s started with %d works", APP_NAME, len(app.state.store))


# Include route modules
app.include_router(auth_routes.router, tags=["Authentication"])
app.include_router(originator_routes.router, tags=["Engineer"])
app.include_router(works_routes.router, tags=["Works"])


# Error handlers
@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s refused: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(500)
async def server_error_handler(request: Request, exc):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"success": False, "message": "Internal server error"}, status_code=500)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("adp_portal.main:app", host="127.0.0.1", port=8000, reload=True)
