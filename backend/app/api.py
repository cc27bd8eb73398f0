"""
Application-level API routes.

Expose `/live` for load balancers and uptime checks.
"""

from fastapi import APIRouter, Request

# No version prefix; live endpoint is exactly `/live`
router = APIRouter()


@router.get("/live")
async def live(request: Request):
    """Liveness probe; reports whether the relay finished starting up."""
    ready = getattr(request.app.state, "orchestrator", None) is not None
    return {"status": "ok" if ready else "starting"}
