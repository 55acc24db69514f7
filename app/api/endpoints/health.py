from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_directory
from app.core.config import settings
from app.db.directory import Directory

router = APIRouter(tags=["health"])


def _configured(flag) -> str:
    return "configured" if flag else "not configured"


@router.get("/health")
async def health(request: Request, directory: Directory = Depends(get_directory)):
    db_healthy = await directory.ping()
    providers = request.app.state.llm_providers
    body = {
        "status": "ok" if db_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "services": {
            "database": "healthy" if db_healthy else "unhealthy",
            "database_backend": directory.name,
            "openai": _configured("openai" in providers),
            "grok": _configured("grok" in providers),
            "twilio": _configured(request.app.state.sms_sender is not None),
        },
    }
    return JSONResponse(body, status_code=200 if db_healthy else 503)
