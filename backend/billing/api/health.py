"""Health API routes"""
from datetime import datetime, timezone
from fastapi import APIRouter

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health")
def health():
    return {
        "status": "OK",
        "message": "Health service is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
