from datetime import datetime, timezone

from fastapi import APIRouter

from mockmate.schemas.interview import HealthResponse

router = APIRouter()

@router.get("/health", response_model=HealthResponse, summary="Health Check", description="Check the health status of the application.")
async def health_check():
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return HealthResponse(status="OK", timestamp=timestamp)
