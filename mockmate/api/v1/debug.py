from fastapi import APIRouter, Depends

from mockmate.core.errors import InvalidRequestError
from mockmate.services.interview_service import InterviewService, get_interview_service

router = APIRouter()


@router.get("/_debug/models", summary="Probe candidate models")
async def debug_models(service: InterviewService = Depends(get_interview_service)):
    if not service.ai_configured:
        raise InvalidRequestError(service.unavailable_reason)
    probes = await service.probe_models()
    return {"provider": service.provider, "probes": probes}
