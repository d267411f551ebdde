from fastapi import APIRouter

from calchat.config import settings
from calchat.db import persistence
from calchat.routes.chat import get_interpreter
from calchat.routes.dto import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def health_check():
    return HealthResponse(
        status="ok",
        service="calchat",
        components={
            "calendar_backend": settings.CALENDAR_BACKEND,
            "llm_provider": settings.LLM_PROVIDER,
            "storage": persistence.get_storage_stats(),
        },
    )


@router.get("/llm")
async def llm_health_check():
    """
    Health check for the language model provider.
    """
    if await get_interpreter().gateway.is_available():
        return {"status": "ok"}
    else:
        return {"status": "error"}
