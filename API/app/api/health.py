from fastapi import APIRouter

from app.core.settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "neolearn-api",
        "env": settings.app_env,
        "llm_provider": settings.llm_provider,
        "mastery_store_backend": settings.mastery_store_backend,
    }
