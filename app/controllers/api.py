from fastapi import APIRouter, Depends

from app.dependencies import general_rate_limit, settings

from . import case_studies

router = APIRouter(prefix="/api", dependencies=[Depends(general_rate_limit)])
router.include_router(case_studies.router)


@router.get("/ping")
async def ping() -> dict[str, str]:
    return {"message": settings.ping_message}
