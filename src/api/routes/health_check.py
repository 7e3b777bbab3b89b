from fastapi import APIRouter, status

from src.domain.plan_catalog import CATALOG_VERSION

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe, does not touch the store"""
    return {"status": "ok", "catalog_version": CATALOG_VERSION}
