from fastapi import APIRouter, Request
from storefront.config import missing_settings
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/details")
def health_details(request: Request):
    return {
        "ok": not missing_settings(),
        "missing_settings": missing_settings(),
        "rate_limit": rate_limit_health_info(request),
    }
