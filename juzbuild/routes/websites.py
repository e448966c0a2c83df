from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from juzbuild.application import get_site_service
from juzbuild.core.schema import ProvisioningRequest

router = APIRouter(prefix="/websites", tags=["websites"])


def _require_user(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=400, detail="userId is required")
    return user_id.strip()


@router.post("")
async def create_website(payload: dict):
    """Provision a new tenant website and report the outcome of every step."""
    try:
        request = ProvisioningRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors(include_url=False, include_context=False)) from exc

    service = get_site_service()
    outcome = await service.create_website(request)
    if not outcome.success:
        return JSONResponse(status_code=502, content=outcome.to_dict())
    return outcome.to_dict()


@router.get("")
async def list_websites(user_id: str | None = Query(default=None, alias="userId")) -> dict:
    service = get_site_service()
    items = await service.list_sites(_require_user(user_id))
    return {"items": items}


@router.get("/{site_id}")
async def get_website(site_id: str, user_id: str | None = Query(default=None, alias="userId")) -> dict:
    service = get_site_service()
    site = await service.get_site(site_id, _require_user(user_id))
    if not site:
        raise HTTPException(status_code=404, detail="Site not found or access denied")
    return site


@router.delete("/{site_id}")
async def delete_website(site_id: str, user_id: str | None = Query(default=None, alias="userId")) -> dict:
    service = get_site_service()
    result = await service.delete_site(site_id, _require_user(user_id))
    if result is None:
        raise HTTPException(status_code=404, detail="Site not found or access denied")
    return result
