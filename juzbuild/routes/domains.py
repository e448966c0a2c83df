from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from juzbuild.application import IntegrationNotConfigured, get_site_service
from juzbuild.core.schema import DomainCheckRequest
from juzbuild.infrastructure import NamecheapError

router = APIRouter(prefix="/domain", tags=["domain"])


@router.post("/check")
async def check_domain(payload: dict) -> dict:
    if not payload.get("domain"):
        raise HTTPException(status_code=400, detail="domain is required")
    try:
        request = DomainCheckRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid domain format") from exc

    service = get_site_service()
    try:
        return await service.check_domain(request.domain)
    except IntegrationNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (NamecheapError, httpx.HTTPError) as exc:
        raise HTTPException(status_code=502, detail=f"Domain check failed: {exc}") from exc
