# backend/app/routes/v1/variants.py
"""
Variant routes - API v1

Endpoints:
    POST / - Create a dated edition of a catalog product
    GET /{variant_id} - Variant details with its derived window
    PATCH /{variant_id} - Partial update
    DELETE /{variant_id} - Delete a variant
"""

import asyncio
from dataclasses import asdict
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...api.dependencies import get_variant_service
from ...core.exceptions import DomainException
from ...schemas.variant import VariantCreate, VariantResponse, VariantUpdate
from ...services.variant_service import VariantService, VariantView

logger = logging.getLogger(__name__)

router = APIRouter(tags=["variants-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _to_response(view: VariantView) -> VariantResponse:
    return VariantResponse(**asdict(view))


@router.post("", response_model=VariantResponse, status_code=status.HTTP_201_CREATED)
async def create_variant(
    payload: VariantCreate,
    variant_service: VariantService = Depends(get_variant_service),
) -> VariantResponse:
    try:
        view = await asyncio.to_thread(variant_service.create_variant, payload)
        return _to_response(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{variant_id}", response_model=VariantResponse)
async def get_variant(
    variant_id: str,
    variant_service: VariantService = Depends(get_variant_service),
) -> VariantResponse:
    try:
        view = await asyncio.to_thread(variant_service.get_variant, variant_id)
        return _to_response(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{variant_id}", response_model=VariantResponse)
async def update_variant(
    variant_id: str,
    payload: VariantUpdate,
    variant_service: VariantService = Depends(get_variant_service),
) -> VariantResponse:
    try:
        view = await asyncio.to_thread(variant_service.update_variant, variant_id, payload)
        return _to_response(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{variant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_variant(
    variant_id: str,
    variant_service: VariantService = Depends(get_variant_service),
) -> Response:
    try:
        await asyncio.to_thread(variant_service.delete_variant, variant_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
