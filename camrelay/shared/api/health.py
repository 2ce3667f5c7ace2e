"""Liveness endpoint; does not touch Redis or the capture device."""

from fastapi import APIRouter
from .utils import ApiSuccess


router = APIRouter(tags=["Health"])


@router.get('/health', response_model=ApiSuccess)
async def health() -> ApiSuccess:
    return ApiSuccess(results="OK")
