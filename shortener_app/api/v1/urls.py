from fastapi import APIRouter, Depends, HTTPException, status
from shortener_app.schemas.url import (
    DecodeResponse,
    EncodeRequest,
    EncodeResponse,
    ErrorResponse,
)
from shortener_app.services.mapping_store import MappingStore
from shortener_app.dependencies import build_short_url, get_base_url, get_mapping_store

router = APIRouter(tags=["urls"])


@router.post(
    "/encode",
    response_model=EncodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid URL"},
        503: {"model": ErrorResponse, "description": "Store unavailable"},
    },
)
def encode_url(
    payload: EncodeRequest,
    mapping_store: MappingStore = Depends(get_mapping_store),
    base_url: str = Depends(get_base_url),
):
    """Shorten a URL. Encoding a known URL returns its existing short code."""
    mapping = mapping_store.encode(payload.url)
    return EncodeResponse(
        original_url=mapping.original_url,
        short_url=build_short_url(base_url, mapping.short_code),
        short_code=mapping.short_code,
    )


@router.get(
    "/decode/{short_code}",
    response_model=DecodeResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown short code"}},
)
def decode_short_code(
    short_code: str,
    mapping_store: MappingStore = Depends(get_mapping_store),
    base_url: str = Depends(get_base_url),
):
    """Resolve a short code to its original URL (counts as an access)"""
    mapping = mapping_store.decode(short_code)
    if not mapping:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short code not found"
        )
    return DecodeResponse(
        short_code=short_code,
        original_url=mapping.original_url,
        short_url=build_short_url(base_url, short_code),
    )
