from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from shortener_app.schemas.url import ErrorResponse
from shortener_app.services.mapping_store import MappingStore
from shortener_app.dependencies import get_mapping_store

router = APIRouter(tags=["redirect"])


@router.get(
    "/{short_code}",
    response_class=RedirectResponse,
    status_code=status.HTTP_301_MOVED_PERMANENTLY,
    responses={404: {"model": ErrorResponse, "description": "Unknown short code"}},
)
def redirect_to_original_url(
    short_code: str,
    mapping_store: MappingStore = Depends(get_mapping_store),
):
    """
    Redirect to the original URL.

    Flow:
    1. Decode the short code (increments access_count in the store)
    2. 301 to the original URL, or 404 if the code is unknown
    """
    mapping = mapping_store.decode(short_code)

    if not mapping:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short code not found"
        )

    return RedirectResponse(url=mapping.original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
