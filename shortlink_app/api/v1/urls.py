from fastapi import APIRouter, Depends, Request

from shortlink_app.dependencies import get_client_context, get_url_service
from shortlink_app.models.context import ClientContext
from shortlink_app.schemas.url import ErrorResponse, ShortenRequest, ShortenResponse
from shortlink_app.services.url_service import UrlService

router = APIRouter(tags=["urls"])


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def shorten_url(
    payload: ShortenRequest,
    request: Request,
    context: ClientContext = Depends(get_client_context),
    url_service: UrlService = Depends(get_url_service),
):
    """Create a new short URL"""
    record = url_service.create_short_url(
        payload,
        context,
        base_url=str(request.base_url),
    )
    return ShortenResponse.from_record(record)
