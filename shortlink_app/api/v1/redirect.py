from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from shortlink_app.dependencies import get_client_context, get_resolver
from shortlink_app.models.context import ClientContext
from shortlink_app.schemas.url import ErrorResponse, RedirectResult
from shortlink_app.services.redirect_resolver import RedirectResolver

router = APIRouter(tags=["redirect"])
public_router = APIRouter(tags=["redirect"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    410: {"model": ErrorResponse},
}


@router.get("/redirect/", response_model=RedirectResult, responses=ERROR_RESPONSES)
@router.get("/redirect/{shortcode}", response_model=RedirectResult, responses=ERROR_RESPONSES)
def resolve_shortcode(
    shortcode: str = "",
    context: ClientContext = Depends(get_client_context),
    resolver: RedirectResolver = Depends(get_resolver),
):
    """
    Resolve a shortcode and record the click.

    Returns the destination as JSON; the client performs the navigation.
    """
    return resolver.resolve(shortcode, context)


@public_router.get("/r/{shortcode}", responses=ERROR_RESPONSES)
def redirect_to_original_url(
    shortcode: str,
    context: ClientContext = Depends(get_client_context),
    resolver: RedirectResolver = Depends(get_resolver),
):
    """Same resolution as /api/redirect, answered with an HTTP redirect"""
    result = resolver.resolve(shortcode, context)
    return RedirectResponse(url=result.original_url, status_code=status.HTTP_302_FOUND)
