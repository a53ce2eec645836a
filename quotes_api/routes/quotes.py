"""
Quotes API — Quote Route Handlers
===================================

What:  CRUD endpoints for quotes under /quotes.
How:   Each handler validates the HTTP shape, delegates to the configured
       QuoteStore, and wraps the result in the response envelope.
Who:   API clients; access depends on AUTH_MODE (see dependencies.py).

Route Order:
    /quotes/random is registered before /quotes/{quote_id} so the literal
    segment wins over the path parameter.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body

from quotes_api.dependencies import QuoteAdmin, QuoteReader, QuoteStoreDep
from quotes_api.exceptions import NotFoundError
from quotes_api.middleware.request_id import request_id_var
from quotes_api.schemas.common import ApiResponse
from quotes_api.schemas.quote import Quote, QuoteCreate, QuoteUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])

_error_responses = {
    400: {"description": "Invalid input", "model": ApiResponse[None]},
    401: {"description": "Missing or invalid token", "model": ApiResponse[None]},
    404: {"description": "Quote not found", "model": ApiResponse[None]},
}


@router.get(
    "",
    response_model=ApiResponse[List[Quote]],
    response_model_exclude_none=True,
    responses=_error_responses,
    summary="List all quotes",
)
async def list_quotes(store: QuoteStoreDep, _user: QuoteReader) -> ApiResponse[List[Quote]]:
    quotes = await store.list_all()
    return ApiResponse(status_code=200, message="Quotes retrieved successfully", data=quotes)


@router.get(
    "/random",
    response_model=ApiResponse[Quote],
    response_model_exclude_none=True,
    responses=_error_responses,
    summary="Get one quote at random",
    description="Open to everyone regardless of AUTH_MODE. 404 when the store is empty.",
)
async def random_quote(store: QuoteStoreDep) -> ApiResponse[Quote]:
    quote = await store.get_random()
    if quote is None:
        raise NotFoundError(message="No quotes available")
    return ApiResponse(status_code=200, message="Random quote retrieved successfully", data=quote)


@router.get(
    "/{quote_id}",
    response_model=ApiResponse[Quote],
    response_model_exclude_none=True,
    responses=_error_responses,
    summary="Get a quote by ID",
)
async def get_quote(quote_id: str, store: QuoteStoreDep, _user: QuoteReader) -> ApiResponse[Quote]:
    quote = await store.get_by_id(quote_id)
    if quote is None:
        raise NotFoundError(resource="Quote", resource_id=quote_id)
    return ApiResponse(status_code=200, message="Quote retrieved successfully", data=quote)


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[Quote],
    response_model_exclude_none=True,
    responses=_error_responses,
    summary="Create a quote",
)
async def create_quote(
    store: QuoteStoreDep,
    user: QuoteReader,
    payload: Optional[QuoteCreate] = Body(default=None),
) -> ApiResponse[Quote]:
    """
    Store a new quote.

    An absent body counts as `{}` and fails with
    "Quote must have text and author", like a body missing either field.
    """
    payload = payload or QuoteCreate()
    quote = await store.create(text=payload.text, author=payload.author, tags=payload.tags)
    logger.info(
        "[%s] Quote %s created by %s",
        request_id_var.get(""),
        quote.id,
        user.username if user else "anonymous",
    )
    return ApiResponse(status_code=201, message="Quote created successfully", data=quote)


@router.put(
    "/{quote_id}",
    response_model=ApiResponse[Quote],
    response_model_exclude_none=True,
    responses={**_error_responses, 403: {"description": "Admin role required", "model": ApiResponse[None]}},
    summary="Update a quote",
    description="Only the supplied fields change; `updatedAt` is refreshed.",
)
async def update_quote(
    quote_id: str,
    store: QuoteStoreDep,
    _user: QuoteAdmin,
    payload: Optional[QuoteUpdate] = Body(default=None),
) -> ApiResponse[Quote]:
    payload = payload or QuoteUpdate()
    quote = await store.update(
        quote_id,
        text=payload.text,
        author=payload.author,
        tags=payload.tags,
    )
    return ApiResponse(status_code=200, message="Quote updated successfully", data=quote)


@router.delete(
    "/{quote_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    responses={**_error_responses, 403: {"description": "Admin role required", "model": ApiResponse[None]}},
    summary="Delete a quote",
)
async def delete_quote(quote_id: str, store: QuoteStoreDep, _user: QuoteAdmin) -> ApiResponse[None]:
    await store.delete(quote_id)
    return ApiResponse(status_code=200, message=f"Quote with ID {quote_id} deleted successfully")
