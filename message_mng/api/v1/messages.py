"""
Message API endpoints.

Read-only access to stored MQTT messages and their aggregates. List
endpoints return a bare JSON array plus a Content-Range header.
"""
import logging
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from ...application.services import MessageService
from ...domain.entities.access import RequestContext
from ...domain.entities.message import Message
from ..cancellation import cancel_on_disconnect
from ..dependencies import get_message_service, get_request_context
from ..pagination import (
    DEFAULT_FILTER,
    DEFAULT_RANGE,
    DEFAULT_SORT,
    content_range,
    parse_filter,
    parse_range,
    parse_sort,
)
from ..schemas import ClientAggregationsResponse, ErrorResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/message",
    tags=["Messages"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)


def _to_response(message: Message) -> MessageResponse:
    return MessageResponse.model_validate(asdict(message))


@router.get(
    "",
    response_model=List[MessageResponse],
    summary="List messages",
    description="List messages of every device the caller may see.",
)
async def list_messages(
    request: Request,
    response: Response,
    filter_: str = Query(default=DEFAULT_FILTER, alias="filter"),
    range_: str = Query(default=DEFAULT_RANGE, alias="range"),
    sort: str = Query(default=DEFAULT_SORT),
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    filters = parse_filter(filter_)
    skip, limit = parse_range(range_)
    sort_field, sort_order = parse_sort(sort)

    messages, total = await cancel_on_disconnect(
        request,
        service.list_messages(context, filters, sort_field, sort_order, skip, limit),
    )

    response.headers["Content-Range"] = content_range(skip, len(messages), total)
    return [_to_response(m) for m in messages]


@router.get(
    "/device/{device_id}",
    response_model=List[MessageResponse],
    summary="List device messages",
    description="List messages of one device.",
)
async def list_messages_by_device(
    device_id: str,
    request: Request,
    response: Response,
    range_: str = Query(default=DEFAULT_RANGE, alias="range"),
    sort: str = Query(default=DEFAULT_SORT),
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    skip, limit = parse_range(range_)
    sort_field, sort_order = parse_sort(sort)

    messages, total = await cancel_on_disconnect(
        request,
        service.list_messages_by_device(
            context, device_id, None, sort_field, sort_order, skip, limit
        ),
    )

    response.headers["Content-Range"] = content_range(skip, len(messages), total)
    return [_to_response(m) for m in messages]


@router.get(
    "/aggregations/device/{device_id}",
    response_model=ClientAggregationsResponse,
    summary="Get device aggregations",
    description="Aggregated min/max/avg statistics of one device, for graphing.",
)
async def get_aggregations_by_device(
    device_id: str,
    request: Request,
    period: Optional[str] = None,
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> ClientAggregationsResponse:
    aggregations = await cancel_on_disconnect(
        request,
        service.get_aggregations_by_device(context, device_id, period=period),
    )
    return ClientAggregationsResponse.model_validate(asdict(aggregations))


@router.get(
    "/topic",
    response_model=List[MessageResponse],
    summary="Messages by topic",
)
async def find_messages_by_topic(
    request: Request,
    topic: str = Query(..., min_length=1),
    limit: int = Query(default=100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    messages = await cancel_on_disconnect(
        request, service.find_messages_by_topic(context, topic, limit)
    )
    return [_to_response(m) for m in messages]


@router.get(
    "/client/{client_id}",
    response_model=List[MessageResponse],
    summary="Messages by client id",
)
async def find_messages_by_client_id(
    client_id: str,
    request: Request,
    limit: int = Query(default=100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    messages = await cancel_on_disconnect(
        request, service.find_messages_by_client_id(context, client_id, limit)
    )
    return [_to_response(m) for m in messages]


@router.get(
    "/timerange",
    response_model=List[MessageResponse],
    summary="Messages in a time range",
)
async def find_messages_by_time_range(
    request: Request,
    start: datetime,
    end: datetime,
    limit: int = Query(default=100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    messages = await cancel_on_disconnect(
        request, service.find_messages_by_time_range(context, start, end, limit)
    )
    return [_to_response(m) for m in messages]


@router.get(
    "/{message_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a message",
)
async def get_message(
    message_id: str,
    request: Request,
    context: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    message = await cancel_on_disconnect(request, service.get_message(context, message_id))
    return _to_response(message)
