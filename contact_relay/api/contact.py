"""Contact form API endpoints.

This module implements submission, listing and the real-time stream of new
submissions.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from contact_relay.api.broadcast import CONTACT_NEW_EVENT, BroadcastRegistry, stream_events
from contact_relay.api.errors import InvalidJSON, PayloadTooLarge
from contact_relay.api.models import ContactMessage, ErrorResponse
from contact_relay.api.storage import DEFAULT_LIST_LIMIT, ContactStore
from contact_relay.api.validation import (
    EMAIL_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    MESSAGE_MIN_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    validate_submission,
)

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

router = APIRouter(tags=["contact"])


def get_store(request: Request) -> ContactStore:
    return request.app.state.store


def get_registry(request: Request) -> BroadcastRegistry:
    return request.app.state.registry


async def read_json_body(request: Request) -> dict:
    """Read a JSON object body of at most ``MAX_BODY_BYTES``.

    The body is read incrementally, so an oversized upload without a
    ``Content-Length`` header is cut off at the limit.

    A body that is valid JSON but not an object is treated as empty, so the
    field checks report the first missing field.

    Raises:
        PayloadTooLarge: If the body exceeds the limit
        InvalidJSON: If the body is not valid JSON
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        raise PayloadTooLarge()

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > MAX_BODY_BYTES:
            raise PayloadTooLarge()
    if not body.strip():
        return {}

    try:
        data = json.loads(body)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidJSON() from e

    return data if isinstance(data, dict) else {}


@router.post(
    "/contact",
    response_model=ContactMessage,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        413: {"model": ErrorResponse, "description": "Body larger than 10 KB"},
        500: {"model": ErrorResponse, "description": "Database error"},
    },
    summary="Submit a contact form",
    description=f"""
    Submit a contact form with name, email, and message.

    **Validation Rules:**
    - Name: {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters after trimming
    - Email: `local@domain.tld` shape, at most {EMAIL_MAX_LENGTH} characters
    - Message: {MESSAGE_MIN_LENGTH}-{MESSAGE_MAX_LENGTH} characters after trimming

    The created record is pushed to every open `/contact/stream` connection
    as a `contact:new` event.
    """,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "required": ["name", "email", "message"],
                        "properties": {
                            "name": {"type": "string", "example": "Ada Lovelace"},
                            "email": {"type": "string", "example": "ada@example.com"},
                            "message": {
                                "type": "string",
                                "example": "Hello from the contact form.",
                            },
                        },
                    }
                }
            },
        }
    },
)
async def submit_contact_form(
    request: Request,
    store: ContactStore = Depends(get_store),
    registry: BroadcastRegistry = Depends(get_registry),
) -> ContactMessage:
    """Validate, persist and broadcast a contact form submission.

    Raises:
        ValidationError: On an invalid field (400)
        StorageError: If the insert fails (500)
    """
    data = await read_json_body(request)
    name, email, message = validate_submission(
        data.get("name"), data.get("email"), data.get("message")
    )

    created = await store.insert(name, email, message)

    logger.info(
        "Contact form submitted",
        extra={
            "contact_id": created.id,
            "ip_address": request.client.host if request.client else None,
        },
    )

    registry.publish(CONTACT_NEW_EVENT, created.to_dict())

    return created


@router.get(
    "/contact",
    response_model=list[ContactMessage],
    responses={500: {"model": ErrorResponse, "description": "Database error"}},
    summary="List recent contact form submissions",
    description=f"Up to {DEFAULT_LIST_LIMIT} submissions, newest first.",
)
async def list_contact_forms(
    store: ContactStore = Depends(get_store),
) -> list[ContactMessage]:
    return await store.list_recent(DEFAULT_LIST_LIMIT)


@router.get(
    "/contact/stream",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Server-Sent Events stream",
            "content": {
                "text/event-stream": {
                    "example": 'event: contact:new\ndata: {"id":1,"name":"Ada Lovelace",...}\n\n'
                }
            },
        }
    },
    summary="Stream new contact form submissions",
    description="""
    Long-lived `text/event-stream` connection.

    - `contact:new` carries each newly created submission
    - `ping` with data `{}` is sent every 25 seconds to keep the connection open
    """,
)
async def stream_contact_forms(
    request: Request,
    registry: BroadcastRegistry = Depends(get_registry),
) -> StreamingResponse:
    return StreamingResponse(
        stream_events(registry, request.app.state.settings.ping_interval),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
