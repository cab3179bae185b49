"""Batch key check endpoint.

POST /check - Validate a batch of AI provider API keys
OPTIONS /check - CORS preflight for browsers and plain OPTIONS requests

Keys are used only for the outbound validation calls and are NOT stored.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field, StrictStr, ValidationError

from api.deps import get_batch_validator
from app.config import get_settings
from app.exceptions import InvalidBatchError, KeyCheckBaseError, MalformedJSONError
from app.logging_config import get_logger
from services.key_validator import BatchValidator
from services.providers import AUTO_HINT

logger = get_logger(__name__)
router = APIRouter()


class CheckKeysRequest(BaseModel):
    """Batch key check request."""

    keys: list[StrictStr] = Field(..., description="Keys to validate, in display order")
    provider: Optional[StrictStr] = Field(
        default=AUTO_HINT,
        description="openai, anthropic, google, mistral or auto",
    )


class KeyCheckResponseItem(BaseModel):
    """Validity of a single key."""

    key: str
    is_valid: bool = Field(serialization_alias="isValid")


def _body_error(errors: list[Any]) -> KeyCheckBaseError:
    """Pick the client-facing error for a rejected request body."""
    if any(error.get("type") == "json_invalid" for error in errors):
        return MalformedJSONError()
    if any(error.get("loc", ())[:1] == ("provider",) for error in errors):
        return InvalidBatchError('Invalid request body: "provider" should be a string.')
    return InvalidBatchError()


def parse_check_request(body: bytes) -> CheckKeysRequest:
    """Parse a raw request body, whatever Content-Type it was sent with.

    Raises:
        MalformedJSONError: body is empty or not JSON.
        InvalidBatchError: JSON does not carry a list of string keys.
    """
    try:
        return CheckKeysRequest.model_validate_json(body)
    except ValidationError as exc:
        raise _body_error(exc.errors()) from None


@router.post(
    "/check",
    response_model=list[KeyCheckResponseItem],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": CheckKeysRequest.model_json_schema()}},
        }
    },
)
async def check_keys(
    request: Request,
    batch_validator: BatchValidator = Depends(get_batch_validator),
) -> list[KeyCheckResponseItem]:
    """Validate every key in the batch.

    Returns one entry per submitted key, in the submitted order. Keys that
    cannot be validated for any reason are reported as invalid.
    """
    payload = parse_check_request(await request.body())
    results = await batch_validator.validate_batch(payload.keys, hint=payload.provider)
    logger.info("keys_checked", count=len(results), provider=payload.provider)
    return [KeyCheckResponseItem(key=r.key, is_valid=r.is_valid) for r in results]


@router.options("/check", include_in_schema=False)
async def check_keys_options() -> Response:
    """Answer OPTIONS that the CORS middleware does not treat as a preflight."""
    return Response(status_code=200, headers=get_settings().cors_headers())
