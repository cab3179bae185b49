"""Key validation against AI provider APIs.

KeyValidator performs a single bounded-time request per key and reduces
whatever happens to a boolean. BatchValidator fans a list of keys out
concurrently and gathers the booleans back in input order.

SECURITY:
- Keys are NEVER logged; diagnostics carry an 8-character prefix only
- Exception messages are not logged either, since httpx may embed the
  request URL (and the Google key lives in the URL)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional, cast

import httpx

from app.exceptions import InvalidBatchError
from app.logging_config import get_logger, mask_key
from app.metrics import BATCH_SIZE, KEY_VALIDATION_DURATION, KEY_VALIDATIONS_TOTAL
from services.providers import BaseProvider, ProviderRegistry, ValidationRequest

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class KeyCheckRequest:
    """A single batch item awaiting validation."""

    raw_key: str
    provider_hint: Optional[str] = None


@dataclass(frozen=True)
class KeyCheckResult:
    """Validity of one key, echoed back with the key."""

    key: str
    is_valid: bool


@dataclass(frozen=True)
class ValidationOutcome:
    """Detailed result of one validation; collapsed to a bool for callers."""

    valid: bool
    reason: str
    provider: Optional[str] = None
    status_code: Optional[int] = None


class KeyValidator:
    """Checks one key against its provider."""

    def __init__(
        self,
        registry: ProviderRegistry,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self._transport = transport

    async def validate(
        self,
        key: str,
        hint: Optional[str] = None,
        provider: Optional[BaseProvider] = None,
    ) -> bool:
        """Return True only if the provider accepted the key."""
        outcome = await self.check(key, hint=hint, provider=provider)
        return outcome.valid

    async def check(
        self,
        key: str,
        hint: Optional[str] = None,
        provider: Optional[BaseProvider] = None,
    ) -> ValidationOutcome:
        """Validate a key and describe what happened.

        Unrecognised keys short-circuit without any network call.
        Timeouts, transport failures, non-2xx statuses and any other
        error while building or sending the request all come back
        as an invalid outcome instead of raising.
        """
        provider = provider or self.registry.identify(key, hint)
        if provider is None:
            logger.info("provider_not_found", key_prefix=mask_key(key))
            KEY_VALIDATIONS_TOTAL.labels(provider="unknown", outcome="unrecognized").inc()
            return ValidationOutcome(valid=False, reason="unrecognized")

        name = provider.id.value
        request = provider.build_request(key)
        start_time = time.perf_counter()

        try:
            status_code = await self._send(request)
        except (TimeoutError, httpx.TimeoutException):
            logger.warning(
                "key_validation_timeout",
                provider=name,
                key_prefix=mask_key(key),
                timeout=self.timeout,
            )
            outcome = ValidationOutcome(valid=False, reason="timeout", provider=name)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "key_validation_request_failed",
                provider=name,
                key_prefix=mask_key(key),
                error_type=type(exc).__name__,
            )
            outcome = ValidationOutcome(valid=False, reason="transport_error", provider=name)
        except Exception as exc:
            # e.g. non-ASCII keys cannot be encoded into auth headers
            logger.warning(
                "key_validation_error",
                provider=name,
                key_prefix=mask_key(key),
                error_type=type(exc).__name__,
            )
            outcome = ValidationOutcome(valid=False, reason="error", provider=name)
        else:
            accepted = 200 <= status_code < 300
            if not accepted:
                logger.info(
                    "key_rejected",
                    provider=name,
                    key_prefix=mask_key(key),
                    status_code=status_code,
                )
            outcome = ValidationOutcome(
                valid=accepted,
                reason="accepted" if accepted else "rejected",
                provider=name,
                status_code=status_code,
            )
        finally:
            KEY_VALIDATION_DURATION.labels(provider=name).observe(
                time.perf_counter() - start_time
            )

        KEY_VALIDATIONS_TOTAL.labels(provider=name, outcome=outcome.reason).inc()
        return outcome

    async def _send(self, request: ValidationRequest) -> int:
        """Send the request under a hard deadline and return its status code.

        Hitting the deadline cancels the in-flight call; the client is
        closed on every exit path.
        """
        async with asyncio.timeout(self.timeout):
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    request.method,
                    request.url,
                    headers=dict(request.headers),
                    params=dict(request.params),
                    json=request.body,
                )
        return response.status_code


class BatchValidator:
    """Validates many keys concurrently, preserving input order."""

    def __init__(self, validator: KeyValidator) -> None:
        self.validator = validator

    async def validate_batch(
        self, keys: Any, hint: Optional[str] = None
    ) -> list[KeyCheckResult]:
        """Validate every key and return one result per key, in order.

        Raises:
            InvalidBatchError: keys is not a list of strings.
        """
        items = self._to_requests(keys, hint)
        BATCH_SIZE.observe(len(items))

        results: list[Optional[KeyCheckResult]] = [None] * len(items)

        async def run(index: int, item: KeyCheckRequest) -> None:
            is_valid = await self._guarded_validate(item)
            results[index] = KeyCheckResult(key=item.raw_key, is_valid=is_valid)

        async with asyncio.TaskGroup() as group:
            for index, item in enumerate(items):
                group.create_task(run(index, item))

        # TaskGroup only exits once every task has filled its slot
        completed = cast(list[KeyCheckResult], results)
        logger.info(
            "batch_validated",
            total=len(completed),
            valid=sum(1 for r in completed if r.is_valid),
            hint=hint or "auto",
        )
        return completed

    async def _guarded_validate(self, item: KeyCheckRequest) -> bool:
        """Failure boundary: no single key may abort the batch."""
        try:
            return await self.validator.validate(item.raw_key, hint=item.provider_hint)
        except Exception:
            logger.exception(
                "key_validation_unexpected_error",
                key_prefix=mask_key(item.raw_key),
            )
            return False

    @staticmethod
    def _to_requests(keys: Any, hint: Optional[str]) -> list[KeyCheckRequest]:
        if not isinstance(keys, (list, tuple)):
            raise InvalidBatchError()
        if not all(isinstance(key, str) for key in keys):
            raise InvalidBatchError()
        return [KeyCheckRequest(raw_key=key, provider_hint=hint) for key in keys]


def build_batch_validator(
    registry: ProviderRegistry,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BatchValidator:
    """Wire a BatchValidator over a shared read-only registry."""
    return BatchValidator(KeyValidator(registry, timeout=timeout, transport=transport))
