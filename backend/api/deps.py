"""Shared API dependencies.

Exposes the process-wide validator, built once in ``create_app``,
as an injectable FastAPI dependency.
"""

from __future__ import annotations

from fastapi import Request

from services.key_validator import BatchValidator


def get_batch_validator(request: Request) -> BatchValidator:
    """Get the batch validator attached to the running application."""
    return request.app.state.batch_validator
