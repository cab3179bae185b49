"""API v1 router aggregation.

Combines all v1 route modules into a single router.
"""

from __future__ import annotations

from fastapi import APIRouter

from api.v1.routes.keys import router as keys_router

api_v1_router = APIRouter()

api_v1_router.include_router(keys_router, tags=["Key Check"])
