"""
API v1 Router - Aggregates all API endpoints.
"""
from fastapi import APIRouter

from chronomap.api.v1 import elements, epochs, timeline

api_router = APIRouter()

# Current and year-reconstructed element records
api_router.include_router(elements.router, prefix="/elements", tags=["Elements"])

# Epochs live inside the timeline document
api_router.include_router(epochs.router, prefix="/timeline/epochs", tags=["Epochs"])

api_router.include_router(timeline.router, prefix="/timeline", tags=["Timeline"])
