"""
VLRBUDDY - API Module
FastAPI routes and schemas for the esports catalog mirror.
"""

from app.api.routes import api_router

__all__ = ["api_router"]
