"""
Documents API routes package.

This package provides a combined router for the gateway endpoints:
- documents: Object storage operations
- index: Document index search and edits
"""

from fastapi import APIRouter

from .documents import router as documents_router
from .index import router as index_router

router = APIRouter()

# Include all sub-routers
router.include_router(documents_router)
router.include_router(index_router)

__all__ = ["router"]
