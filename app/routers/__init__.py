# app/routers/__init__.py

from .quotation_router import router as quotation_router

__all__ = [
    "quotation_router",
]
