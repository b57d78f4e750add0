"""
Fath-AI Server API Module
REST endpoints for the research pipeline and the chat layer
"""

from .search import router as search_router
from .chat import router as chat_router
from .memory import router as memory_router
from .title import router as title_router
from .models import router as models_router
from .health import router as health_router

__all__ = [
    "search_router",
    "chat_router",
    "memory_router",
    "title_router",
    "models_router",
    "health_router",
]
