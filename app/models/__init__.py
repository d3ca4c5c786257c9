"""
Import every model from one place.

Usage:
    from app.models import ContactMessage, WriterApplication, GenericRequest
"""

from .base import Base
from .submission import ContactMessage, GenericRequest, WriterApplication

__all__ = [
    "Base",
    "ContactMessage",
    "GenericRequest",
    "WriterApplication",
]
