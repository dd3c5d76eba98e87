"""
FastAPI Routes.

API 라우트 (REST, /v1 prefix)
"""

from . import drafts, library

__all__ = ["drafts", "library"]
