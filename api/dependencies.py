"""
FastAPI dependencies
"""

from fastapi import Request

from core.context import AppContext


def get_context(request: Request) -> AppContext:
    """Application context built at startup"""
    return request.app.state.context
