"""
Routers Package

Contains FastAPI router modules for:
- Login gate (catch-all proxy route)
"""

from routers.gate import get_clock
from routers.gate import router as gate_router

__all__ = ["gate_router", "get_clock"]
