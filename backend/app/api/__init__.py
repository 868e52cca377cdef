"""API routes for the episode summarize pipeline."""

from app.api import routes, summary_routes, websocket

__all__ = ["routes", "summary_routes", "websocket"]
