"""HTTP API over a single ThaiSegmenterEngine (FastAPI + uvicorn)."""

from thai_segmenter.server.app import create_app

__all__ = ["create_app"]
