"""
Serving — FastAPI application for ingestion and streaming chat.

Run with ``uvicorn ragstream.serving.app:app``.
"""
