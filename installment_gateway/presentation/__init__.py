"""Presentation layer: FastAPI routers, schemas and middleware."""
