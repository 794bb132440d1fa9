"""Presentation layer: HTTP API, schemas and middleware."""
