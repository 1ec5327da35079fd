"""FastAPI dependencies for authentication and quota services."""
