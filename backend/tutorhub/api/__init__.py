"""FastAPI dependency wiring."""
