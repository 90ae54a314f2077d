"""FastAPI HTTP boundary."""
