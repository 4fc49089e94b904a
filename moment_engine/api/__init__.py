"""HTTP surface: FastAPI app and DTO mappers."""
