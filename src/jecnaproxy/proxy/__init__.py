"""Request/response transformation pipeline."""
