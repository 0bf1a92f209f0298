"""Infrastructure layer: persistence and HTTP transport for the backend API."""
