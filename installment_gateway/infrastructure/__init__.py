"""Infrastructure layer: persistence, HTTP clients and background workers."""
