"""Pure business rules used by the application services."""
