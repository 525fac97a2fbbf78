"""Base domain exception."""

from typing import Any, Dict


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions. ``details`` carries the
    machine-readable context of the violation (empty by default).
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    @property
    def details(self) -> Dict[str, Any]:
        return {}
