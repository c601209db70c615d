# errors.py
"""
Typed failures raised by the data-access layer.

Request-scoped failures (NotFoundError, ValidationError, PolicyError) are
translated into HTTP status codes by the API layer. MigrationError and
SeedError are fatal at startup.
"""
from typing import Optional


class PromptBuilderError(Exception):
    """Base exception for all prompt builder failures."""


class NotFoundError(PromptBuilderError):
    """Raised when a project, component, type, block or draft does not exist."""


class ValidationError(PromptBuilderError):
    """Raised when a required field is missing or a value is malformed."""


class PolicyError(PromptBuilderError):
    """Raised when an operation is valid for the schema but forbidden by policy."""


class MigrationError(PromptBuilderError):
    """Raised when a schema-change script fails. The script is not recorded."""

    def __init__(self, script: str, message: str, statement: Optional[str] = None):
        self.script = script
        self.statement = statement
        super().__init__(f"Migration {script} failed: {message}")


class SeedError(PromptBuilderError):
    """Raised when default content cannot be seeded (catalog/migration mismatch)."""
