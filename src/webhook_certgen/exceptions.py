"""Domain exceptions for certificate generation and patching."""

from __future__ import annotations


class CertgenError(Exception):
    """Base exception for webhook-certgen operations.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        """Initialize CertgenError.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)
        self.message = message


class GenerationError(CertgenError):
    """Raised when the random source or key generation fails."""


class EncodingError(CertgenError):
    """Raised when a key or certificate cannot be serialized."""


class InvalidArgumentError(CertgenError):
    """Raised for invalid caller input, checked before any API call.

    This covers unknown admissionregistration versions, unknown failure
    policies, and patch requests that select neither webhook kind.
    """

    def __init__(self, message: str, argument: str | None = None) -> None:
        """Initialize InvalidArgumentError.

        Args:
            message: Human-readable error message.
            argument: Name of the offending argument, if known.
        """
        super().__init__(message)
        self.argument = argument

    def __str__(self) -> str:
        if self.argument:
            return f"{self.argument}: {self.message}"
        return self.message


class StructuralPreconditionError(CertgenError):
    """Raised when a CustomResourceDefinition has no webhook conversion config.

    Not fatal: callers log a warning and keep going with the next definition.
    """

    def __init__(self, missing_field: str) -> None:
        """Initialize StructuralPreconditionError.

        Args:
            missing_field: Dotted path of the absent field.
        """
        super().__init__(f"{missing_field} is not defined")
        self.missing_field = missing_field
