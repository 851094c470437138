"""stackdiff exceptions."""

from typing import List, Optional
from dataclasses import dataclass


class StackDiffError(Exception):
    """Base class for every failure surfaced to the host."""

    exit_code = 1

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ProviderNotFoundError(StackDiffError):
    """Raised when the service declares a backend with no registration."""

    def __init__(self, provider_name: str):
        self.provider_name = provider_name
        super().__init__(f"The specified provider '{provider_name}' does not exist.")


class ProviderLoadError(StackDiffError):
    """Raised when no spec provider implementation can be loaded for a backend."""

    def __init__(self, provider_name: str, cause: BaseException):
        self.provider_name = provider_name
        self.cause = cause
        super().__init__(f"No '{provider_name}' spec provider found: {cause}")


class TemplateNotFoundError(StackDiffError):
    """Raised when the compiled template artifact is missing."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} could not be found")


class DiffFailedError(StackDiffError):
    """Uniform wrapper for anything that goes wrong while diffing."""


class BackendError(StackDiffError):
    """Raised by providers when the backend rejects a request."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class PackageError(StackDiffError):
    """Raised when the packaging command fails."""


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class ConfigValidationError(StackDiffError):
    """Raised when the service definition or diff configuration is invalid.

    Carries every collected error so the CLI can report them all and map
    to the validation exit code.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at '{error.path}': {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))
