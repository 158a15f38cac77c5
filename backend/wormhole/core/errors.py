"""
Error taxonomy for source resolution
"""
from typing import Optional, Type


class DynamicComponentError(Exception):
    """Base exception for everything the resolution pipeline raises"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingVerifierError(DynamicComponentError):
    """Raised at construction time when no verify() callable is supplied"""
    pass


class InvalidSourceError(DynamicComponentError):
    """Raised when a source is neither an inline string nor a uri record"""
    pass


class InlineExecutionDisallowedError(DynamicComponentError):
    """Raised for inline string sources opened without the explicit opt-in"""
    pass


class InvalidResponseShapeError(DynamicComponentError):
    """Raised when the fetcher returns a payload that is not a string"""
    pass


class VerificationFailedError(DynamicComponentError):
    """Raised when the verifier returns anything but True, or raises"""
    pass


class InvalidArtifactError(DynamicComponentError):
    """Raised when the compiled default export is not callable"""
    pass


class TransportError(DynamicComponentError):
    """Raised when the fetcher fails; carries the fetcher's message"""
    pass


class UnsafeSourceError(DynamicComponentError):
    """Raised when a source fails the sandbox's static checks"""
    pass


class CompilationError(DynamicComponentError):
    """Raised when a source cannot be parsed or raises while executing"""
    pass


class ComponentUnavailableError(DynamicComponentError):
    """Raised for a uri whose previous resolution failed"""
    pass


class AllocationFailedError(DynamicComponentError):
    """Raised to waiters when an attempt settles without a component or an error"""
    pass


def _message_of(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str):
        return message
    return str(exc)


def normalize_error(
    exc: BaseException,
    default: Type[DynamicComponentError] = DynamicComponentError,
    message: Optional[str] = None
) -> DynamicComponentError:
    """
    Normalize an arbitrary exception into the error taxonomy.

    Taxonomy errors pass through untouched. Anything else is wrapped in
    ``default``, keeping the original as ``__cause__``. The message comes from
    a string ``message`` attribute when the exception carries one, otherwise
    from ``str(exc)``.

    Args:
        exc: The exception raised by a pipeline step
        default: Taxonomy class used for foreign exceptions
        message: Optional message overriding the derived one

    Returns:
        A DynamicComponentError instance
    """
    if isinstance(exc, DynamicComponentError):
        return exc
    error = default(message if message is not None else _message_of(exc))
    error.__cause__ = exc
    return error
