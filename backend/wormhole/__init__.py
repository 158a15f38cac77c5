"""
Wormhole: resolve signed remote sources into sandboxed, cached components.
"""
from wormhole.components.contracts import (FetchRequest, FetchResponse,
                                           OpenOptions, UriSource)
from wormhole.components.dynamic_component import DynamicComponent
from wormhole.core.errors import (AllocationFailedError, CompilationError,
                                  ComponentUnavailableError,
                                  DynamicComponentError,
                                  InlineExecutionDisallowedError,
                                  InvalidArtifactError,
                                  InvalidResponseShapeError, InvalidSourceError,
                                  MissingVerifierError, TransportError,
                                  UnsafeSourceError, VerificationFailedError)
from wormhole.core.resolution_context import (DynamicComponentContext,
                                              create_dynamic_component)

__version__ = "0.1.0"

__all__ = [
    "AllocationFailedError",
    "CompilationError",
    "ComponentUnavailableError",
    "DynamicComponent",
    "DynamicComponentContext",
    "DynamicComponentError",
    "FetchRequest",
    "FetchResponse",
    "InlineExecutionDisallowedError",
    "InvalidArtifactError",
    "InvalidResponseShapeError",
    "InvalidSourceError",
    "MissingVerifierError",
    "OpenOptions",
    "TransportError",
    "UnsafeSourceError",
    "UriSource",
    "VerificationFailedError",
    "create_dynamic_component",
]
