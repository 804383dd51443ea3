"""
Routing package for Foyer framework.

Provides:
- ClassDiscoverer for finding classes under a package
- RouteExtractor for turning controllers into route descriptors
- RouteDescriptor/HandlerDescriptor, the compiled route table entries
- RegistryBuilder and the immutable RouteRegistry
- ArgumentBinder for binding request data to handler parameters
"""

from .binding import ArgumentBinder, Bound, ParameterSpec, PathVariable, Rejected, SourceKind
from .extractor import ControllerDescriptor, RouteExtractor
from .registry import RegistryBuilder, RouteRegistry
from .route import HandlerDescriptor, RouteDescriptor, normalize_path
from .scanner import ClassDiscoverer

__all__ = [
    "ArgumentBinder",
    "Bound",
    "ClassDiscoverer",
    "ControllerDescriptor",
    "HandlerDescriptor",
    "ParameterSpec",
    "PathVariable",
    "RegistryBuilder",
    "Rejected",
    "RouteDescriptor",
    "RouteExtractor",
    "RouteRegistry",
    "SourceKind",
    "normalize_path",
]
