"""
Sideload Serializer Exceptions — Fault-domain integrated error types.

All serializer errors are Sideload Faults with domain, severity,
and structured metadata for programmatic handling.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..faults.core import Fault, FaultDomain, Severity


# ============================================================================
# Serialization Fault Domain
# ============================================================================

SERIALIZATION = FaultDomain.custom("SERIALIZATION", "Serializer and adapter faults")


# ============================================================================
# Fault Classes
# ============================================================================

class SerializationFault(Fault):
    """
    Base fault for all serializer errors.

    Raised when serialization fails in a structural way (no serializer
    for a resource, unknown adapter, bad serializer configuration).
    """

    def __init__(
        self,
        code: str = "SERIALIZATION_ERROR",
        message: str = "Serialization failed",
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=SERIALIZATION,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class NoSerializerFault(SerializationFault):
    """
    Raised when a collection member has no discoverable serializer.

    Association resolution catches this and degrades to a virtual value;
    at the top level it reaches the caller.
    """

    def __init__(self, resource: Any, *, metadata: Optional[Dict[str, Any]] = None):
        self.resource = resource
        meta = {"resource": repr(resource), "resource_type": type(resource).__name__}
        if metadata:
            meta.update(metadata)
        super().__init__(
            code="NO_SERIALIZER",
            message=f"No serializer found for resource: {resource!r}",
            severity=Severity.WARN,
            metadata=meta,
        )


class UnknownAdapterFault(SerializationFault):
    """Raised when an adapter name is not registered."""

    def __init__(self, name: Any, available: Optional[list[str]] = None):
        super().__init__(
            code="UNKNOWN_ADAPTER",
            message=f"Unknown adapter: {name!r}. Options: {sorted(available or [])}",
            metadata={"adapter": repr(name), "available": sorted(available or [])},
        )
