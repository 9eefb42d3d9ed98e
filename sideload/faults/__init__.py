"""
Sideload Faults - structured fault types shared by every subsystem.

Faults are typed exceptions carrying a stable code, a domain and a
severity, so callers can report and branch on them without parsing
messages.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

__all__ = [
    "Fault",
    "FaultDomain",
    "Severity",
]
