"""
Domain models — Pydantic types for descriptors.

All models are re-exported here for convenient access:

    from appinst.core.models import Descriptor, ResolvedDescriptor, VerifyMethod
"""

from appinst.core.models.descriptor import (
    Descriptor,
    ResolvedDescriptor,
    ResolvedStep,
    Step,
    VerifyMethod,
    VersionRecord,
)

__all__ = [
    "Descriptor",
    "ResolvedDescriptor",
    "ResolvedStep",
    "Step",
    "VerifyMethod",
    "VersionRecord",
]
