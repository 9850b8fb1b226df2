"""Schemas module for pipeline descriptors and reports.

Provides Pydantic models for:
- Sanitized extension descriptors
- Distribution root descriptors
- Link and assembly reports
"""

from .descriptor import (
    DESCRIPTOR_DEFAULTS,
    EXTENSION_KEY,
    DistributionDescriptor,
    SanitizedDescriptor,
)
from .reports import DistributionBundle, LinkReport, SkippedTarget

__all__ = [
    "DESCRIPTOR_DEFAULTS",
    "EXTENSION_KEY",
    "DistributionBundle",
    "DistributionDescriptor",
    "LinkReport",
    "SanitizedDescriptor",
    "SkippedTarget",
]
