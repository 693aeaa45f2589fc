"""Error types for the Grocersee pipeline."""

from __future__ import annotations


class GrocerseeError(Exception):
    """Base class for all Grocersee errors."""


class ConfigurationError(GrocerseeError, ValueError):
    """Fatal misconfiguration.

    Raised for malformed detector tensors, label/channel mismatches,
    non-positive frame dimensions and invalid thresholds. Never retried.
    """


class UnreachableVariantError(GrocerseeError, RuntimeError):
    """A frame result reached a stage that does not know its variant."""
