"""RideWise backend HTTP client."""

from .api import BackendApi

__all__ = ["BackendApi"]
