"""Service layer: adaptee loader, canonical adapter and the provider façade."""

from .adapter import DataProviderAdapter
from .data_provider import DataProviderService
from .loader import DataProviderLoader

__all__ = ["DataProviderAdapter", "DataProviderLoader", "DataProviderService"]
