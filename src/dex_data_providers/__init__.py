"""
Data-provider integration layer for Digital Excellence.

Import :class:`DataProviderService` for the caller-facing surface and
:class:`DataProviderLoader` to configure which sources are available.
"""

from .core import AuthFilter, OauthTokens, Project
from .providers import AdapterError
from .services import DataProviderAdapter, DataProviderLoader, DataProviderService

__all__ = [
    "AdapterError",
    "AuthFilter",
    "DataProviderAdapter",
    "DataProviderLoader",
    "DataProviderService",
    "OauthTokens",
    "Project",
]
