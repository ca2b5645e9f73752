"""
Core building blocks shared across the data-provider subsystem.

The package stays free of network code: it exposes the descriptor catalogue,
the canonical models and the logging helpers used by providers and services.
"""

from .logging import ProviderLogger, StructuredLogFormatter, bind_tags, configure_logging, get_logger, log_progress
from .models import OauthTokens, Project
from .registry import (
    AuthFilter,
    DataSourceDescriptor,
    DataSourceKind,
    DataSourceRegistry,
    RegistryLoadError,
    normalise_guid,
)

__all__ = [
    "AuthFilter",
    "DataSourceDescriptor",
    "DataSourceKind",
    "DataSourceRegistry",
    "OauthTokens",
    "ProviderLogger",
    "Project",
    "RegistryLoadError",
    "StructuredLogFormatter",
    "bind_tags",
    "configure_logging",
    "get_logger",
    "log_progress",
    "normalise_guid",
]
