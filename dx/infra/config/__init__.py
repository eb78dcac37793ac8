"""dx configuration: models and the file-backed repository."""

from .models import Config, ConfigurationContext, LocalService, Service
from .repository import (
    ConfigRepository,
    FileSystemConfigRepository,
    SecretsRepository,
    create_templating_values,
    validate_context_name,
)

__all__ = [
    "Config",
    "ConfigurationContext",
    "LocalService",
    "Service",
    "ConfigRepository",
    "SecretsRepository",
    "FileSystemConfigRepository",
    "create_templating_values",
    "validate_context_name",
]
