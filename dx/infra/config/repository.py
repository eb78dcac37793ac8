"""Loading the dx configuration file and the selected context."""

from __future__ import annotations

import hashlib
from typing import Any, Protocol

import yaml
from loguru import logger
from pydantic import ValidationError

from dx.infra.constants import DeploymentConstants, DeploymentPaths
from dx.infra.errors import ConfigError
from dx.infra.filesystem import SandboxedFileSystem
from dx.utils.paths import expand_home

from .models import Config, ConfigurationContext, Service


class ConfigRepository(Protocol):
    def load_config(self) -> Config: ...

    def load_current_context_name(self) -> str: ...

    def load_current_configuration_context(self) -> ConfigurationContext: ...


class SecretsRepository(Protocol):
    def load_secrets(self, context_name: str) -> dict[str, str]: ...


def _short_hash(*parts: str) -> str:
    return hashlib.sha256("-".join(parts).encode()).hexdigest()[:12]


def validate_context_name(name: str, constants: DeploymentConstants | None = None) -> None:
    """Reject context names that could traverse out of the state directory.

    Raises:
        ConfigError: If the name is empty or contains path characters
    """
    constants = constants or DeploymentConstants()
    if not name:
        raise ConfigError("Context name cannot be empty")
    if constants.INVALID_CONTEXT_NAME_PATTERN.search(name):
        raise ConfigError(f"Context name '{name}' contains invalid characters")


def overlay_service(base: Service, overlay: Service) -> Service:
    """Return ``base`` with every non-empty source field of ``overlay`` applied."""
    updates: dict[str, Any] = {}
    for field_name in (
        "git_repo_path",
        "git_ref",
        "helm_repo_path",
        "helm_branch",
        "helm_chart_relative_path",
    ):
        value = getattr(overlay, field_name)
        if value:
            updates[field_name] = value
    return base.model_copy(update=updates)


def merge_configuration_contexts(
    base: ConfigurationContext, overlay: ConfigurationContext
) -> ConfigurationContext:
    """Merge a user context on top of an imported base context.

    Services are matched by name; overlay services without a counterpart in
    the base are ignored. Local services from both are kept, base first.
    """
    overlays = {svc.name: svc for svc in overlay.services}
    services = [
        overlay_service(svc, overlays[svc.name]) if svc.name in overlays else svc
        for svc in base.services
    ]
    return base.model_copy(
        update={
            "name": overlay.name or base.name,
            "import_path": overlay.import_path,
            "services": services,
            "local_services": [*base.local_services, *overlay.local_services],
        }
    )


class FileSystemConfigRepository:
    """Reads ``~/.dx-config.yaml`` and ``~/.dx/current-context``.

    The parsed configuration is cached for the lifetime of the repository.
    """

    def __init__(
        self,
        file_system: SandboxedFileSystem,
        paths: DeploymentPaths,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.file_system = file_system
        self.paths = paths
        self.constants = constants or DeploymentConstants()
        self._config: Config | None = None

    def load_config(self) -> Config:
        """Load, merge and validate the configuration file.

        Raises:
            ConfigError: If the file is unreadable, not YAML, or invalid
        """
        if self._config is not None:
            return self._config

        try:
            content = self.file_system.read_file(self.paths.config_file)
        except OSError as e:
            raise ConfigError(
                "Failed to read config file",
                details=f"{self.paths.config_file}: {e}",
            ) from e

        try:
            loaded = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError("Failed to parse config file", details=str(e)) from e

        try:
            config = Config.model_validate(loaded)
        except ValidationError as e:
            raise ConfigError("Config validation failed", details=str(e)) from e

        contexts = []
        for context in config.contexts:
            validate_context_name(context.name, self.constants)
            if context.import_path:
                context = self._apply_import(context)
            contexts.append(self._derive_paths(context))

        self._config = config.model_copy(update={"contexts": contexts})
        return self._config

    def _apply_import(self, context: ConfigurationContext) -> ConfigurationContext:
        # Import files are user-chosen and may live anywhere, so they are
        # read outside the sandbox.
        import_file = expand_home(context.import_path or "", self.paths.home)
        try:
            with open(import_file) as f:
                base = ConfigurationContext.model_validate(yaml.safe_load(f) or {})
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning(f"Ignoring import {import_file} for context '{context.name}': {e}")
            return context
        return merge_configuration_contexts(base, context)

    def _derive_paths(self, context: ConfigurationContext) -> ConfigurationContext:
        services = []
        for service in context.services:
            profiles = list(service.profiles) or ["default"]
            if "all" not in profiles:
                profiles.append("all")

            helm_path = self.paths.charts_dir(context.name) / _short_hash(
                service.helm_repo_path, service.helm_branch
            )
            path = ""
            if service.git_repo_path and service.git_ref:
                path = str(
                    self.paths.context_dir(context.name)
                    / service.name
                    / _short_hash(service.git_repo_path, service.git_ref)
                )
            services.append(
                service.model_copy(
                    update={"profiles": profiles, "helm_path": str(helm_path), "path": path}
                )
            )
        return context.model_copy(update={"services": services})

    def load_current_context_name(self) -> str:
        """Read the selected context name.

        Raises:
            ConfigError: If the file is missing or holds an invalid name
        """
        try:
            data = self.file_system.read_file(self.paths.current_context_file)
        except OSError as e:
            raise ConfigError(
                "Failed to read current context",
                details="Select a context first, e.g. 'dx context set <name>'",
            ) from e
        name = data.decode().strip()
        validate_context_name(name, self.constants)
        return name

    def save_current_context_name(self, name: str) -> None:
        """Persist ``name`` as the selected context.

        Raises:
            ConfigError: If the name is invalid or cannot be written
        """
        validate_context_name(name, self.constants)
        try:
            self.file_system.write_file(self.paths.current_context_file, name)
        except OSError as e:
            raise ConfigError("Failed to save current context", details=str(e)) from e

    def load_current_configuration_context(self) -> ConfigurationContext:
        name = self.load_current_context_name()
        context = self.load_config().get_context(name)
        if context is None:
            raise ConfigError(f"Current context '{name}' not found in config")
        return context


def _nest_dotted(pairs: dict[str, str]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in pairs.items():
        *parents, leaf = key.split(".")
        current = nested
        for part in parents:
            child = current.get(part)
            if not isinstance(child, dict):
                child = current[part] = {}
            current = child
        current[leaf] = value
    return nested


def create_templating_values(
    config_repository: ConfigRepository,
    secrets_repository: SecretsRepository,
) -> dict[str, Any]:
    """Build the values Helm argument templates are rendered with.

    Returns:
        ``{"Secrets": {...}, "Services": {...}}`` where dotted secret keys
        become nested mappings and each service exposes ``path`` and
        ``gitRef`` when set.
    """
    context_name = config_repository.load_current_context_name()
    context = config_repository.load_current_configuration_context()
    secrets = secrets_repository.load_secrets(context_name)

    services: dict[str, Any] = {}
    for service in context.services:
        entry = {}
        if service.path:
            entry["path"] = service.path
        if service.git_ref:
            entry["gitRef"] = service.git_ref
        if entry:
            services[service.name] = entry

    return {"Secrets": _nest_dotted(secrets), "Services": services}
