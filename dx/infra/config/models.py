"""Configuration models for ``~/.dx-config.yaml``.

YAML keys are camelCase; attributes are snake_case with aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LocalService(_ConfigModel):
    """A service that runs on the developer machine instead of the cluster."""

    name: str = Field(min_length=1)
    local_port: int = Field(default=0, alias="localPort")
    kubernetes_port: int = Field(alias="kubernetesPort", gt=0)
    health_check_path: str = Field(default="", alias="healthCheckPath")
    selector: dict[str, str] = Field(default_factory=dict)


class Service(_ConfigModel):
    """A Helm-deployed service of the application."""

    name: str = Field(min_length=1)
    helm_repo_path: str = Field(default="", alias="helmRepoPath")
    helm_branch: str = Field(default="", alias="helmBranch")
    helm_chart_relative_path: str = Field(default="", alias="helmChartRelativePath")
    helm_args: list[str] = Field(default_factory=list, alias="helmArgs")
    profiles: list[str] = Field(default_factory=list)
    git_repo_path: str = Field(default="", alias="gitRepoPath")
    git_ref: str = Field(default="", alias="gitRef")

    # Derived on load, never read from YAML
    helm_path: str = Field(default="", exclude=True)
    path: str = Field(default="", exclude=True)

    @property
    def chart_path(self) -> str:
        """Chart directory handed to ``helm template``."""
        if not self.helm_chart_relative_path:
            return self.helm_path
        return f"{self.helm_path}/{self.helm_chart_relative_path}"


class ConfigurationContext(_ConfigModel):
    """One named environment: its services and local overrides."""

    name: str = Field(min_length=1)
    import_path: str | None = Field(default=None, alias="import")
    services: list[Service] = Field(default_factory=list)
    local_services: list[LocalService] = Field(
        default_factory=list, alias="localServices"
    )

    def get_service(self, name: str) -> Service | None:
        for service in self.services:
            if service.name == name:
                return service
        return None


class Config(_ConfigModel):
    """Root of the dx configuration file."""

    contexts: list[ConfigurationContext]

    @field_validator("contexts")
    @classmethod
    def _require_contexts(
        cls, contexts: list[ConfigurationContext]
    ) -> list[ConfigurationContext]:
        if not contexts:
            raise ValueError("no contexts defined in configuration")
        return contexts

    def get_context(self, name: str) -> ConfigurationContext | None:
        for context in self.contexts:
            if context.name == name:
                return context
        return None
