"""Exception types raised by the deployment pipeline.

Every error carries a short ``message`` for the headline and optional
``details`` holding tool output or recovery hints, which the CLI renders
in a panel.
"""

from __future__ import annotations

from pathlib import Path


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigError(DeploymentError):
    """Raised when the dx configuration cannot be loaded or is invalid."""


class AccessDeniedError(DeploymentError):
    """Raised when a path falls outside the application-owned directory."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(
            f"Access denied: {self.path}",
            details="Paths must be within ~/.dx/ or be ~/.dx-config.yaml",
        )


class TemplateRenderError(DeploymentError):
    """Raised when a Helm argument template fails to render."""


class SecurityRejectedError(DeploymentError):
    """Raised when a Helm argument uses a blocked flag."""

    def __init__(self, flag: str):
        self.flag = flag
        super().__init__(
            f"Helm argument '{flag}' is not allowed",
            details=(
                "Helm arguments from the dx configuration may not override the "
                "post-renderer, cluster credentials or repository configuration."
            ),
        )


class HelmTemplateError(DeploymentError):
    """Raised when ``helm template`` exits non-zero."""


class PatchEngineError(DeploymentError):
    """Base class for failures while patching rendered manifests."""


class WorkDirCreationError(PatchEngineError):
    """Raised when the kustomize work directory cannot be created."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        super().__init__(
            f"Failed to create work directory {self.path}", details=reason
        )


class PatchFileWriteError(PatchEngineError):
    """Raised when a kustomize input file cannot be written."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        super().__init__(f"Failed to write {self.path}", details=reason)


class MergeFailedError(PatchEngineError):
    """Raised when ``kubectl kustomize`` exits non-zero."""


class WrapperGenerationError(DeploymentError):
    """Raised when the wrapper chart cannot be generated."""


class UpgradeError(DeploymentError):
    """Raised when ``helm upgrade --install`` exits non-zero."""


class UninstallError(DeploymentError):
    """Raised when ``helm uninstall`` exits non-zero."""


class CleanupError(DeploymentError):
    """Raised when wrapper chart files cannot be removed."""


class DevProxyGenerationError(DeploymentError):
    """Raised when the dev-proxy chart cannot be generated."""
