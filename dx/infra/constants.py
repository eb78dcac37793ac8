"""Deployment constants and configuration.

This module centralizes all magic strings, paths, and configuration values
used throughout the deployment process.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dx.utils.paths import sanitize_name


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for dx Kubernetes/Helm deployment.

    All attributes are class-level and immutable.
    """

    # Release labelling
    MANAGED_BY_LABEL: str = "managed-by"
    MANAGED_BY_VALUE: str = "dx"

    # Namespace used when the kubeconfig context does not set one
    DEFAULT_NAMESPACE: str = "default"

    # Dev-proxy
    DEV_PROXY_NAME: str = "dev-proxy"
    DEV_PROXY_SELECTOR_VALUE: str = "dev-proxy"
    # mitmproxy listens on PROXY_BASE_PORT + i, HAProxy on FRONTEND_BASE_PORT + i
    PROXY_BASE_PORT: int = 18080
    FRONTEND_BASE_PORT: int = 8080
    DEV_PROXY_HAPROXY_IMAGE: str = "haproxy:2.9"
    DEV_PROXY_MITMPROXY_IMAGE: str = "mitmproxy/mitmproxy:10.3.1"
    # Address of the developer machine as seen from cluster pods
    DEV_PROXY_LOCAL_HOST: str = "host.docker.internal"
    DEV_PROXY_CHECKSUM_ANNOTATION: str = "dx.checksum"

    # Forces pod recreation on every install
    RECREATED_AT_ANNOTATION: str = "kubectl.kubernetes.io/recreatedAt"

    # Helm flags that configuration-supplied arguments may not use
    BLOCKED_HELM_FLAGS: tuple[str, ...] = (
        "--post-renderer",
        "--kubeconfig",
        "--kube-context",
        "--repository-config",
        "--registry-config",
        "--ca-file",
        "--cert-file",
        "--key-file",
        "--insecure-skip-tls-verify",
        "--password",
        "--username",
        "--kube-token",
        "--kube-as",
        "--kube-as-group",
        "--kube-as-uid",
        "--kube-ca-file",
        "--kube-apiserver",
    )

    # Context names end up in file system paths
    INVALID_CONTEXT_NAME_PATTERN: re.Pattern[str] = re.compile(r"\.\.|[/\\\x00]")

    @property
    def managed_by_selector(self) -> str:
        """Label selector matching every dx-managed Helm release."""
        return f"{self.MANAGED_BY_LABEL}={self.MANAGED_BY_VALUE}"


class DeploymentPaths:
    """Path resolver for dx state directories and files.

    All state lives under ``<home>/.dx`` except the user configuration file,
    which sits next to it as ``<home>/.dx-config.yaml``.
    """

    def __init__(self, home: Path | None = None) -> None:
        """Initialize deployment paths.

        Args:
            home: Home directory. Defaults to ``$DX_HOME`` or the user's home.
        """
        if home is None:
            override = os.getenv("DX_HOME")
            home = Path(override) if override else Path.home()
        self.home = Path(home)
        self.state_dir = self.home / ".dx"

    @property
    def config_file(self) -> Path:
        """Get path to the user configuration file."""
        return self.home / ".dx-config.yaml"

    @property
    def current_context_file(self) -> Path:
        """Get path to the file holding the selected context name."""
        return self.state_dir / "current-context"

    def context_dir(self, context_name: str) -> Path:
        return self.state_dir / context_name

    def charts_dir(self, context_name: str) -> Path:
        """Directory holding synchronised chart sources for a context."""
        return self.context_dir(context_name) / "charts"

    def kustomize_dir(self, context_name: str, service_name: str) -> Path:
        """Scratch directory for one service's kustomize inputs.

        The service name comes from user configuration, so it is sanitised
        the same way wrapper chart release names are.

        Raises:
            ValueError: If nothing usable remains of ``service_name``
        """
        safe_name = sanitize_name(service_name)
        if not safe_name:
            raise ValueError(f"Invalid service name: {service_name!r}")
        return self.context_dir(context_name) / "kustomize" / safe_name

    def wrapper_chart_dir(self, context_name: str, release_name: str) -> Path:
        return self.context_dir(context_name) / "wrapper-charts" / release_name

    def dev_proxy_chart(self, context_name: str) -> Path:
        return self.context_dir(context_name) / "dev-proxy" / "helm"

    def secrets_file(self, context_name: str) -> Path:
        return self.context_dir(context_name) / "secrets.env"
