"""Deployment of services into the developer's Kubernetes namespace.

The package is organized into subpackages for modularity:
- shell_commands: Abstractions for helm and kubectl execution
- helm_deployer: Patching, wrapping and installing service charts
"""

from dx.infra.errors import DeploymentError

from .helm_deployer import ServiceDeployer

__all__ = ["ServiceDeployer", "DeploymentError"]
