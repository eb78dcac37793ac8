"""Helm deployer package for dev-proxy service deployments.

This package splits the install pipeline into focused modules:

- patches: Patch data model (targets, add/replace/remove operations)
- kustomize: Applies patches to rendered manifests via kubectl kustomize
- traffic: Builds the patches that route Services to the dev-proxy
- validator: Rejects dangerous configuration-supplied Helm flags
- chart_wrapper: Packages patched manifests as a wrapper chart
- dev_proxy: Generates the dev-proxy chart from a context's local services
- deployer: ServiceDeployer, which orchestrates the components above

Usage:
    from dx.cli.deployment.helm_deployer import ServiceDeployer

    deployer = ServiceDeployer(config_repo, secrets_repo, templater, commands,
                               patcher, chart_wrapper, paths)
    deployer.install_service(service)
"""

from .chart_wrapper import ChartWrapper, WrapperChartConfig
from .deployer import ServiceDeployer
from .dev_proxy import DevProxyChartGenerator, ProxiedService, build_proxied_services
from .kustomize import KustomizePatcher
from .patches import Patch, PatchOp, PatchOperation, PatchTarget
from .traffic import build_patches
from .validator import validate_helm_args

__all__ = [
    "ServiceDeployer",
    # Component classes for testing/extension
    "KustomizePatcher",
    "ChartWrapper",
    "WrapperChartConfig",
    "DevProxyChartGenerator",
    "ProxiedService",
    "build_proxied_services",
    "Patch",
    "PatchOp",
    "PatchOperation",
    "PatchTarget",
    "build_patches",
    "validate_helm_args",
]
