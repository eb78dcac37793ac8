"""Service deployment through Helm with dev-proxy traffic patches.

This module provides the ServiceDeployer class which orchestrates the
install pipeline for a single service:

1. Render configuration-supplied Helm arguments with templating values
2. Reject blocked Helm flags
3. Resolve the target namespace from the kubeconfig
4. Render the chart with ``helm template``
5. Build and apply the traffic-routing patches with kustomize
6. Wrap the patched manifests in a chart
7. Install the wrapper with ``helm upgrade --install``

The dev-proxy follows the same pipeline but skips step 5.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from dx.infra.config import create_templating_values
from dx.infra.constants import DeploymentConstants, DeploymentPaths
from dx.infra.errors import (
    ConfigError,
    DeploymentError,
    HelmTemplateError,
    UninstallError,
    UpgradeError,
    WorkDirCreationError,
)

from .chart_wrapper import ChartWrapper, WrapperChartConfig
from .traffic import build_patches
from .validator import validate_helm_args

if TYPE_CHECKING:
    from dx.infra.config import ConfigRepository, SecretsRepository, Service
    from dx.infra.templater import JinjaTemplater

    from ..shell_commands import ShellCommands
    from .kustomize import KustomizePatcher


class ServiceDeployer:
    """Installs, uninstalls and lists dx-managed Helm releases.

    Holds no state between calls; everything is read from the configuration
    repository on each operation.

    Attributes:
        config_repository: Source of the current context and its services
        secrets_repository: Source of secrets exposed to Helm argument templates
        templater: Renders Helm arguments
        commands: Shell command executor (helm, kubectl)
        patcher: Applies manifest patches
        chart_wrapper: Generates and removes wrapper charts
        paths: Deployment path resolver
        constants: Deployment configuration constants
    """

    def __init__(
        self,
        config_repository: ConfigRepository,
        secrets_repository: SecretsRepository,
        templater: JinjaTemplater,
        commands: ShellCommands,
        patcher: KustomizePatcher,
        chart_wrapper: ChartWrapper,
        paths: DeploymentPaths,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.secrets_repository = secrets_repository
        self.templater = templater
        self.commands = commands
        self.patcher = patcher
        self.chart_wrapper = chart_wrapper
        self.paths = paths
        self.constants = constants or DeploymentConstants()

    # =========================================================================
    # Pipeline Steps
    # =========================================================================

    def _render_helm_args(self, service: Service) -> list[str]:
        values = create_templating_values(self.config_repository, self.secrets_repository)
        return [
            self.templater.render(arg, f"helm-args.{i}", values)
            for i, arg in enumerate(service.helm_args)
        ]

    def resolve_namespace(self) -> str:
        """Namespace of the current kubeconfig context, or the default."""
        return self.commands.kubectl.get_current_namespace(self.constants.DEFAULT_NAMESPACE)

    def _render_chart(self, service: Service, namespace: str, args: list[str]) -> bytes:
        result = self.commands.helm.template(service.name, service.chart_path, namespace, args)
        if not result.success:
            raise HelmTemplateError(
                f"Failed to render chart for {service.name}",
                details=result.combined_output,
            )
        return result.stdout.encode()

    def _upgrade(self, service: Service, namespace: str, chart_dir: Path) -> None:
        result = self.commands.helm.upgrade_from_manifests(service.name, namespace, chart_dir)
        if not result.success:
            raise UpgradeError(
                f"Failed to install {service.name}", details=result.combined_output
            )

    def _install(self, service: Service, *, apply_patches: bool) -> Path:
        context_name = self.config_repository.load_current_context_name()

        args = self._render_helm_args(service)
        validate_helm_args(args, self.constants)

        namespace = self.resolve_namespace()
        logger.info(f"Rendering {service.name} into namespace '{namespace}'")
        manifests = self._render_chart(service, namespace, args)

        if apply_patches:
            try:
                work_dir = self.paths.kustomize_dir(context_name, service.name)
            except ValueError as e:
                raise WorkDirCreationError(service.name, str(e)) from e

            context = self.config_repository.load_current_configuration_context()
            patches = build_patches(context, constants=self.constants)
            logger.info(f"Applying {len(patches)} patch(es) to {service.name}")
            manifests = self.patcher.apply(manifests, patches, work_dir)

        chart_dir = self.chart_wrapper.generate(
            WrapperChartConfig(
                release_name=service.name,
                context_name=context_name,
                patched_manifests=manifests,
                original_chart_name=service.name,
                original_chart_path=service.chart_path,
            )
        )

        self._upgrade(service, namespace, chart_dir)
        logger.info(f"Installed {service.name}")
        return chart_dir

    # =========================================================================
    # Public Interface
    # =========================================================================

    def install_service(self, service: Service) -> Path:
        """Install or upgrade a service with traffic-routing patches applied.

        Returns:
            Directory of the wrapper chart that was installed

        Raises:
            TemplateRenderError: If a Helm argument fails to render
            SecurityRejectedError: If a Helm argument uses a blocked flag
            HelmTemplateError: If ``helm template`` fails
            PatchEngineError: If patching fails
            WrapperGenerationError: If the wrapper chart cannot be written
            UpgradeError: If ``helm upgrade --install`` fails
        """
        return self._install(service, apply_patches=True)

    def install_dev_proxy(self, service: Service) -> Path:
        """Install or upgrade the dev-proxy without patching its manifests."""
        return self._install(service, apply_patches=False)

    def uninstall_service(self, service: Service) -> None:
        """Uninstall a service's release and remove its wrapper chart.

        Wrapper chart removal is best effort: any dx error it raises, including
        a sandbox rejection, is logged and the uninstall still counts as
        successful.

        Raises:
            UninstallError: If ``helm uninstall`` fails
        """
        namespace = self.resolve_namespace()
        result = self.commands.helm.uninstall(service.name, namespace)
        if not result.success:
            raise UninstallError(
                f"Failed to uninstall {service.name}", details=result.combined_output
            )
        logger.info(f"Uninstalled {service.name}")

        try:
            context_name = self.config_repository.load_current_context_name()
        except ConfigError as e:
            logger.warning(f"Skipping wrapper chart cleanup for {service.name}: {e.message}")
            return

        try:
            self.chart_wrapper.cleanup(context_name, service.name)
        except DeploymentError as e:
            logger.warning(f"{e.message}: {e.details}" if e.details else e.message)

    def list_managed_releases(self) -> list[str]:
        """Names of all dx-managed releases in the current namespace."""
        return self.commands.helm.list_releases(
            self.constants.managed_by_selector, self.resolve_namespace()
        )

    def has_deployed_services(self) -> bool:
        """Check whether any service besides the dev-proxy is still installed.

        The dev-proxy release carries the ``managed-by=dx`` label too, so
        only more than one managed release counts.
        """
        return len(self.list_managed_releases()) > 1
