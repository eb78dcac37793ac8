"""Wrapper Helm charts holding pre-rendered, patched manifests.

Installing patched output through a minimal chart keeps Helm's release
semantics: upgrades, rollbacks, ``helm list`` and ``helm uninstall`` all
work on the wrapper release as they would on the original chart.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from loguru import logger

from dx.infra.constants import DeploymentPaths
from dx.infra.errors import CleanupError, DeploymentError, WrapperGenerationError
from dx.utils.paths import sanitize_name

if TYPE_CHECKING:
    from dx.infra.filesystem import SandboxedFileSystem


@dataclass(frozen=True)
class WrapperChartConfig:
    """Inputs for one wrapper chart.

    Attributes:
        release_name: Helm release the wrapper is installed as
        context_name: dx context the release belongs to
        patched_manifests: Rendered manifests placed in ``templates/``
        original_chart_name: Recorded as the ``dx.wrapped-chart`` annotation
        original_chart_path: Recorded as the ``dx.wrapped-path`` annotation
    """

    release_name: str
    context_name: str
    patched_manifests: bytes
    original_chart_name: str = ""
    original_chart_path: str = ""


class ChartWrapper:
    """Writes and removes wrapper charts under ``~/.dx/<context>/wrapper-charts``."""

    def __init__(self, file_system: SandboxedFileSystem, paths: DeploymentPaths) -> None:
        self.file_system = file_system
        self.paths = paths

    def _chart_dir(self, context_name: str, release_name: str, error: type[DeploymentError]) -> Path:
        safe_release = sanitize_name(release_name)
        if not safe_release:
            raise error(f"Invalid release name: {release_name!r}")
        safe_context = sanitize_name(context_name)
        if not safe_context:
            raise error(f"Invalid context name: {context_name!r}")
        return self.paths.wrapper_chart_dir(safe_context, safe_release)

    @staticmethod
    def chart_metadata(config: WrapperChartConfig) -> dict[str, Any]:
        """Build the Chart.yaml mapping for ``config``."""
        metadata: dict[str, Any] = {
            "apiVersion": "v2",
            "name": f"{config.release_name}-wrapper",
            "description": f"Wrapper chart for {config.release_name} with dx patches applied",
            "type": "application",
            "version": "1.0.0",
            "appVersion": "1.0.0",
        }

        annotations = {}
        if config.original_chart_name:
            annotations["dx.wrapped-chart"] = config.original_chart_name
        if config.original_chart_path:
            annotations["dx.wrapped-path"] = config.original_chart_path
        if annotations:
            metadata["annotations"] = annotations
        return metadata

    def generate(self, config: WrapperChartConfig) -> Path:
        """Write the wrapper chart and return its absolute directory.

        Raises:
            WrapperGenerationError: On invalid names or write failures
        """
        chart_dir = self._chart_dir(
            config.context_name, config.release_name, WrapperGenerationError
        )
        chart_yaml = yaml.safe_dump(self.chart_metadata(config), sort_keys=False)

        try:
            self.file_system.mkdir_all(chart_dir / "templates")
            self.file_system.write_file(chart_dir / "Chart.yaml", chart_yaml)
            self.file_system.write_file(
                chart_dir / "templates" / "manifests.yaml", config.patched_manifests
            )
        except OSError as e:
            raise WrapperGenerationError(
                f"Failed to write wrapper chart for {config.release_name}",
                details=str(e),
            ) from e

        logger.debug(f"Generated wrapper chart at {chart_dir}")
        return self.file_system.resolve(chart_dir)

    def cleanup(self, context_name: str, release_name: str) -> None:
        """Remove the wrapper chart of a release.

        Raises:
            CleanupError: On invalid names or removal failures
        """
        chart_dir = self._chart_dir(context_name, release_name, CleanupError)
        try:
            self.file_system.remove_all(chart_dir)
        except OSError as e:
            raise CleanupError(
                f"Failed to remove wrapper chart for {release_name}", details=str(e)
            ) from e
