"""Dev-proxy chart generation.

The dev-proxy is a single pod running two containers per context:

- mitmproxy, listening on the proxy port (18080 + i) that the patched
  cluster Service targets, forwarding to HAProxy
- HAProxy, listening on the frontend port (8080 + i) and sending traffic to
  the developer machine, with the in-cluster pods as a backup when the
  local service defines a selector

The chart is regenerated from the context's local services before every
install, so the port assignment always matches the traffic patches.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError
from loguru import logger

from dx.infra.constants import DeploymentConstants, DeploymentPaths
from dx.infra.errors import DevProxyGenerationError
from dx.utils.paths import sanitize_name

if TYPE_CHECKING:
    from dx.infra.config import ConfigurationContext, LocalService
    from dx.infra.filesystem import SandboxedFileSystem

# Kubernetes label values are capped at 63 characters
CHECKSUM_LENGTH = 62

TEMPLATE_DIR = Path(__file__).parent / "templates"
HAPROXY_CONFIG_DIR = "/usr/local/etc/haproxy"


@dataclass(frozen=True)
class ProxiedService:
    """Port assignment of one local service inside the dev-proxy."""

    name: str
    frontend_port: int
    proxy_port: int
    kubernetes_port: int
    local_port: int
    health_check_path: str = ""
    selector: dict[str, str] = field(default_factory=dict)

    @property
    def upstream_name(self) -> str:
        """Service that reaches the in-cluster pods of this service."""
        return f"dev-proxy-{self.name}-upstream"


def local_services_checksum(local_services: list[LocalService]) -> str:
    """Stable digest of the local services a dev-proxy chart was built from."""
    payload = json.dumps(
        [service.model_dump(by_alias=True) for service in local_services],
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode()).hexdigest()[:CHECKSUM_LENGTH]


def build_proxied_services(
    context: ConfigurationContext, constants: DeploymentConstants | None = None
) -> list[ProxiedService]:
    """Assign frontend and proxy ports to local services in configuration order.

    A local port of 0 means the service listens locally on its Kubernetes port.
    """
    constants = constants or DeploymentConstants()
    return [
        ProxiedService(
            name=local_service.name,
            frontend_port=constants.FRONTEND_BASE_PORT + offset,
            proxy_port=constants.PROXY_BASE_PORT + offset,
            kubernetes_port=local_service.kubernetes_port,
            local_port=local_service.local_port or local_service.kubernetes_port,
            health_check_path=local_service.health_check_path,
            selector=dict(local_service.selector),
        )
        for offset, local_service in enumerate(context.local_services)
    ]


class DevProxyChartGenerator:
    """Writes the dev-proxy chart under ``~/.dx/<context>/dev-proxy/helm``."""

    def __init__(
        self,
        file_system: SandboxedFileSystem,
        paths: DeploymentPaths,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.file_system = file_system
        self.paths = paths
        self.constants = constants or DeploymentConstants()
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def render_haproxy_config(self, services: list[ProxiedService]) -> str:
        template = self.env.get_template("haproxy.cfg.j2")
        return template.render(services=services, local_host=self.constants.DEV_PROXY_LOCAL_HOST)

    def chart_metadata(self, checksum: str) -> dict[str, Any]:
        return {
            "apiVersion": "v2",
            "name": self.constants.DEV_PROXY_NAME,
            "description": "Routes traffic for local services to the developer machine",
            "type": "application",
            "version": "1.0.0",
            "appVersion": "1.0.0",
            "annotations": {self.constants.DEV_PROXY_CHECKSUM_ANNOTATION: checksum},
        }

    def build_manifests(
        self, services: list[ProxiedService], checksum: str
    ) -> list[dict[str, Any]]:
        """Kubernetes objects of the dev-proxy: config, pod and upstreams."""
        name = self.constants.DEV_PROXY_NAME
        labels = {"app": self.constants.DEV_PROXY_SELECTOR_VALUE}
        annotations = {self.constants.DEV_PROXY_CHECKSUM_ANNOTATION: checksum}
        config_map_name = f"{name}-haproxy"

        mitmproxy_args = []
        for service in services:
            mitmproxy_args += [
                "--mode",
                f"reverse:http://127.0.0.1:{service.frontend_port}@{service.proxy_port}",
            ]

        containers = [
            {
                "name": "mitmproxy",
                "image": self.constants.DEV_PROXY_MITMPROXY_IMAGE,
                "command": ["mitmdump"],
                "args": mitmproxy_args,
                "ports": [
                    {"name": f"proxy-{i}", "containerPort": service.proxy_port}
                    for i, service in enumerate(services)
                ],
            },
            {
                "name": "haproxy",
                "image": self.constants.DEV_PROXY_HAPROXY_IMAGE,
                "ports": [
                    {"name": f"frontend-{i}", "containerPort": service.frontend_port}
                    for i, service in enumerate(services)
                ],
                "volumeMounts": [{"name": "haproxy-config", "mountPath": HAPROXY_CONFIG_DIR}],
            },
        ]

        manifests: list[dict[str, Any]] = [
            {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {"name": config_map_name, "labels": labels},
                "data": {"haproxy.cfg": self.render_haproxy_config(services)},
            },
            {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "metadata": {"name": name, "labels": labels, "annotations": annotations},
                "spec": {
                    "replicas": 1,
                    "selector": {"matchLabels": labels},
                    "template": {
                        "metadata": {"labels": labels, "annotations": annotations},
                        "spec": {
                            "containers": containers,
                            "volumes": [
                                {
                                    "name": "haproxy-config",
                                    "configMap": {"name": config_map_name},
                                }
                            ],
                        },
                    },
                },
            },
        ]

        for service in services:
            if not service.selector:
                continue
            manifests.append(
                {
                    "apiVersion": "v1",
                    "kind": "Service",
                    "metadata": {"name": service.upstream_name, "labels": labels},
                    "spec": {
                        "selector": service.selector,
                        "ports": [
                            {
                                "port": service.kubernetes_port,
                                "targetPort": service.kubernetes_port,
                            }
                        ],
                    },
                }
            )
        return manifests

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self, context: ConfigurationContext) -> Path:
        """Write the dev-proxy chart for ``context`` and return its directory.

        Raises:
            DevProxyGenerationError: On an unusable context name, a template
                error or a write failure
        """
        safe_context = sanitize_name(context.name)
        if not safe_context:
            raise DevProxyGenerationError(f"Invalid context name: {context.name!r}")
        chart_dir = self.paths.dev_proxy_chart(safe_context)

        services = build_proxied_services(context, self.constants)
        checksum = local_services_checksum(context.local_services)

        try:
            chart_yaml = yaml.safe_dump(self.chart_metadata(checksum), sort_keys=False)
            manifests_yaml = yaml.safe_dump_all(
                self.build_manifests(services, checksum), sort_keys=False
            )
        except TemplateError as e:
            raise DevProxyGenerationError(
                "Failed to render dev-proxy configuration", details=str(e)
            ) from e

        try:
            self.file_system.mkdir_all(chart_dir / "templates")
            self.file_system.write_file(chart_dir / "Chart.yaml", chart_yaml)
            self.file_system.write_file(chart_dir / "templates" / "dev-proxy.yaml", manifests_yaml)
        except OSError as e:
            raise DevProxyGenerationError(
                f"Failed to write dev-proxy chart for {context.name}", details=str(e)
            ) from e

        logger.debug(f"Generated dev-proxy chart for {len(services)} local service(s) at {chart_dir}")
        return self.file_system.resolve(chart_dir)
