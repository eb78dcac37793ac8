"""Patches that route cluster traffic for local services through the dev-proxy."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from dx.infra.constants import DeploymentConstants

from .patches import Patch, PatchOperation, PatchTarget, escape_segment

if TYPE_CHECKING:
    from dx.infra.config import ConfigurationContext


def _rfc3339(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_patches(
    context: ConfigurationContext,
    now: datetime | None = None,
    constants: DeploymentConstants | None = None,
) -> list[Patch]:
    """Build the traffic-routing patches for a configuration context.

    The first patch stamps every Deployment's pod template with the install
    time so pods are recreated on each install. Then, for each local service
    in configuration order, the matching Service is pointed at the dev-proxy
    pods and its first port is retargeted to the proxy port reserved for it
    (18080, 18081, ...). Only the first port of a Service is rewritten.

    Args:
        context: Configuration context whose local services are redirected
        now: Timestamp for the recreate annotation; defaults to the current time

    Returns:
        Patches in application order
    """
    constants = constants or DeploymentConstants()
    now = now or datetime.now(timezone.utc)

    annotation = escape_segment(constants.RECREATED_AT_ANNOTATION)
    patches = [
        Patch(
            target=PatchTarget(kind="Deployment"),
            operations=[
                PatchOperation.add(
                    f"/spec/template/metadata/annotations/{annotation}", _rfc3339(now)
                )
            ],
        )
    ]

    for offset, local_service in enumerate(context.local_services):
        patches.append(
            Patch(
                target=PatchTarget(kind="Service", name=local_service.name),
                operations=[
                    PatchOperation.replace(
                        "/spec/selector/app", constants.DEV_PROXY_SELECTOR_VALUE
                    ),
                    PatchOperation.replace(
                        "/spec/ports/0/targetPort", constants.PROXY_BASE_PORT + offset
                    ),
                ],
            )
        )

    return patches
