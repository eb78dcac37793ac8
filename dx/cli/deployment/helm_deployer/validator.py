"""Validation of configuration-supplied Helm arguments.

Helm arguments come from the (possibly shared or imported) dx configuration.
Flags that would change how Helm post-processes manifests or which cluster and
credentials it talks to are rejected before Helm is invoked.
"""

from __future__ import annotations

from collections.abc import Iterable

from dx.infra.constants import DeploymentConstants
from dx.infra.errors import SecurityRejectedError


def find_blocked_flag(arg: str, blocked_flags: Iterable[str]) -> str | None:
    """Return the blocked flag ``arg`` uses, if any.

    A flag matches case-insensitively either exactly (``--kubeconfig``) or in
    its ``--flag=value`` form.
    """
    lowered = arg.lower()
    for flag in blocked_flags:
        if lowered == flag or lowered.startswith(f"{flag}="):
            return flag
    return None


def validate_helm_args(
    args: Iterable[str], constants: DeploymentConstants | None = None
) -> None:
    """Reject Helm arguments that use a blocked flag.

    Raises:
        SecurityRejectedError: Naming the first blocked flag found
    """
    constants = constants or DeploymentConstants()
    for arg in args:
        flag = find_blocked_flag(arg, constants.BLOCKED_HELM_FLAGS)
        if flag is not None:
            raise SecurityRejectedError(flag)
