"""Manifest patching through ``kubectl kustomize``.

Rendered Helm output is written to a work directory together with a
generated ``kustomization.yaml``:

- ``add`` operations become one Strategic Merge Patch file each, so that
  missing parent maps (e.g. ``metadata.annotations``) are created.
- All ``replace``/``remove`` operations of one Patch become a single inline
  JSON Patch.

Every resource additionally receives the ``managed-by: dx`` label. The work
directory is kept after the run for inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from loguru import logger

from dx.infra.constants import DeploymentConstants
from dx.infra.errors import MergeFailedError, PatchFileWriteError, WorkDirCreationError

from .patches import Patch, PatchOp, PatchOperation, PatchTarget, split_pointer, unescape_segment

if TYPE_CHECKING:
    from dx.infra.filesystem import SandboxedFileSystem

    from ..shell_commands import KubectlCommands


RESOURCES_FILE = "resources.yaml"
KUSTOMIZATION_FILE = "kustomization.yaml"
PLACEHOLDER_NAME = "placeholder"

_API_VERSIONS: dict[str, str] = {
    "Deployment": "apps/v1",
    "StatefulSet": "apps/v1",
    "DaemonSet": "apps/v1",
    "ReplicaSet": "apps/v1",
    "Service": "v1",
    "ConfigMap": "v1",
    "Secret": "v1",
    "Namespace": "v1",
    "ServiceAccount": "v1",
    "PersistentVolumeClaim": "v1",
    "Ingress": "networking.k8s.io/v1",
    "Job": "batch/v1",
    "CronJob": "batch/v1",
    "Role": "rbac.authorization.k8s.io/v1",
    "RoleBinding": "rbac.authorization.k8s.io/v1",
    "ClusterRole": "rbac.authorization.k8s.io/v1",
    "ClusterRoleBinding": "rbac.authorization.k8s.io/v1",
}


@dataclass(frozen=True)
class PatchFile:
    """A Strategic Merge Patch file to be written next to the kustomization."""

    filename: str
    content: str


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def api_version_for_kind(kind: str) -> str:
    """Return the apiVersion for common Kubernetes kinds, ``v1`` otherwise."""
    return _API_VERSIONS.get(kind, "v1")


def patch_name_from_path(path: str) -> str:
    """Derive a file-name fragment from the last segment of a JSON pointer.

    Example:
        >>> patch_name_from_path("/spec/template/metadata/annotations/kubectl.kubernetes.io~1recreatedAt")
        'recreated-at'
    """
    last = path.split("/")[-1]
    if not last:
        return "patch"

    # Annotation keys such as kubectl.kubernetes.io/recreatedAt
    last = unescape_segment(last).rsplit("/", 1)[-1]

    kebab = "".join(
        f"-{ch}" if i > 0 and "A" <= ch <= "Z" else ch for i, ch in enumerate(last)
    )
    return kebab.lower()


def _target_entry(target: PatchTarget) -> dict[str, str]:
    entry = {"kind": target.kind}
    if target.name:
        entry["name"] = target.name
    return entry


def build_strategic_merge_patch(target: PatchTarget, operation: PatchOperation) -> str:
    """Build a Strategic Merge Patch document for one ``add`` operation.

    The pointer is expanded into nested single-key mappings ending in the
    operation's value. ``metadata.name`` is a placeholder; kustomize matches
    resources through the patch target instead.
    """
    document: dict[str, Any] = {
        "apiVersion": api_version_for_kind(target.kind),
        "kind": target.kind,
        "metadata": {"name": PLACEHOLDER_NAME},
    }

    content: dict[str, Any] = {}
    current = content
    segments = split_pointer(operation.path)
    for segment in segments[:-1]:
        current = current.setdefault(segment, {})
    if segments:
        current[segments[-1]] = operation.value

    document.update(content)
    return _dump(document)


def build_json_patch(operations: list[PatchOperation]) -> str:
    """Serialise replace/remove operations as an inline JSON Patch document."""
    return _dump([operation.to_json_patch() for operation in operations])


def _unique_filename(stem: str, taken: set[str]) -> str:
    filename = f"patch-{stem}.yaml"
    suffix = 2
    while filename in taken:
        filename = f"patch-{stem}-{suffix}.yaml"
        suffix += 1
    taken.add(filename)
    return filename


def build_kustomization(
    patches: list[Patch], constants: DeploymentConstants | None = None
) -> tuple[dict[str, Any], list[PatchFile]]:
    """Translate patches into a kustomization document and patch files.

    Each ``add`` yields exactly one patch file and one ``path`` entry. The
    remaining operations of a Patch, if any, yield one inline ``patch`` entry.
    Clashing file names get a numeric suffix.

    Returns:
        Tuple of (kustomization mapping, patch files to write)
    """
    constants = constants or DeploymentConstants()
    kustomization: dict[str, Any] = {
        "apiVersion": "kustomize.config.k8s.io/v1beta1",
        "kind": "Kustomization",
        "resources": [RESOURCES_FILE],
        "labels": [
            {
                "pairs": {constants.MANAGED_BY_LABEL: constants.MANAGED_BY_VALUE},
                "includeSelectors": False,
            }
        ],
    }

    entries: list[dict[str, Any]] = []
    patch_files: list[PatchFile] = []
    taken: set[str] = set()

    for patch in patches:
        adds = [op for op in patch.operations if op.op is PatchOp.ADD]
        others = [op for op in patch.operations if op.op is not PatchOp.ADD]

        for operation in adds:
            filename = _unique_filename(patch_name_from_path(operation.path), taken)
            patch_files.append(
                PatchFile(filename, build_strategic_merge_patch(patch.target, operation))
            )
            entries.append({"path": filename, "target": _target_entry(patch.target)})

        if others:
            entries.append(
                {"patch": build_json_patch(others), "target": _target_entry(patch.target)}
            )

    if entries:
        kustomization["patches"] = entries
    return kustomization, patch_files


class KustomizePatcher:
    """Applies patches to rendered manifests with ``kubectl kustomize``.

    Relative work directories resolve under the file system's sandbox root,
    and kubectl runs from that root so it sees the same directory.
    """

    def __init__(
        self,
        file_system: SandboxedFileSystem,
        kubectl: KubectlCommands,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.file_system = file_system
        self.kubectl = kubectl
        self.constants = constants or DeploymentConstants()

    def _write(self, path: Path, content: bytes | str) -> None:
        try:
            self.file_system.write_file(path, content)
        except OSError as e:
            raise PatchFileWriteError(path, str(e)) from e

    def apply(self, manifests: bytes, patches: list[Patch], work_dir: Path | str) -> bytes:
        """Apply ``patches`` to ``manifests`` and return the merged output.

        An empty patch list returns ``manifests`` unchanged without touching
        the file system or running kubectl.

        Raises:
            WorkDirCreationError: If the work directory cannot be created
            PatchFileWriteError: If an input file cannot be written
            MergeFailedError: If kubectl kustomize exits non-zero
        """
        if not patches:
            return manifests

        work_dir = Path(work_dir)
        try:
            self.file_system.mkdir_all(work_dir)
        except OSError as e:
            raise WorkDirCreationError(work_dir, str(e)) from e

        self._write(work_dir / RESOURCES_FILE, manifests)

        kustomization, patch_files = build_kustomization(patches, self.constants)
        for patch_file in patch_files:
            self._write(work_dir / patch_file.filename, patch_file.content)
        self._write(work_dir / KUSTOMIZATION_FILE, _dump(kustomization))

        logger.debug(
            f"Running kustomize in {work_dir} with {len(patch_files)} patch file(s)"
        )
        result = self.kubectl.kustomize(work_dir, cwd=self.file_system.root)
        if not result.success:
            raise MergeFailedError("kubectl kustomize failed", details=result.combined_output)

        return result.stdout.encode()
