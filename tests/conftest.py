from pathlib import Path

import pytest

from dx.infra.constants import DeploymentPaths
from dx.infra.filesystem import SandboxedFileSystem


@pytest.fixture(autouse=True)
def dx_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point dx and kubectl lookups at a throwaway home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("DX_HOME", str(home))
    monkeypatch.setenv("KUBECONFIG", str(home / ".kube" / "config"))
    return home


@pytest.fixture
def paths(dx_home: Path) -> DeploymentPaths:
    return DeploymentPaths(dx_home)


@pytest.fixture
def file_system(paths: DeploymentPaths) -> SandboxedFileSystem:
    paths.state_dir.mkdir(parents=True, exist_ok=True)
    return SandboxedFileSystem(
        paths.state_dir, allowed_files=[paths.config_file], home=paths.home
    )
