"""Tests for loading the dx configuration."""

import hashlib
from unittest.mock import MagicMock

import pytest

from dx.infra.config import (
    ConfigurationContext,
    FileSystemConfigRepository,
    Service,
    create_templating_values,
    validate_context_name,
)
from dx.infra.constants import DeploymentPaths
from dx.infra.errors import ConfigError
from dx.infra.filesystem import SandboxedFileSystem

CONFIG = """
contexts:
  - name: dev
    services:
      - name: orders
        helmRepoPath: git@example.com:charts.git
        helmBranch: main
        helmChartRelativePath: charts/orders
        helmArgs: ["--set=image.tag=latest"]
        gitRepoPath: git@example.com:orders.git
        gitRef: feature/x
      - name: payments
        helmRepoPath: git@example.com:charts.git
        helmBranch: main
        profiles: [backend]
    localServices:
      - name: orders
        localPort: 8080
        kubernetesPort: 80
        healthCheckPath: /health
        selector:
          app: orders
  - name: staging
"""


def _short_hash(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:12]


@pytest.fixture
def repository(file_system: SandboxedFileSystem, paths: DeploymentPaths) -> FileSystemConfigRepository:
    paths.config_file.write_text(CONFIG)
    return FileSystemConfigRepository(file_system, paths)


class TestLoadConfig:
    """Tests for parsing and deriving configuration."""

    def test_parses_camel_case_keys(self, repository: FileSystemConfigRepository) -> None:
        config = repository.load_config()

        dev = config.get_context("dev")
        assert dev is not None
        orders = dev.get_service("orders")
        assert orders is not None
        assert orders.helm_chart_relative_path == "charts/orders"
        assert orders.helm_args == ["--set=image.tag=latest"]
        assert dev.local_services[0].kubernetes_port == 80
        assert dev.local_services[0].selector == {"app": "orders"}

    def test_derives_helm_path(
        self, repository: FileSystemConfigRepository, paths: DeploymentPaths
    ) -> None:
        orders = repository.load_config().get_context("dev").get_service("orders")

        expected = paths.charts_dir("dev") / _short_hash("git@example.com:charts.git-main")
        assert orders.helm_path == str(expected)
        assert orders.chart_path == f"{expected}/charts/orders"

    def test_derives_source_path_when_git_ref_set(
        self, repository: FileSystemConfigRepository, paths: DeploymentPaths
    ) -> None:
        dev = repository.load_config().get_context("dev")

        assert dev.get_service("orders").path == str(
            paths.context_dir("dev") / "orders" / _short_hash("git@example.com:orders.git-feature/x")
        )
        assert dev.get_service("payments").path == ""

    def test_profiles_default_and_include_all(self, repository: FileSystemConfigRepository) -> None:
        dev = repository.load_config().get_context("dev")

        assert dev.get_service("orders").profiles == ["default", "all"]
        assert dev.get_service("payments").profiles == ["backend", "all"]

    def test_config_is_cached(
        self, repository: FileSystemConfigRepository, paths: DeploymentPaths
    ) -> None:
        first = repository.load_config()
        paths.config_file.write_text("contexts: [{name: other}]\n")

        assert repository.load_config() is first

    def test_missing_file(self, file_system: SandboxedFileSystem, paths: DeploymentPaths) -> None:
        with pytest.raises(ConfigError, match="Failed to read config file"):
            FileSystemConfigRepository(file_system, paths).load_config()

    def test_invalid_yaml(self, file_system: SandboxedFileSystem, paths: DeploymentPaths) -> None:
        paths.config_file.write_text("contexts: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse config file"):
            FileSystemConfigRepository(file_system, paths).load_config()

    def test_no_contexts(self, file_system: SandboxedFileSystem, paths: DeploymentPaths) -> None:
        paths.config_file.write_text("contexts: []\n")

        with pytest.raises(ConfigError, match="Config validation failed"):
            FileSystemConfigRepository(file_system, paths).load_config()

    def test_local_service_requires_kubernetes_port(
        self, file_system: SandboxedFileSystem, paths: DeploymentPaths
    ) -> None:
        paths.config_file.write_text("contexts:\n  - name: dev\n    localServices: [{name: a}]\n")

        with pytest.raises(ConfigError) as excinfo:
            FileSystemConfigRepository(file_system, paths).load_config()

        assert "kubernetesPort" in excinfo.value.details

    def test_traversal_in_context_name(
        self, file_system: SandboxedFileSystem, paths: DeploymentPaths
    ) -> None:
        paths.config_file.write_text("contexts: [{name: ../evil}]\n")

        with pytest.raises(ConfigError, match="invalid characters"):
            FileSystemConfigRepository(file_system, paths).load_config()


class TestImport:
    """Tests for merging an imported base context."""

    def _write(self, paths: DeploymentPaths, base: str, config: str) -> None:
        (paths.home / "team.yaml").write_text(base)
        paths.config_file.write_text(config)

    def test_overlay_fields_override_base(
        self, file_system: SandboxedFileSystem, paths: DeploymentPaths
    ) -> None:
        self._write(
            paths,
            base=(
                "name: team\n"
                "services:\n"
                "  - {name: orders, helmRepoPath: base-repo, helmBranch: main, helmArgs: [--wait]}\n"
                "  - {name: users, helmRepoPath: base-repo, helmBranch: main}\n"
                "localServices:\n"
                "  - {name: users, kubernetesPort: 80}\n"
            ),
            config=(
                "contexts:\n"
                "  - name: mine\n"
                "    import: ~/team.yaml\n"
                "    services:\n"
                "      - {name: orders, helmBranch: my-branch}\n"
                "      - {name: unknown, helmBranch: x}\n"
                "    localServices:\n"
                "      - {name: orders, kubernetesPort: 8080}\n"
            ),
        )

        context = FileSystemConfigRepository(file_system, paths).load_config().get_context("mine")

        assert context is not None
        assert [s.name for s in context.services] == ["orders", "users"]
        orders = context.get_service("orders")
        assert orders.helm_branch == "my-branch"
        assert orders.helm_repo_path == "base-repo"
        assert orders.helm_args == ["--wait"]
        assert [ls.name for ls in context.local_services] == ["users", "orders"]

    def test_unreadable_import_is_skipped(
        self, file_system: SandboxedFileSystem, paths: DeploymentPaths
    ) -> None:
        paths.config_file.write_text(
            "contexts:\n  - name: mine\n    import: ~/missing.yaml\n    services: [{name: a}]\n"
        )

        context = FileSystemConfigRepository(file_system, paths).load_config().get_context("mine")

        assert [s.name for s in context.services] == ["a"]


class TestCurrentContext:
    """Tests for the selected context."""

    def test_round_trip(self, repository: FileSystemConfigRepository) -> None:
        repository.save_current_context_name("dev")

        assert repository.load_current_context_name() == "dev"
        assert repository.load_current_configuration_context().name == "dev"

    def test_name_is_stripped(
        self, repository: FileSystemConfigRepository, paths: DeploymentPaths
    ) -> None:
        paths.current_context_file.write_text("staging\n")

        assert repository.load_current_context_name() == "staging"

    def test_missing_selection(self, repository: FileSystemConfigRepository) -> None:
        with pytest.raises(ConfigError, match="Failed to read current context"):
            repository.load_current_context_name()

    def test_missing_selection_points_to_context_set(
        self, repository: FileSystemConfigRepository
    ) -> None:
        with pytest.raises(ConfigError) as excinfo:
            repository.load_current_context_name()

        assert "dx context set <name>" in excinfo.value.details

    def test_save_write_failure_is_config_error(self, paths: DeploymentPaths) -> None:
        file_system = MagicMock()
        file_system.write_file.side_effect = PermissionError("read-only")
        repository = FileSystemConfigRepository(file_system, paths)

        with pytest.raises(ConfigError, match="Failed to save current context"):
            repository.save_current_context_name("dev")

    def test_unknown_context(self, repository: FileSystemConfigRepository) -> None:
        repository.save_current_context_name("prod")

        with pytest.raises(ConfigError, match="not found"):
            repository.load_current_configuration_context()

    def test_save_rejects_traversal(self, repository: FileSystemConfigRepository) -> None:
        with pytest.raises(ConfigError):
            repository.save_current_context_name("../../etc")


@pytest.mark.parametrize("name", ["", "a/b", "a\\b", "..", "x..y", "nul\x00"])
def test_validate_context_name_rejects(name: str) -> None:
    with pytest.raises(ConfigError):
        validate_context_name(name)


def test_validate_context_name_accepts_plain_names() -> None:
    validate_context_name("team-a_dev.1")


class TestCreateTemplatingValues:
    """Tests for the values exposed to Helm argument templates."""

    def test_builds_secrets_and_services(self) -> None:
        config_repository = MagicMock()
        config_repository.load_current_context_name.return_value = "dev"
        config_repository.load_current_configuration_context.return_value = ConfigurationContext(
            name="dev",
            services=[
                Service(name="orders", path="/src/orders", git_ref="main"),
                Service(name="charts-only"),
            ],
        )
        secrets_repository = MagicMock()
        secrets_repository.load_secrets.return_value = {
            "db.password": "pw",
            "db.user": "admin",
            "TOKEN": "t",
        }

        values = create_templating_values(config_repository, secrets_repository)

        secrets_repository.load_secrets.assert_called_once_with("dev")
        assert values == {
            "Secrets": {"db": {"password": "pw", "user": "admin"}, "TOKEN": "t"},
            "Services": {"orders": {"path": "/src/orders", "gitRef": "main"}},
        }

    def test_dotted_key_replaces_scalar_parent(self) -> None:
        config_repository = MagicMock()
        config_repository.load_current_configuration_context.return_value = ConfigurationContext(
            name="dev"
        )
        secrets_repository = MagicMock()
        secrets_repository.load_secrets.return_value = {"db": "x", "db.password": "pw"}

        values = create_templating_values(config_repository, secrets_repository)

        assert values["Secrets"] == {"db": {"password": "pw"}}
