"""Unit tests for Helm argument validation."""

import pytest

from dx.cli.deployment.helm_deployer.validator import find_blocked_flag, validate_helm_args
from dx.infra.constants import DeploymentConstants
from dx.infra.errors import SecurityRejectedError


class TestValidateHelmArgs:
    """Tests for the blocked Helm flag check."""

    def test_allows_regular_arguments(self) -> None:
        validate_helm_args(["--set", "foo=bar", "-f", "values.yaml", "--wait"])

    def test_allows_empty_arguments(self) -> None:
        validate_helm_args([])

    def test_rejects_flag_with_value(self) -> None:
        with pytest.raises(SecurityRejectedError) as excinfo:
            validate_helm_args(["--post-renderer=x"])

        assert excinfo.value.flag == "--post-renderer"
        assert "--post-renderer" in excinfo.value.message

    def test_rejects_flag_case_insensitively(self) -> None:
        with pytest.raises(SecurityRejectedError) as excinfo:
            validate_helm_args(["--POST-RENDERER", "x"])

        assert excinfo.value.flag == "--post-renderer"

    def test_reports_first_blocked_flag(self) -> None:
        with pytest.raises(SecurityRejectedError) as excinfo:
            validate_helm_args(["--set", "a=b", "--kube-context=prod", "--kubeconfig=x"])

        assert excinfo.value.flag == "--kube-context"

    @pytest.mark.parametrize("flag", DeploymentConstants().BLOCKED_HELM_FLAGS)
    def test_every_blocked_flag_is_rejected(self, flag: str) -> None:
        with pytest.raises(SecurityRejectedError):
            validate_helm_args([flag])


class TestFindBlockedFlag:
    """Tests for exact and prefix matching."""

    def test_prefix_without_equals_is_not_a_match(self) -> None:
        # --kube-as must not match --kube-as-group by accident, and vice versa
        assert find_blocked_flag("--kube-asx", ["--kube-as"]) is None

    def test_longer_flag_matches_itself(self) -> None:
        blocked = ["--kube-as", "--kube-as-group"]
        assert find_blocked_flag("--kube-as-group=admins", blocked) == "--kube-as-group"

    def test_value_mentioning_flag_is_allowed(self) -> None:
        assert find_blocked_flag("note=--password", ["--password"]) is None
