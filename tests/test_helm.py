"""
Tests for Helm — both major versions and the version factory.

Command construction is checked against the mocked executor; no helm
binary is needed.
"""

import pytest

from chartverify.adapters.mock import MockShellExecutor
from chartverify.core.errors import CommandError, ConfigError
from chartverify.core.services.helm import Helm2, Helm3, HelmManager, helm_factory


# ═══════════════════════════════════════════════════════════════════
#  1. FACTORY
# ═══════════════════════════════════════════════════════════════════


class TestHelmFactory:
    @pytest.mark.parametrize("version", ["2.x", "2", "v2", "2.16.1"])
    def test_helm2(self, shell, version):
        assert isinstance(helm_factory(version, shell), Helm2)

    @pytest.mark.parametrize("version", ["3.x", "3", "v3", "3.1.2"])
    def test_helm3(self, shell, version):
        assert isinstance(helm_factory(version, shell), Helm3)

    @pytest.mark.parametrize("version", ["4.x", "1.x", "latest", ""])
    def test_unknown_version_is_config_error(self, shell, version):
        with pytest.raises(ConfigError) as exc:
            helm_factory(version, shell)
        assert "2.x" in str(exc.value) and "3.x" in str(exc.value)

    def test_variants_satisfy_protocol(self, shell):
        assert isinstance(Helm2(shell), HelmManager)
        assert isinstance(Helm3(shell), HelmManager)


# ═══════════════════════════════════════════════════════════════════
#  2. HELM 2
# ═══════════════════════════════════════════════════════════════════


class TestHelm2:
    def test_add_repo(self, shell):
        Helm2(shell).add_repo("elastic", "https://helm.elastic.co")
        assert shell.argvs == [["helm", "repo", "add", "elastic", "https://helm.elastic.co"]]

    def test_init_bootstraps_tiller(self, shell):
        Helm2(shell).init()
        assert shell.argvs == [["helm", "init", "--wait"]]

    def test_init_failure_raises(self, shell):
        shell.set_failure("helm", "init", output="could not find tiller")
        with pytest.raises(CommandError):
            Helm2(shell).init()

    def test_install_uses_name_flag(self, shell):
        Helm2(shell).install_chart("metricbeat", "elastic/metricbeat", "7.6.1")
        assert shell.argvs == [[
            "helm", "install", "elastic/metricbeat", "--name", "metricbeat", "--version", "7.6.1",
        ]]

    def test_install_appends_flags(self, shell):
        Helm2(shell).install_chart("es", "elastic/elasticsearch", "7.6.1", ["--wait", "--timeout=900"])
        assert shell.argvs[0][-2:] == ["--wait", "--timeout=900"]

    def test_install_failure_raises(self, shell):
        shell.set_failure("helm", "install", output="Error: chart not found")
        with pytest.raises(CommandError) as exc:
            Helm2(shell).install_chart("x", "elastic/x", "1.0.0")
        assert "chart not found" in exc.value.output

    def test_delete_purges(self, shell):
        assert Helm2(shell).delete_chart("metricbeat") is True
        assert shell.argvs == [["helm", "delete", "--purge", "metricbeat"]]

    def test_delete_failure_is_not_raised(self, shell, caplog):
        shell.set_failure("helm", "delete", output='Error: release: "metricbeat" not found')
        assert Helm2(shell).delete_chart("metricbeat") is False
        assert "Could not delete chart metricbeat" in caplog.text

    def test_timeout_flag(self, shell):
        assert Helm2(shell).timeout_flag(900) == "--timeout=900"


# ═══════════════════════════════════════════════════════════════════
#  3. HELM 3
# ═══════════════════════════════════════════════════════════════════


class TestHelm3:
    def test_add_repo_updates(self, shell):
        Helm3(shell).add_repo("elastic", "https://helm.elastic.co")
        assert shell.argvs == [
            ["helm", "repo", "add", "elastic", "https://helm.elastic.co"],
            ["helm", "repo", "update"],
        ]

    def test_init_is_noop(self, shell):
        Helm3(shell).init()
        assert shell.call_count == 0

    def test_install_positional_release(self, shell):
        Helm3(shell).install_chart("metricbeat", "elastic/metricbeat", "7.6.1", ["--values", "v.yaml"])
        assert shell.argvs == [[
            "helm", "install", "metricbeat", "elastic/metricbeat", "--version", "7.6.1",
            "--values", "v.yaml",
        ]]

    def test_delete(self, shell):
        assert Helm3(shell).delete_chart("metricbeat") is True
        assert shell.argvs == [["helm", "delete", "metricbeat"]]

    def test_delete_failure_is_not_raised(self):
        shell = MockShellExecutor()
        shell.set_failure("helm", "delete")
        assert Helm3(shell).delete_chart("metricbeat") is False

    def test_timeout_flag(self, shell):
        assert Helm3(shell).timeout_flag(900) == "--timeout=900s"

    def test_working_dir_passed(self, shell):
        Helm3(shell, working_dir="/charts").install_chart("a", "elastic/a", "1")
        assert shell.call_log[0].working_dir == "/charts"
