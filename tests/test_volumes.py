"""
Tests for volume mount correlation — names, mount paths and sub-paths
aligned by index.
"""

import pytest

from chartverify.core.engine.volumes import VolumeMounts
from chartverify.core.errors import VerificationError


@pytest.fixture
def mounts() -> VolumeMounts:
    return VolumeMounts(
        names=["data", "config"],
        mount_paths=["/usr/share/data", "/usr/share/config"],
        sub_paths=["", "config.yml"],
        resource="pods/metricbeat-abc",
    )


class TestVerify:
    def test_mount_with_subpath(self, mounts):
        mounts.verify("config", "/usr/share/config", "config.yml")

    def test_empty_subpath_means_no_subpath(self, mounts):
        with pytest.raises(VerificationError) as exc:
            mounts.verify("config", "/usr/share/config", "")
        assert "subPath" in exc.value.message
        assert exc.value.expected == ""
        assert exc.value.actual == "config.yml"

    def test_none_subpath_is_not_checked(self, mounts):
        mounts.verify("config", "/usr/share/config")

    def test_mount_without_subpath(self, mounts):
        mounts.verify("data", "/usr/share/data", "")

    def test_wrong_mount_path(self, mounts):
        with pytest.raises(VerificationError) as exc:
            mounts.verify("data", "/var/lib/data")
        assert exc.value.expected == "/var/lib/data"
        assert exc.value.actual == "/usr/share/data"
        assert exc.value.resource == "pods/metricbeat-abc"

    def test_wrong_subpath(self, mounts):
        with pytest.raises(VerificationError) as exc:
            mounts.verify("config", "/usr/share/config", "other.yml")
        assert exc.value.actual == "config.yml"

    def test_missing_name_lists_available(self, mounts):
        with pytest.raises(VerificationError) as exc:
            mounts.verify("missing", "/anywhere")
        assert "could not be found" in str(exc.value)
        assert exc.value.actual == ["data", "config"]

    def test_missing_name_on_empty_mounts(self):
        with pytest.raises(VerificationError):
            VolumeMounts().verify("missing", "/anywhere")

    def test_first_duplicate_wins(self):
        m = VolumeMounts(["a", "a"], ["/one", "/two"], ["", ""])
        m.verify("a", "/one")

    @pytest.mark.parametrize(
        "names, paths, subs",
        [
            (["data", "config"], ["/usr/share/data"], ["", ""]),
            (["data", "config"], ["/usr/share/data", "/usr/share/config"], ["config.yml"]),
            (["data"], ["/a", "/b"], ["", ""]),
        ],
    )
    def test_mismatched_lengths_fail(self, names, paths, subs):
        with pytest.raises(VerificationError) as exc:
            VolumeMounts(names, paths, subs).verify("config", "/usr/share/config")
        assert "mismatched lengths" in str(exc.value)


class TestFromContainer:
    def test_missing_subpath_keeps_alignment(self):
        container = {
            "name": "metricbeat",
            "volumeMounts": [
                {"name": "data", "mountPath": "/usr/share/metricbeat/data"},
                {"name": "metricbeat-config", "mountPath": "/usr/share/metricbeat/metricbeat.yml",
                 "subPath": "metricbeat.yml", "readOnly": True},
                {"name": "varrundockersock", "mountPath": "/var/run/docker.sock"},
            ],
        }
        m = VolumeMounts.from_container(container)
        assert m.names == ["data", "metricbeat-config", "varrundockersock"]
        assert m.sub_paths == ["", "metricbeat.yml", ""]
        m.verify("metricbeat-config", "/usr/share/metricbeat/metricbeat.yml", "metricbeat.yml")
        m.verify("varrundockersock", "/var/run/docker.sock", "")

    def test_no_mounts(self):
        m = VolumeMounts.from_container({"name": "x"})
        assert m.names == [] and m.mount_paths == [] and m.sub_paths == []
