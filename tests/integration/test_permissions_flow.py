"""
Integration tests for configuration driven engine startup.
"""

import pytest

from service_acl.app.acl import Acl
from shared.config import AclConfig
from shared.errors import CycleDetectedError
from shared.metrics import MetricsCollector
from shared.test_helpers import SampleDataFactory, write_permissions_file


def sample_value(metric, name, **labels):
    """Read one sample from an unregistered collector."""
    for family in metric.collect():
        for sample in family.samples:
            if sample.name == name and sample.labels == labels:
                return sample.value
    return None


class TestPermissionsFlow:
    """Integration tests for loading permissions at startup."""

    @pytest.fixture(autouse=True)
    def isolated_env(self, monkeypatch, tmp_path):
        """Run without a stray .env file or ACL_ variables."""
        monkeypatch.chdir(tmp_path)
        for name in ("ACL_LOG_LEVEL", "ACL_LOG_FORMAT", "ACL_PERMISSIONS_FILE", "ACL_METRICS_ENABLED"):
            monkeypatch.delenv(name, raising=False)

    @pytest.fixture
    def permissions_file(self, tmp_path):
        """Blog permissions written as YAML."""
        return write_permissions_file(tmp_path, SampleDataFactory.create_blog_permissions(), "yaml")

    def test_startup_from_config(self, permissions_file):
        """Test building, querying and counting with an explicit config."""
        config = AclConfig(permissions_file=str(permissions_file), log_format="console", log_level="debug")

        acl = Acl.from_config(config)

        assert isinstance(acl.metrics, MetricsCollector)
        assert acl.is_allowed("editor", "post", "delete") is True
        assert acl.is_allowed("visitor", "profile", "view") is False

        checks = acl.metrics.get_metric("acl_checks_total")
        assert sample_value(checks, "acl_checks_total", decision="allow") == 1.0
        assert sample_value(checks, "acl_checks_total", decision="deny") == 1.0

        changes = acl.metrics.get_metric("acl_rule_changes_total")
        assert sample_value(changes, "acl_rule_changes_total", operation="add", type="allow") == 7.0

    def test_startup_from_environment(self, monkeypatch, permissions_file):
        """Test startup driven by ACL_ variables alone."""
        monkeypatch.setenv("ACL_PERMISSIONS_FILE", str(permissions_file))
        monkeypatch.setenv("ACL_METRICS_ENABLED", "false")

        acl = Acl.from_config()

        assert acl.metrics is None
        assert acl.is_allowed("admin", "comment", "delete") is True
        assert acl.is_allowed("member", "page", "edit") is False

    def test_startup_without_permissions(self):
        """Test an empty engine when no file is configured."""
        acl = Acl.from_config(AclConfig(metrics_enabled=False))

        assert acl.get_roles() == []
        assert acl.is_allowed() is False

    def test_startup_with_cyclic_permissions(self, tmp_path):
        """Test that a bad file fails startup and is counted."""
        permissions = {"roles": [{"name": "a", "parent": "b"}, {"name": "b", "parent": "a"}]}
        path = write_permissions_file(tmp_path, permissions, "json")

        with pytest.raises(CycleDetectedError):
            Acl.from_config(AclConfig(permissions_file=str(path)))

    def test_runtime_changes_after_startup(self, permissions_file):
        """Test editing rules on an engine loaded from a file."""
        acl = Acl.from_config(AclConfig(permissions_file=str(permissions_file), metrics_enabled=False))

        acl.deny("member", "comment", "like")
        assert acl.is_allowed("editor", "comment", "like") is False
        assert acl.is_allowed("editor", "post", "like") is True

        # The deny replaced the allow in the same slot
        acl.remove_deny("member", "comment", "like")
        assert acl.is_allowed("editor", "comment", "like") is False

        acl.allow("member", "comment", "like")
        assert acl.is_allowed("editor", "comment", "like") is True

        acl.remove_role("editor")
        assert acl.has_role("editor") is False
        assert acl.is_allowed("publisher", "post", "publish") is True
