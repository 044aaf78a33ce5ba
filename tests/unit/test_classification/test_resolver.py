"""
Unit tests for exporter resolution.
"""

import pytest

from autoexporter.classification import ExporterResolver
from autoexporter.errors import PredefinedExporterNotFoundError, TemplateRenderError
from autoexporter.models import LABEL_EXPORTER, MonitoredTask


@pytest.mark.unit
class TestExporterResolver:
    """Test cases for ExporterResolver."""

    def test_catalog_matches_get_deterministic_names(self, finder_class):
        finder = finder_class(matching={"redis": "redis_exporter", "node": "node_exporter"})
        resolver = ExporterResolver(finder)
        task = MonitoredTask(id="abc123", name="/cache")

        exporters = resolver.resolve(task)

        assert [e.name for e in exporters] == ["exporter.redis.cache", "exporter.node.cache"]
        assert all(e.monitored_task is task for e in exporters)

    def test_no_match_gives_empty_list(self, finder_class):
        resolver = ExporterResolver(finder_class())

        assert resolver.resolve(MonitoredTask(id="abc", name="app")) == []

    def test_explicit_label_bypasses_matching(self, finder_class):
        finder = finder_class(matching={"redis": "redis_exporter"}, predefined={"mysql": "mysqld_exporter"})
        resolver = ExporterResolver(finder)
        task = MonitoredTask(id="abc", name="db", labels={LABEL_EXPORTER: "mysql"})

        exporters = resolver.resolve(task)

        assert len(exporters) == 1
        assert exporters[0].name == "exporter.mysql.db"
        assert exporters[0].image == "mysqld_exporter"

    def test_explicit_label_is_rendered(self, finder_class):
        finder = finder_class(predefined={"php-fpm": "php_exporter"})
        resolver = ExporterResolver(finder)
        task = MonitoredTask(
            id="abc",
            name="web",
            labels={LABEL_EXPORTER: "{labels[com.example.kind]}", "com.example.kind": "php-fpm"},
        )

        assert resolver.explicit_exporter_type(task) == "php-fpm"
        assert [e.name for e in resolver.resolve(task)] == ["exporter.php-fpm.web"]

    def test_empty_rendered_label_falls_back_to_matching(self, finder_class):
        finder = finder_class(matching={"redis": "redis_exporter"})
        resolver = ExporterResolver(finder)
        task = MonitoredTask(
            id="abc",
            name="cache",
            labels={LABEL_EXPORTER: "{labels[kind]}", "kind": ""},
        )

        assert [e.exporter_type for e in resolver.resolve(task)] == ["redis"]

    def test_unknown_explicit_type(self, finder_class):
        resolver = ExporterResolver(finder_class())
        task = MonitoredTask(id="abc", name="db", labels={LABEL_EXPORTER: "mysql"})

        with pytest.raises(PredefinedExporterNotFoundError):
            resolver.resolve(task)

    def test_unrenderable_label(self, finder_class):
        resolver = ExporterResolver(finder_class())
        task = MonitoredTask(id="abc", name="db", labels={LABEL_EXPORTER: "{labels[nope]}"})

        with pytest.raises(TemplateRenderError):
            resolver.resolve(task)

    def test_matching_warnings_are_logged(self, finder_class, caplog):
        finder = finder_class(matching={"redis": "redis_exporter"}, warnings=[ValueError("bad rule")])
        resolver = ExporterResolver(finder)

        exporters = resolver.resolve(MonitoredTask(id="abc", name="cache"))

        assert len(exporters) == 1
        assert "bad rule" in caplog.text
