"""
Unit tests for template rendering.
"""

import pytest

from autoexporter.classification import render_template
from autoexporter.errors import TemplateRenderError
from autoexporter.models import MonitoredTask


@pytest.mark.unit
class TestRenderTemplate:
    """Test cases for render_template."""

    def setup_method(self):
        self.task = MonitoredTask(
            id="abc123",
            name="/web",
            labels={"com.example.kind": "php-fpm"},
            image="php:8-fpm",
        )

    def test_plain_text_is_unchanged(self):
        assert render_template("redis", self.task) == "redis"

    def test_fields(self):
        assert render_template("{name}-{id}@{image}", self.task) == "web-abc123@php:8-fpm"

    def test_label_lookup(self):
        assert render_template("{labels[com.example.kind]}", self.task) == "php-fpm"

    def test_escaped_braces(self):
        assert render_template("{{name}}", self.task) == "{name}"

    def test_unknown_label(self):
        with pytest.raises(TemplateRenderError, match="unknown field or label"):
            render_template("{labels[missing]}", self.task)

    def test_unknown_field(self):
        with pytest.raises(TemplateRenderError):
            render_template("{hostname}", self.task)

    def test_syntax_error(self):
        with pytest.raises(TemplateRenderError):
            render_template("{name", self.task)

    @pytest.mark.parametrize(
        "template",
        [
            "{labels.__class__}",
            "{id.__class__.__mro__}",
            "{labels[com.example.kind].__class__}",
            "{name:{id.__class__}}",
            "{}",
            "{0}",
        ],
    )
    def test_only_task_fields_are_accepted(self, template):
        with pytest.raises(TemplateRenderError, match="unsupported field"):
            render_template(template, self.task)

    def test_nested_format_spec_with_task_field(self):
        task = MonitoredTask(id="abc123", name="web", labels={"width": "6"}, image="php")

        assert render_template("{name:>{labels[width]}}", task) == "   web"
