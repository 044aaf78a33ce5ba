"""
Rendering of templated label values and catalog entries.

Templates use str.format syntax against the monitored task:
``{id}``, ``{name}``, ``{image}`` and ``{labels[some.label]}``.
Literal braces are written ``{{`` and ``}}``. Attribute access and any other
field are rejected before rendering.
"""

import re
import string
from typing import Optional

from ..errors import TemplateRenderError
from ..models import MonitoredTask, trim_leading_slash

_ALLOWED_FIELD = re.compile(r"(?:id|name|image|labels\[[^\[\]]+\])")

_formatter = string.Formatter()


def task_fields(task: MonitoredTask) -> dict:
    return {
        "id": task.id,
        "name": trim_leading_slash(task.name),
        "image": task.image,
        "labels": dict(task.labels),
    }


def check_template_fields(template: str, spec: Optional[str] = None) -> None:
    """
    Reject replacement fields other than the task's, including those nested
    in format specs.

    Raises:
        TemplateRenderError: On an unsupported field
        ValueError: On syntax errors
    """
    for _, field_name, format_spec, _ in _formatter.parse(template if spec is None else spec):
        if field_name is None:
            continue
        if not _ALLOWED_FIELD.fullmatch(field_name):
            raise TemplateRenderError(template, f"unsupported field {field_name!r}")
        if format_spec:
            check_template_fields(template, format_spec)


def render_template(template: str, task: MonitoredTask) -> str:
    """
    Render ``template`` against ``task``.

    Raises:
        TemplateRenderError: On syntax errors or references to unknown fields
            or labels
    """
    try:
        check_template_fields(template)
        return template.format_map(task_fields(task))
    except KeyError as e:
        raise TemplateRenderError(template, f"unknown field or label {e}")
    except (ValueError, IndexError, AttributeError, TypeError) as e:
        raise TemplateRenderError(template, str(e))
