"""User-supplied document templates, rendered with jinja2.

A template sees the same data the built-in renderer works from:

- ``layout``: ``name-and-count``, ``dep-and-names`` or ``name-and-deps``
- ``thank``: one entry per listed item
    - name-and-count: ``name``, ``profile_url``, ``count``
    - dep-and-names: ``crate_name``, ``contributors`` (each ``name``, ``profile_url``)
    - name-and-deps: ``name``, ``profile_url``, ``count``, ``crates``
- ``others``: how many contributors were summarized instead of named
- ``mention``: whether logins should be prefixed with ``@``

The ``plural(count, singular, plural)`` and ``format_name(name, url, mention)``
helpers are available as globals.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from acknowledge.aggregate.models import DepAndNames, NameAndCount, NameAndDeps, OutputModel
from acknowledge.errors import ConfigurationError
from acknowledge.output.renderer import format_name, plural

logger = logging.getLogger(__name__)

_env = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)
_env.globals.update(plural=plural, format_name=format_name)


def template_context(model: OutputModel) -> dict[str, Any]:
    """Flatten an output model into plain data for a template."""
    if isinstance(model, NameAndCount):
        thank = [
            {"name": c.login, "profile_url": c.profile_url, "count": c.count}
            for c in model.contributors
        ]
    elif isinstance(model, DepAndNames):
        thank = [
            {
                "crate_name": d.dependency,
                "contributors": [
                    {"name": c.login, "profile_url": c.profile_url} for c in d.contributors
                ],
            }
            for d in model.dependencies
        ]
    elif isinstance(model, NameAndDeps):
        thank = [
            {
                "name": c.login,
                "profile_url": c.profile_url,
                "count": c.count,
                "crates": list(c.dependencies),
            }
            for c in model.contributors
        ]
    else:
        raise TypeError(f"Unsupported output model: {type(model).__name__}")

    return {
        "layout": model.layout,
        "thank": thank,
        "others": model.others,
        "mention": model.mention,
    }


def load_template(path: str | Path) -> Template:
    """Read and compile a template file.

    Raises ConfigurationError if the file is missing or not valid jinja2.
    """
    template_path = Path(path).expanduser()
    try:
        source = template_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read template {template_path}: {e}") from e
    try:
        return _env.from_string(source)
    except TemplateError as e:
        raise ConfigurationError(f"Invalid template {template_path}: {e}") from e


def render_template(model: OutputModel, path: str | Path) -> str:
    """Render the output model through the template at path."""
    template = load_template(path)
    logger.debug("Rendering %s layout through %s", model.layout, path)
    try:
        return template.render(template_context(model))
    except TemplateError as e:
        raise ConfigurationError(f"Template {path} failed to render: {e}") from e
