"""Output subsystem: renders and writes ACKNOWLEDGEMENTS.md."""

from acknowledge.output.renderer import format_name, plural, render_markdown
from acknowledge.output.template import load_template, render_template, template_context
from acknowledge.output.writer import FILE_NAME, DocumentWriter, default_output_path

__all__ = [
    "FILE_NAME",
    "DocumentWriter",
    "default_output_path",
    "format_name",
    "load_template",
    "plural",
    "render_markdown",
    "render_template",
    "template_context",
]
