"""Generate ACKNOWLEDGEMENTS.md from the contributors of a project's dependencies."""

__version__ = "0.1.0"
