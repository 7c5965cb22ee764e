"""Markdown rendering of the output model."""

from __future__ import annotations

from acknowledge.aggregate.models import (
    ContributorEntry,
    DepAndNames,
    NameAndCount,
    NameAndDeps,
    OutputModel,
)

TITLE = "# Acknowledgements"

INTRO = (
    "This project is built on the work of the people behind its dependencies. "
    "Thank you to everyone listed below, and to everyone who helped along the way."
)


def plural(count: int, singular: str, plural_form: str) -> str:
    return singular if count == 1 else plural_form


def format_name(login: str, profile_url: str | None, mention: bool) -> str:
    """Markdown link to a profile, with an @ prefix for accounts when mention is set."""
    if not profile_url:
        return login
    label = f"@{login}" if mention else login
    return f"[{label}]({profile_url})"


def _name(entry: ContributorEntry, mention: bool) -> str:
    return format_name(entry.login, entry.profile_url, mention)


def _render_name_and_count(model: NameAndCount) -> list[str]:
    return [
        f"- {_name(c, model.mention)}, {c.count} "
        f"{plural(c.count, 'contribution', 'contributions')}"
        for c in model.contributors
    ]


def _render_dep_and_names(model: DepAndNames) -> list[str]:
    lines: list[str] = []
    for dep in model.dependencies:
        if lines:
            lines.append("")
        lines.append(f"## {dep.dependency}")
        lines.append("")
        lines.append(", ".join(_name(c, model.mention) for c in dep.contributors))
    return lines


def _render_name_and_deps(model: NameAndDeps) -> list[str]:
    return [
        f"- {format_name(c.login, c.profile_url, model.mention)}: {', '.join(c.dependencies)}"
        for c in model.contributors
    ]


def _is_empty(model: OutputModel) -> bool:
    if isinstance(model, DepAndNames):
        return not model.dependencies
    return not model.contributors


def render_markdown(model: OutputModel) -> str:
    """Render the acknowledgements document for any output shape."""
    lines = [TITLE, "", INTRO, ""]

    if _is_empty(model):
        lines.append("No contributors could be determined for the dependencies of this project.")
    elif isinstance(model, NameAndCount):
        lines.extend(_render_name_and_count(model))
    elif isinstance(model, DepAndNames):
        lines.extend(_render_dep_and_names(model))
    elif isinstance(model, NameAndDeps):
        lines.extend(_render_name_and_deps(model))
    else:
        raise TypeError(f"Unsupported output model: {type(model).__name__}")

    if model.others:
        lines.append("")
        lines.append(
            f"And {model.others} other {plural(model.others, 'contributor', 'contributors')}."
        )

    return "\n".join(lines) + "\n"
