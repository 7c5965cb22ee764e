"""Tests for acknowledge.output: markdown rendering, user templates and the document writer."""

import pytest

from acknowledge.aggregate.models import (
    ContributorDependencies,
    ContributorEntry,
    DepAndNames,
    DependencyEntry,
    NameAndCount,
    NameAndDeps,
)
from acknowledge.errors import ConfigurationError
from acknowledge.output import (
    FILE_NAME,
    DocumentWriter,
    default_output_path,
    format_name,
    plural,
    render_markdown,
    render_template,
    template_context,
)

ALICE = ContributorEntry(login="alice", profile_url="https://github.com/alice", count=5)
JANE = ContributorEntry(login="Jane Doe", profile_url=None, count=1)


# ── Helpers ─────────────────────────────────────────────────────────


class TestHelpers:
    def test_plural(self):
        assert plural(1, "contributor", "contributors") == "contributor"
        assert plural(0, "contributor", "contributors") == "contributors"
        assert plural(2, "contributor", "contributors") == "contributors"

    def test_name_with_profile(self):
        assert format_name("alice", "https://github.com/alice", False) == (
            "[alice](https://github.com/alice)"
        )

    def test_mention_prefixes_accounts(self):
        assert format_name("alice", "https://github.com/alice", True) == (
            "[@alice](https://github.com/alice)"
        )

    def test_mention_skips_plain_names(self):
        assert format_name("Jane Doe", None, True) == "Jane Doe"


# ── render_markdown ─────────────────────────────────────────────────


class TestRenderMarkdown:
    def test_name_and_count(self):
        text = render_markdown(NameAndCount(contributors=[ALICE, JANE], others=0))
        assert text.startswith("# Acknowledgements\n")
        assert "- [alice](https://github.com/alice), 5 contributions" in text
        assert "- Jane Doe, 1 contribution\n" in text
        assert "other contributor" not in text

    def test_others_line_singular_and_plural(self):
        one = render_markdown(NameAndCount(contributors=[ALICE], others=1))
        many = render_markdown(NameAndCount(contributors=[ALICE], others=4))
        assert "And 1 other contributor." in one
        assert "And 4 other contributors." in many

    def test_dep_and_names(self):
        model = DepAndNames(
            dependencies=[
                DependencyEntry(dependency="serde", contributors=[ALICE, JANE]),
                DependencyEntry(dependency="tokio", contributors=[ALICE]),
            ],
            mention=True,
        )
        text = render_markdown(model)
        assert "## serde\n\n[@alice](https://github.com/alice), Jane Doe\n" in text
        assert "## tokio" in text
        assert text.index("## serde") < text.index("## tokio")

    def test_name_and_deps(self):
        model = NameAndDeps(
            contributors=[
                ContributorDependencies(
                    login="alice",
                    profile_url="https://github.com/alice",
                    count=5,
                    dependencies=["serde", "tokio"],
                )
            ]
        )
        assert "- [alice](https://github.com/alice): serde, tokio" in render_markdown(model)

    def test_empty_document(self):
        text = render_markdown(DepAndNames())
        assert "No contributors could be determined" in text

    def test_empty_with_others(self):
        text = render_markdown(NameAndCount(others=3))
        assert "And 3 other contributors." in text

    def test_ends_with_newline(self):
        assert render_markdown(NameAndCount(contributors=[ALICE])).endswith("\n")


# ── User templates ──────────────────────────────────────────────────


class TestTemplates:
    def test_context_uses_layout_field_names(self):
        model = DepAndNames(
            dependencies=[DependencyEntry(dependency="serde", contributors=[ALICE])],
            others=2,
            mention=True,
        )
        assert template_context(model) == {
            "layout": "dep-and-names",
            "thank": [
                {
                    "crate_name": "serde",
                    "contributors": [{"name": "alice", "profile_url": "https://github.com/alice"}],
                }
            ],
            "others": 2,
            "mention": True,
        }

    def test_renders_user_template_with_helpers(self, tmp_path):
        template = tmp_path / "thanks.md.j2"
        template.write_text(
            "# Thanks\n"
            "{% for t in thank %}"
            "* {{ format_name(t.name, t.profile_url, mention) }} "
            "({{ t.count }} {{ plural(t.count, 'commit', 'commits') }})\n"
            "{% endfor %}"
        )
        model = NameAndCount(contributors=[ALICE, JANE], mention=True)
        assert render_template(model, template) == (
            "# Thanks\n"
            "* [@alice](https://github.com/alice) (5 commits)\n"
            "* Jane Doe (1 commit)\n"
        )

    def test_name_and_deps_exposes_crates(self, tmp_path):
        template = tmp_path / "t.j2"
        template.write_text("{% for t in thank %}{{ t.name }}: {{ t.crates | join(', ') }}{% endfor %}")
        model = NameAndDeps(
            contributors=[
                ContributorDependencies(login="alice", count=5, dependencies=["serde", "tokio"])
            ]
        )
        assert render_template(model, template) == "alice: serde, tokio"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read template"):
            render_template(NameAndCount(), tmp_path / "absent.j2")

    def test_syntax_error(self, tmp_path):
        template = tmp_path / "broken.j2"
        template.write_text("{% for t in thank %}")
        with pytest.raises(ConfigurationError, match="Invalid template"):
            render_template(NameAndCount(), template)

    def test_unknown_variable_fails(self, tmp_path):
        template = tmp_path / "typo.j2"
        template.write_text("{{ thanks }}")
        with pytest.raises(ConfigurationError, match="failed to render"):
            render_template(NameAndCount(), template)


# ── DocumentWriter ──────────────────────────────────────────────────


class TestDocumentWriter:
    def test_writes_utf8(self, tmp_path):
        dest = DocumentWriter(tmp_path / FILE_NAME).write("# Danke, Jürgen\n")
        assert dest.read_text(encoding="utf-8") == "# Danke, Jürgen\n"

    def test_creates_parent_directories(self, tmp_path):
        dest = DocumentWriter(tmp_path / "docs" / "thanks.md").write("x")
        assert dest.is_file()

    def test_dry_run_writes_nothing(self, tmp_path):
        dest = DocumentWriter(tmp_path / FILE_NAME).write("x", dry_run=True)
        assert not dest.exists()

    def test_overwrites_existing(self, tmp_path):
        target = tmp_path / FILE_NAME
        target.write_text("old")
        DocumentWriter(target).write("new")
        assert target.read_text() == "new"


class TestDefaultOutputPath:
    def test_project_directory(self, tmp_path):
        assert default_output_path(tmp_path) == tmp_path / FILE_NAME

    def test_manifest_path(self, tmp_path):
        manifest = tmp_path / "Cargo.toml"
        manifest.write_text("")
        assert default_output_path(manifest) == tmp_path / FILE_NAME
