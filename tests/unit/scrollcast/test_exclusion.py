from __future__ import annotations

from pathlib import Path

import pytest

from scrollcast.exclusion import ExclusionRuleSet, VcsIgnore, is_excluded, normalize_rel
from scrollcast.settings import Settings


@pytest.mark.unit
@pytest.mark.parametrize(
    "path",
    [
        ".git/config",
        "src/.git/HEAD",
        "node_modules/pkg/index.js",
        "crates/core/target/debug/app.d",
        "Cargo.lock",
        "web/yarn.lock",
        ".gitignore",
        "docs/.DS_Store",
        "image.png",
        "assets/logo.svg",
        "src/main.rs.png",
        "fonts/mono.woff2",
    ],
)
def test_builtin_rules_always_exclude(path: str) -> None:
    assert is_excluded(path, ExclusionRuleSet())
    assert is_excluded(path, ExclusionRuleSet(respect_vcs_ignore=False, ignored_files=("unrelated",)))


@pytest.mark.unit
@pytest.mark.parametrize("path", ["src/main.rs", "README.md", "Makefile", ".env", "src/lib/output.rs"])
def test_regular_files_are_kept(path: str) -> None:
    assert not is_excluded(path, ExclusionRuleSet())


@pytest.mark.unit
def test_builtin_extension_match_is_case_sensitive() -> None:
    assert is_excluded("photo.png", ExclusionRuleSet())
    assert not is_excluded("photo.PNG", ExclusionRuleSet())


@pytest.mark.unit
def test_ignored_directories_match_path_prefix() -> None:
    rules = ExclusionRuleSet(ignored_directories=("docs", "src/generated"))

    assert is_excluded("docs/index.md", rules)
    assert is_excluded("src/generated/api.rs", rules)
    assert is_excluded("src/generated", rules, is_dir=True)
    assert not is_excluded("src/main.rs", rules)
    assert not is_excluded("lib/docs/index.md", rules)


@pytest.mark.unit
def test_ignored_directory_with_trailing_slash_matches_whole_component() -> None:
    rules = ExclusionRuleSet.from_settings(Settings(ignored_directories=("docs/",), respect_gitignore=False))

    assert is_excluded("docs/index.md", rules)
    assert is_excluded("docs", rules, is_dir=True)
    assert not is_excluded("docs-old/index.md", rules)
    assert not is_excluded("docs-old", rules, is_dir=True)
    assert not is_excluded("docs.md", rules)


@pytest.mark.unit
def test_ignored_directory_without_slash_is_a_plain_prefix() -> None:
    rules = ExclusionRuleSet(ignored_directories=("docs",))

    assert is_excluded("docs-old/index.md", rules)
    assert is_excluded("docs-old", rules, is_dir=True)

@pytest.mark.unit
def test_ignored_files_match_substrings_of_path_or_name() -> None:
    rules = ExclusionRuleSet(ignored_files=("secret", "fixtures/big"))

    assert is_excluded("config/secret.toml", rules)
    assert is_excluded("tests/fixtures/big.json", rules)
    assert not is_excluded("tests/fixtures/small.json", rules)


@pytest.mark.unit
def test_ignored_extensions_require_leading_dot_match() -> None:
    rules = ExclusionRuleSet(ignored_extensions=(".log", ".tmp"))

    assert is_excluded("logs/run.log", rules)
    assert is_excluded("scratch.tmp", rules)
    assert not is_excluded("catalog", rules)
    assert not is_excluded("notes.md", rules)


@pytest.mark.unit
def test_directory_checks_ignore_file_rules() -> None:
    rules = ExclusionRuleSet(ignored_files=("src",), ignored_extensions=(".d",))

    assert not is_excluded("src", rules, is_dir=True)
    assert not is_excluded("conf.d", rules, is_dir=True)
    assert is_excluded("build", rules, is_dir=True)


@pytest.mark.unit
def test_normalize_rel_strips_prefixes_and_backslashes() -> None:
    assert normalize_rel("./src\\main.rs") == "src/main.rs"
    assert normalize_rel("/docs/") == "docs"


@pytest.mark.unit
def test_vcs_ignore_negation_reincludes_file() -> None:
    vcs = VcsIgnore()
    vcs.add_patterns("", ["*.log", "!keep.log"])

    assert vcs.is_ignored("debug.log")
    assert not vcs.is_ignored("keep.log")
    assert not vcs.is_ignored("main.rs")


@pytest.mark.unit
def test_vcs_ignore_nearest_file_overrides_parent() -> None:
    vcs = VcsIgnore()
    vcs.add_patterns("", ["*.txt"])
    vcs.add_patterns("docs", ["!*.txt"])

    assert vcs.is_ignored("notes.txt")
    assert vcs.is_ignored("src/notes.txt")
    assert not vcs.is_ignored("docs/notes.txt")
    assert not vcs.is_ignored("docs/api/notes.txt")


@pytest.mark.unit
def test_vcs_ignore_nested_patterns_are_relative_to_their_directory() -> None:
    vcs = VcsIgnore()
    vcs.add_patterns("app", ["/local.cfg"])

    assert vcs.is_ignored("app/local.cfg")
    assert not vcs.is_ignored("local.cfg")
    assert not vcs.is_ignored("app/sub/local.cfg")


@pytest.mark.unit
def test_vcs_ignore_file_under_ignored_directory_cannot_be_reincluded() -> None:
    vcs = VcsIgnore()
    vcs.add_patterns("", ["generated/", "!generated/keep.rs"])

    assert vcs.is_ignored("generated", is_dir=True)
    assert vcs.is_ignored("generated/keep.rs")


@pytest.mark.unit
def test_gitignore_overrides_exclude_and_global_files() -> None:
    vcs = VcsIgnore(global_lines=["*.bak", "*.orig"], exclude_lines=["scratch/"])
    vcs.add_patterns("", ["!important.bak"])

    assert vcs.is_ignored("old.bak")
    assert vcs.is_ignored("merge.orig")
    assert vcs.is_ignored("scratch/a.rs")
    assert not vcs.is_ignored("important.bak")


@pytest.mark.unit
def test_vcs_rules_only_apply_when_enabled() -> None:
    vcs = VcsIgnore()
    vcs.add_patterns("", ["*.rs"])

    assert is_excluded("src/main.rs", ExclusionRuleSet(vcs=vcs))
    assert not is_excluded("src/main.rs", ExclusionRuleSet(vcs=vcs, respect_vcs_ignore=False))


@pytest.mark.unit
def test_vcs_ignore_for_root_reads_repository_files(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("*.log\n", encoding="utf-8")
    (tmp_path / ".git" / "info").mkdir(parents=True)
    (tmp_path / ".git" / "info" / "exclude").write_text("private/\n", encoding="utf-8")
    global_file = tmp_path / "global_ignore"
    global_file.write_text("*.swp\n", encoding="utf-8")

    vcs = VcsIgnore.for_root(tmp_path, global_file=global_file)

    assert vcs.is_ignored("out.log")
    assert vcs.is_ignored("private/notes.md")
    assert vcs.is_ignored(".main.rs.swp")
    assert not vcs.is_ignored("src/main.rs")


@pytest.mark.unit
def test_rule_set_from_settings_normalizes_directories() -> None:
    settings = Settings(ignored_directories=("./docs/", ""), ignored_extensions=(".log",), respect_gitignore=False)

    rules = ExclusionRuleSet.from_settings(settings)

    assert rules.ignored_directories == ("docs/",)
    assert rules.ignored_extensions == (".log",)
    assert rules.respect_vcs_ignore is False
