from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from scrollcast import __version__, cli
from scrollcast.config import OutputFormat

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty directory so no stray dotenv file is picked up."""
    monkeypatch.chdir(tmp_path)


@pytest.mark.unit
def test_parse_args_defaults_leave_settings_untouched(tmp_path: Path) -> None:
    settings = cli.parse_args([str(tmp_path)])

    assert settings.root == tmp_path
    assert settings.include_toc is True
    assert settings.include_file_tree is True
    assert settings.respect_gitignore is True
    assert settings.output_format is OutputFormat.MARKDOWN


@pytest.mark.unit
def test_parse_args_parses_flags(tmp_path: Path) -> None:
    settings = cli.parse_args(
        [
            str(tmp_path),
            "--output",
            "book.md",
            "--no-toc",
            "--no-tree",
            "--no-gitignore",
            "--ignore-dir",
            "docs",
            "--ignore-dir",
            "samples",
            "--ignore-ext",
            ".log",
            "--ignore-file",
            "generated",
            "--chunk-size",
            "4",
            "--title",
            "My Book",
        ],
    )

    assert settings.output == Path("book.md")
    assert settings.include_toc is False
    assert settings.include_file_tree is False
    assert settings.respect_gitignore is False
    assert settings.ignored_directories == ("docs", "samples")
    assert settings.ignored_extensions == (".log",)
    assert settings.ignored_files == ("generated",)
    assert settings.default_chunk_size == 4
    assert settings.document_title == "My Book"


@pytest.mark.unit
def test_parse_args_flags_override_config_file(tmp_path: Path) -> None:
    config = tmp_path / "custom.yaml"
    config.write_text("title: from-file\ninclude_toc: false\n", encoding="utf-8")

    settings = cli.parse_args([str(tmp_path), "--config", str(config), "--title", "from-flag"])

    assert settings.title == "from-flag"
    assert settings.include_toc is False


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_parse_args_rejects_unknown_format() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["--format", "docx"])


@pytest.mark.unit
def test_main_configures_log_file(tmp_path: Path, mocker: MockerFixture) -> None:
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    (repo / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    setup_logging = mocker.patch.object(cli, "setup_logging")

    exit_code = cli.main([str(repo), "--output", str(tmp_path / "out.md"), "--log-file", "run.log"])

    assert exit_code == 0
    setup_logging.assert_called_once_with("run.log")
