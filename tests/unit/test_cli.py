"""Unit tests for cookbook_extractor.cli module.

Tests argument parsing, the subcommands and exit codes. The OpenAI client is
patched in the service factory so ``extract`` never touches the network.
"""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_invalid_recipe, make_recipe, make_recipe_data
from cookbook_extractor.cli import build_parser, create_progress, main
from cookbook_extractor.hashing import ContentHasher
from cookbook_extractor.models import ExtractionResponse
from cookbook_extractor.serialization import recipe_to_yaml

URL = "https://example.com/pie"


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_env: None) -> None:
    """Keep user and project config files out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


def run(tmp_path: Path, *args: str) -> int:
    """Invoke main() and return its exit code."""
    try:
        main(["--log-file", str(tmp_path / "cli.log"), *args])
    except SystemExit as e:
        return int(e.code or 0)
    return 0


class TestParser:
    """Tests for build_parser."""

    def test_extract_arguments(self) -> None:
        args = build_parser().parse_args(
            ["extract", URL, "--html", "page.html", "--max-retries", "0", "--no-adaptive"]
        )
        assert args.command == "extract"
        assert args.url == URL
        assert args.max_retries == 0
        assert args.no_adaptive is True

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_create_progress(self) -> None:
        assert create_progress() is not None


class TestHashCommand:
    """Tests for the hash subcommand."""

    def test_prints_normalized_url_and_hash(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = run(tmp_path, "hash", "HTTPS://Example.com/pie?utm_source=x")

        out = capsys.readouterr().out
        assert code == 0
        assert "https://example.com/pie" in out
        assert ContentHasher().hash(URL) in out

    def test_malformed_url_exits_2(self, tmp_path: Path) -> None:
        assert run(tmp_path, "hash", "not a url") == 2


class TestCleanCommand:
    """Tests for the clean subcommand."""

    def test_reports_strategy(
        self, tmp_path: Path, structured_data_page: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        page = tmp_path / "page.html"
        page.write_text(structured_data_page)

        code = run(tmp_path, "clean", "--html", str(page))

        assert code == 0
        assert "structured_data" in capsys.readouterr().out

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        assert run(tmp_path, "clean", "--html", str(tmp_path / "missing.html")) == 1


class TestValidateCommand:
    """Tests for the validate subcommand."""

    def test_valid_recipe(self, tmp_path: Path) -> None:
        path = tmp_path / "pie.yaml"
        path.write_text(recipe_to_yaml(make_recipe()))
        assert run(tmp_path, "validate", str(path)) == 0

    def test_invalid_recipe_exits_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text(recipe_to_yaml(make_invalid_recipe()))

        assert run(tmp_path, "validate", str(path)) == 1
        assert "Invalid recipe" in capsys.readouterr().out

    def test_unparseable_yaml_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")
        assert run(tmp_path, "validate", str(path)) == 1


class TestExtractCommand:
    """Tests for the extract subcommand."""

    @pytest.fixture
    def page(self, tmp_path: Path, structured_data_page: str) -> Path:
        path = tmp_path / "page.html"
        path.write_text(structured_data_page)
        return path

    @pytest.fixture
    def openai_client(self, mock_sync_openai_client: MagicMock) -> Iterator[MagicMock]:
        with patch(
            "cookbook_extractor.services.factory.OpenAI", return_value=mock_sync_openai_client
        ):
            yield mock_sync_openai_client

    def test_writes_recipes(self, tmp_path: Path, page: Path, openai_client: MagicMock) -> None:
        openai_client.responses.parse.return_value.status = "completed"
        openai_client.responses.parse.return_value.output_parsed = ExtractionResponse(
            is_recipe=True, recipe_confidence=0.9, recipes=[make_recipe_data("Apple Pie")]
        )
        output_dir = tmp_path / "out"

        code = run(tmp_path, "extract", URL, "--html", str(page), "--output-dir", str(output_dir))

        assert code == 0
        assert (output_dir / "apple-pie.yaml").exists()
        assert "source: https://example.com/pie" in (output_dir / "apple-pie.yaml").read_text()

    def test_not_recipe_exits_1(self, tmp_path: Path, page: Path, openai_client: MagicMock) -> None:
        openai_client.responses.parse.return_value.status = "completed"
        openai_client.responses.parse.return_value.output_parsed = ExtractionResponse(
            is_recipe=False, recipe_confidence=0.1
        )

        code = run(tmp_path, "extract", URL, "--html", str(page), "--no-adaptive")

        assert code == 1
        assert openai_client.responses.parse.call_count == 1

    def test_file_cache_serves_second_run(
        self, tmp_path: Path, page: Path, openai_client: MagicMock
    ) -> None:
        openai_client.responses.parse.return_value.status = "completed"
        openai_client.responses.parse.return_value.output_parsed = ExtractionResponse(
            is_recipe=True, recipe_confidence=0.9, recipes=[make_recipe_data()]
        )
        cache_dir = tmp_path / "cache"

        for _ in range(2):
            code = run(tmp_path, "extract", URL, "--html", str(page), "--cache-dir", str(cache_dir))
            assert code == 0

        assert openai_client.responses.parse.call_count == 1
        assert len(list(cache_dir.glob("*.json"))) == 1

    def test_missing_api_key_exits_1(
        self,
        tmp_path: Path,
        page: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """The OpenAI client error is shown as a panel instead of a traceback."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        code = run(tmp_path, "extract", URL, "--html", str(page))

        assert code == 1
        assert "unexpected error" in capsys.readouterr().out

    def test_unexpected_error_is_logged(
        self, tmp_path: Path, page: Path, openai_client: MagicMock
    ) -> None:
        openai_client.responses.parse.side_effect = RuntimeError("boom")

        assert run(tmp_path, "extract", URL, "--html", str(page), "--no-adaptive") == 1

    def test_invalid_config_exits_2(self, tmp_path: Path, page: Path) -> None:
        missing = str(tmp_path / "nope.toml")
        assert run(tmp_path, "--config", missing, "extract", URL, "--html", str(page)) == 2
