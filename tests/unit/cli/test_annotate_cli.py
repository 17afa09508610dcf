"""Unit tests for the scienceio CLI.

The client's annotate methods are patched; these tests cover argument
handling, credential errors, exit codes and JSON output.
"""

import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from scienceio.cli import _create_parser, _setup_logging, main
from scienceio.client import ScienceIO
from scienceio.errors import AnnotationError, HTTPError
from scienceio.models import AnnotationResult, ChunkFailure

RESULT = AnnotationResult(
    request_id="job-1",
    chunk_index=0,
    text="ALS occurs.",
    annotations={"spans": [{"text": "ALS"}]},
)


def _run_cli(*argv: str) -> int:
    """Run main() with argv and return its exit code."""
    with patch.object(sys, "argv", ["scienceio", *argv]), pytest.raises(SystemExit) as exc_info:
        main()
    return int(exc_info.value.code or 0)


@pytest.fixture(autouse=True)
def credentials(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Provide API credentials and isolate from any .env file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCIENCEIO_API_KEY_ID", "key-id")
    monkeypatch.setenv("SCIENCEIO_API_KEY_SECRET", "s3cr3t")
    yield
    logging.getLogger("scienceio").handlers.clear()


# =============================================================================
# PARSER TESTS
# =============================================================================


class TestParser:
    """Tests for argument parsing."""

    @pytest.mark.unit
    def test_annotate_defaults(self) -> None:
        args = _create_parser().parse_args(["annotate", "some text"])
        assert args.command == "annotate"
        assert args.text == "some text"
        assert args.file is None
        assert args.max_concurrent is None
        assert args.partial is False

    @pytest.mark.unit
    def test_annotate_options(self) -> None:
        args = _create_parser().parse_args(
            ["-v", "annotate", "-f", "notes.txt", "--max-concurrent", "3", "--partial"]
        )
        assert args.verbose is True
        assert args.file == Path("notes.txt")
        assert args.max_concurrent == 3
        assert args.partial is True


# =============================================================================
# ANNOTATE COMMAND TESTS
# =============================================================================


class TestAnnotateCommand:
    """Tests for `scienceio annotate`."""

    @pytest.mark.unit
    def test_prints_results_as_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.object(ScienceIO, "annotate", new_callable=AsyncMock) as mock_annotate:
            mock_annotate.return_value = [RESULT]
            exit_code = _run_cli("annotate", "ALS occurs.")

        assert exit_code == 0
        mock_annotate.assert_awaited_once_with("ALS occurs.")
        output = json.loads(capsys.readouterr().out)
        assert output == [RESULT.to_dict()]

    @pytest.mark.unit
    def test_reads_text_from_file(self, tmp_path: Path) -> None:
        input_file = tmp_path / "notes.txt"
        input_file.write_text("Doctors do not know why ALS occurs.", encoding="utf-8")

        with patch.object(ScienceIO, "annotate", new_callable=AsyncMock) as mock_annotate:
            mock_annotate.return_value = [RESULT]
            exit_code = _run_cli("annotate", "-f", str(input_file))

        assert exit_code == 0
        mock_annotate.assert_awaited_once_with("Doctors do not know why ALS occurs.")

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = _run_cli("annotate", "-f", str(tmp_path / "missing.txt"))
        assert exit_code == 1
        assert "cannot read" in capsys.readouterr().err

    @pytest.mark.unit
    def test_missing_credentials(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.delenv("SCIENCEIO_API_KEY_SECRET")
        exit_code = _run_cli("annotate", "text")
        assert exit_code == 1
        assert "SCIENCEIO_API_KEY_SECRET" in capsys.readouterr().err

    @pytest.mark.unit
    def test_service_error_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.object(ScienceIO, "annotate", new_callable=AsyncMock) as mock_annotate:
            mock_annotate.side_effect = HTTPError(500, "server error")
            exit_code = _run_cli("annotate", "text")

        assert exit_code == 1
        err = capsys.readouterr().err
        assert "500: server error" in err
        assert "s3cr3t" not in err

    @pytest.mark.unit
    def test_partial_reports_failures(self, capsys: pytest.CaptureFixture[str]) -> None:
        failure = ChunkFailure(1, "bad chunk", AnnotationError("model error"))
        with patch.object(
            ScienceIO, "annotate_partial", new_callable=AsyncMock
        ) as mock_partial:
            mock_partial.return_value = [RESULT, failure]
            exit_code = _run_cli("annotate", "--partial", "text")

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output[1] == failure.to_dict()

    @pytest.mark.unit
    def test_max_concurrent_passed_to_client(self) -> None:
        with patch("scienceio.cli.ScienceIO") as mock_client_class:
            mock_client_class.return_value.annotate = AsyncMock(return_value=[RESULT])
            exit_code = _run_cli("annotate", "--max-concurrent", "2", "text")

        assert exit_code == 0
        args, kwargs = mock_client_class.call_args
        assert args == ("key-id", "s3cr3t")
        assert kwargs["max_concurrent"] == 2

    @pytest.mark.unit
    def test_rejects_non_positive_max_concurrent(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run_cli("annotate", "--max-concurrent", "0", "text") == 1
        assert "--max-concurrent" in capsys.readouterr().err

    @pytest.mark.unit
    def test_api_url_override(self) -> None:
        with patch("scienceio.cli.ScienceIO") as mock_client_class:
            mock_client_class.return_value.annotate = AsyncMock(return_value=[RESULT])
            _run_cli("annotate", "--api-url", "http://staging/v2", "text")

        assert mock_client_class.call_args.kwargs["config"].api_url == "http://staging/v2"

    @pytest.mark.unit
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run_cli() == 0
        assert "annotate" in capsys.readouterr().out


# =============================================================================
# LOGGING TESTS
# =============================================================================


class TestSetupLogging:
    """Tests for _setup_logging."""

    @pytest.mark.unit
    def test_console_only(self) -> None:
        assert _setup_logging() is None
        handlers = logging.getLogger("scienceio").handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.WARNING

    @pytest.mark.unit
    def test_verbose_with_log_file(self, tmp_path: Path) -> None:
        log_file = _setup_logging(tmp_path / "logs", verbose=True)
        assert log_file is not None
        assert log_file.exists()
        assert log_file.name.startswith("scienceio_")
        handlers = logging.getLogger("scienceio").handlers
        assert handlers[0].level == logging.DEBUG
        for handler in handlers:
            handler.close()
