# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError
from rjob_lib.uploads.cli import forget, upload, uploads
from rjob_lib.uploads.registry import UploadRegistry


@pytest.fixture
def registry(tmp_path):
    registry = UploadRegistry(tmp_path / "uploads")
    with patch("rjob_lib.uploads.cli.UploadRegistry", return_value=registry):
        yield registry


def test_upload_registers_files(registry, tmp_path):
    file = tmp_path / "lib.so"
    file.write_text("x")

    result = CliRunner().invoke(upload, [str(file)])

    assert result.exit_code == 0
    assert registry.names() == ["lib.so"]


def test_upload_error_exits_with_default_code(tmp_path):
    file = tmp_path / "lib.so"
    file.write_text("x")
    mock_registry = MagicMock()
    mock_registry.add.side_effect = RJobError("boom")

    with patch("rjob_lib.uploads.cli.UploadRegistry", return_value=mock_registry):
        result = CliRunner().invoke(upload, [str(file)])

    assert result.exit_code == CFG.exit_codes.default


def test_upload_unexpected_error_exits_with_unexpected_code(tmp_path):
    file = tmp_path / "lib.so"
    file.write_text("x")

    with patch("rjob_lib.uploads.cli.UploadRegistry", side_effect=RuntimeError("bug")):
        result = CliRunner().invoke(upload, [str(file)])

    assert result.exit_code == CFG.exit_codes.unexpected_error


def test_uploads_lists_files(registry, tmp_path):
    file = tmp_path / "table.dat"
    file.write_text("12345")
    registry.add(file)

    result = CliRunner().invoke(uploads, [])

    assert result.exit_code == 0
    assert "table.dat" in result.output
    assert "5 B" in result.output


def test_uploads_empty(registry):
    result = CliRunner().invoke(uploads, [])
    assert result.exit_code == 0


def test_forget_with_yes_skips_prompt(registry, tmp_path):
    file = tmp_path / "lib.so"
    file.write_text("x")
    registry.add(file)

    with patch("rjob_lib.uploads.cli.yes_or_no_prompt") as mock_prompt:
        result = CliRunner().invoke(forget, ["lib.so", "--yes"])

    assert result.exit_code == 0
    mock_prompt.assert_not_called()
    assert registry.names() == []


def test_forget_declined_keeps_files(registry, tmp_path):
    file = tmp_path / "lib.so"
    file.write_text("x")
    registry.add(file)

    with patch("rjob_lib.uploads.cli.yes_or_no_prompt", return_value=False):
        result = CliRunner().invoke(forget, ["lib.so"])

    assert result.exit_code == 0
    assert registry.names() == ["lib.so"]


def test_forget_unknown_name_fails_before_prompt(registry):
    with patch("rjob_lib.uploads.cli.yes_or_no_prompt") as mock_prompt:
        result = CliRunner().invoke(forget, ["ghost"])

    assert result.exit_code == CFG.exit_codes.default
    mock_prompt.assert_not_called()
