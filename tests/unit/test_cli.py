"""Unit tests for the slipcheck command line interface."""

import csv
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from slipcheck.config import OCREngineKind
from slipcheck.integrations.ocr import ReceiptRecognizer
from slipcheck.main import app
from tests.utils import ScriptedEngine, clean_cli_output, make_png

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture(autouse=True)
def default_event(monkeypatch):
    monkeypatch.delenv("SLIPCHECK_EVENT_DATE", raising=False)
    monkeypatch.delenv("SLIPCHECK_OCR_ENGINE", raising=False)


@pytest.fixture
def mock_from_config(valid_recognizer):
    with patch.object(
        ReceiptRecognizer, "from_config", return_value=valid_recognizer
    ) as mock:
        yield mock


@pytest.fixture
def receipt_file(tmp_path):
    path = tmp_path / "struk.png"
    path.write_bytes(make_png())
    return path


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    clean_stdout = clean_cli_output(result.stdout)
    for command in ("check", "batch", "missions"):
        assert command in clean_stdout


def test_missions_lists_catalogue():
    result = runner.invoke(app, ["missions"])

    assert result.exit_code == 0
    assert "Christmas Super Midnight Sale (2025-12-20)" in result.stdout
    assert "1. Misi F&B: min Rp 150.000, from 19.30 WIB" in result.stdout
    assert "2. Misi Fashion: min Rp 250.000, from 20.00 WIB" in result.stdout


class TestCheckCommand:
    """Single receipt checks."""

    def test_valid_receipt(self, mock_from_config, receipt_file):
        result = runner.invoke(app, ["check", str(receipt_file)])

        assert result.exit_code == 0
        assert "Mission: Misi F&B" in result.stdout
        assert "Amount: Rp 200.000" in result.stdout
        assert "Confidence: 100%" in result.stdout
        assert "Receipt is valid for this mission" in result.stdout

    def test_json_output(self, mock_from_config, receipt_file):
        result = runner.invoke(app, ["check", str(receipt_file), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["file"] == "struk.png"
        assert payload["mission"] == 1
        assert payload["extraction"]["amount"] == 200_000
        assert payload["extraction"]["confidence"] == 100
        assert payload["verdict"] == {"errors": [], "is_valid": True}

    def test_receipt_failing_mission(self, mock_from_config, receipt_file):
        result = runner.invoke(app, ["check", str(receipt_file), "-m", "2"])

        assert result.exit_code == 0
        assert "Receipt does not meet the mission requirements:" in result.stdout
        assert "- Waktu transaksi minimal 20.00 WIB" in result.stdout
        assert "- Jumlah transaksi minimal Rp 250 ribu" in result.stdout

    def test_unsupported_file(self, mock_from_config, tmp_path):
        document = tmp_path / "struk.pdf"
        document.write_bytes(b"%PDF")

        result = runner.invoke(app, ["check", str(document)])

        assert result.exit_code == 1
        assert "Format file harus JPG, PNG, atau WebP" in result.output
        mock_from_config.assert_not_called()

    def test_unknown_mission(self, mock_from_config, receipt_file):
        result = runner.invoke(app, ["check", str(receipt_file), "--mission", "7"])

        assert result.exit_code == 1
        assert "unknown mission 7" in result.output

    def test_engine_initialization_failure(self, receipt_file):
        with patch.object(
            ReceiptRecognizer, "from_config", side_effect=RuntimeError("no creds")
        ):
            result = runner.invoke(app, ["check", str(receipt_file)])

        assert result.exit_code == 1
        assert "Failed to initialize OCR engine: no creds" in result.output

    def test_engine_override(self, mock_from_config, receipt_file):
        result = runner.invoke(
            app, ["check", str(receipt_file), "--engine", "tesseract"]
        )

        assert result.exit_code == 0
        config = mock_from_config.call_args.args[0]
        assert config.engine is OCREngineKind.TESSERACT


class TestBatchCommand:
    """Folder checks with optional CSV export."""

    def test_checks_every_receipt_and_exports(self, mock_from_config, tmp_path):
        folder = tmp_path / "receipts"
        folder.mkdir()
        (folder / "a.png").write_bytes(make_png())
        (folder / "b.jpg").write_bytes(make_png())
        (folder / "notes.txt").write_text("not a receipt")
        output = tmp_path / "review.csv"

        result = runner.invoke(
            app, ["batch", "--folder", str(folder), "--output", str(output)]
        )

        assert result.exit_code == 0
        assert "Checking 2 receipts for Misi F&B" in result.stdout
        assert "2/2 receipts valid" in result.stdout
        assert f"Results written to {output}" in result.stdout

        with open(output, encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))
        assert [row[0] for row in rows[1:]] == ["a.png", "b.jpg"]

    def test_invalid_receipts_are_counted(self, tmp_path):
        folder = tmp_path / "receipts"
        folder.mkdir()
        (folder / "a.png").write_bytes(make_png())
        recognizer = ReceiptRecognizer(ScriptedEngine("Terima kasih"))

        with patch.object(ReceiptRecognizer, "from_config", return_value=recognizer):
            result = runner.invoke(app, ["batch", "-f", str(folder)])

        assert result.exit_code == 0
        assert "0/1 receipts valid" in result.stdout

    def test_folder_without_receipts(self, mock_from_config, tmp_path):
        result = runner.invoke(app, ["batch", "--folder", str(tmp_path)])

        assert result.exit_code == 0
        assert "No supported receipt files found in folder." in result.stdout
        mock_from_config.assert_not_called()

    def test_missing_folder(self, tmp_path):
        result = runner.invoke(app, ["batch", "--folder", str(tmp_path / "nope")])

        assert result.exit_code == 1
        assert "folder not found" in result.output

    def test_folder_is_required(self):
        result = runner.invoke(app, ["batch"])

        assert result.exit_code != 0
        assert "folder" in clean_cli_output(result.output)
