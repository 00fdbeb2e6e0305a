"""Tests for the scanning CLI and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docscan.cli import (
    _find_documents,
    _flatten,
    _print_summary,
    _write_csv,
    main,
    process_folder,
    scan_single,
)
from docscan.core.errors import ConfigurationError, ExtractionError
from docscan.ocr.types import DocumentFormat
from docscan.scanner.factory import create_scanner
from docscan.scanner.scanner import DocumentScanner
from docscan.utils.config import AppConfig

from conftest import FakeJsonExtractor, FakeOCRProvider


def _scanner(document_type: str = "receipt", **extractor_kwargs: object) -> DocumentScanner:
    return create_scanner(
        document_type,
        AppConfig(),
        ocr_provider=FakeOCRProvider(),
        json_extractor=FakeJsonExtractor(**extractor_kwargs),
    )


class TestFindDocuments:
    def test_find_supported_files(self, tmp_path: Path) -> None:
        for name in ("b.png", "a.jpg", "c.PDF", "d.heic", "notes.txt", "e.gif"):
            (tmp_path / name).touch()
        found = [p.name for p in _find_documents(tmp_path)]
        assert found == ["a.jpg", "b.png", "c.PDF", "d.heic"]

    def test_find_no_documents(self, tmp_path: Path) -> None:
        assert _find_documents(tmp_path) == []

    def test_directories_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "nested.png").mkdir()
        assert _find_documents(tmp_path) == []


class TestFlatten:
    def test_nested_and_lists(self) -> None:
        flat = _flatten(
            {"merchant": {"name": "Blue Heron"}, "items": [{"description": "Bread"}], "currency": "USD"}
        )
        assert flat == {
            "merchant.name": "Blue Heron",
            "items": '[{"description": "Bread"}]',
            "currency": "USD",
        }


class TestWriteCsv:
    def test_meta_columns_first(self, tmp_path: Path) -> None:
        output = tmp_path / "out" / "results.csv"
        _write_csv(
            [
                {"payee": "Maria", "filename": "a.png", "overall_confidence": 0.88},
                {"amount": 12.5, "filename": "b.png", "overall_confidence": 0.7},
            ],
            output,
        )

        with open(output) as f:
            reader = csv.reader(f)
            header = next(reader)
            rows = list(reader)
        assert header == ["filename", "overall_confidence", "amount", "payee"]
        assert rows[0] == ["a.png", "0.88", "", "Maria"]

    def test_empty_rows(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()


class TestPrintSummary:
    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 3, "scanned": 3, "error": None}, Path("results.csv"))
        captured = capsys.readouterr()
        assert "Total:   3" in captured.out
        assert "Scanned: 3" in captured.out
        assert "results.csv" in captured.out


class TestProcessFolder:
    def test_success(self, tmp_path: Path, receipt_json: dict) -> None:
        (tmp_path / "r1.png").touch()
        (tmp_path / "r2.jpg").touch()
        output = tmp_path / "results.csv"

        summary = process_folder(
            tmp_path, output, "receipt", scanner=_scanner(json=receipt_json)
        )

        assert summary == {"total": 2, "scanned": 2, "error": None}
        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert [r["filename"] for r in rows] == ["r1.png", "r2.jpg"]
        assert rows[0]["merchant.name"] == "Blue Heron Grocery"
        assert rows[0]["document_type"] == "receipt"
        assert rows[0]["is_valid_input"] == "True"

    def test_documents_sent_with_format(self, tmp_path: Path, receipt_json: dict) -> None:
        (tmp_path / "scan.pdf").touch()
        scanner = _scanner(json=receipt_json)

        process_folder(tmp_path, tmp_path / "out.csv", scanner=scanner)

        sent = scanner.ocr_provider.calls[0][0]
        assert sent.type == DocumentFormat.PDF
        assert sent.mime_type == "application/pdf"
        assert sent.name == "scan.pdf"

    def test_failure_writes_nothing(self, tmp_path: Path) -> None:
        (tmp_path / "r1.png").touch()
        (tmp_path / "r2.png").touch()
        output = tmp_path / "results.csv"
        scanner = _scanner(error=ExtractionError("Empty response from Mistral API"))

        summary = process_folder(tmp_path, output, scanner=scanner)

        assert summary["error"] == "Data extraction failed: Empty response from Mistral API"
        assert summary["scanned"] == 0
        assert not output.exists()
        assert len(scanner.ocr_provider.calls) == 1

    def test_empty_folder(self, tmp_path: Path) -> None:
        summary = process_folder(tmp_path, tmp_path / "out.csv", scanner=_scanner())
        assert summary["total"] == 0

    def test_verbose(
        self, tmp_path: Path, receipt_json: dict, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "r1.png").touch()
        process_folder(
            tmp_path, tmp_path / "out.csv", verbose=True, scanner=_scanner(json=receipt_json)
        )
        assert "Queued [1/1]: r1.png" in capsys.readouterr().out


class TestScanSingle:
    def test_returns_result(self, tmp_path: Path, check_json: dict) -> None:
        doc = tmp_path / "check.jpg"
        doc.touch()

        result = scan_single(doc, "check", scanner=_scanner("check", json=check_json))

        assert result["filename"] == "check.jpg"
        assert result["documentType"] == "check"
        assert result["record"]["payee"] == "Maria Alvarez"
        assert result["overallConfidence"] == 0.88

    def test_failure_raises(self, tmp_path: Path) -> None:
        doc = tmp_path / "check.jpg"
        doc.touch()
        scanner = _scanner("check", error=ExtractionError("boom"))

        with pytest.raises(RuntimeError, match="Data extraction failed: boom"):
            scan_single(doc, "check", scanner=scanner)


class TestCLIMain:
    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_nonexistent_directory(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_scan_nonexistent_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", "/nonexistent/file.png"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_type_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path), "-t", "invoice"])
        assert exc_info.value.code == 2

    @patch("docscan.cli.process_folder")
    def test_batch_with_options(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "scanned": 1, "error": None}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-o", str(output), "-t", "check", "-v"])
        mock_pf.assert_called_once_with(tmp_path, output, "check", True)

    @patch("docscan.cli.process_folder")
    def test_batch_failure_exit_code(
        self, mock_pf: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_pf.return_value = {"total": 2, "scanned": 0, "error": "OCR processing failed: x"}
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "OCR processing failed: x" in capsys.readouterr().err

    @patch("docscan.cli.scan_single")
    def test_scan_command(
        self, mock_scan: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_scan.return_value = {"filename": "check.png", "record": {}}
        doc = tmp_path / "check.png"
        doc.touch()
        main(["scan", str(doc), "-t", "check"])
        mock_scan.assert_called_once_with(doc, "check")
        assert "check.png" in capsys.readouterr().out

    @patch("docscan.cli.scan_single")
    def test_scan_to_output_file(self, mock_scan: MagicMock, tmp_path: Path) -> None:
        mock_scan.return_value = {"filename": "check.png", "record": {"payee": "Maria"}}
        doc = tmp_path / "check.png"
        doc.touch()
        output = tmp_path / "out" / "result.json"
        main(["scan", str(doc), "-o", str(output)])
        assert json.loads(output.read_text())["record"]["payee"] == "Maria"

    @patch("docscan.cli.scan_single")
    def test_scan_failure(
        self, mock_scan: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_scan.side_effect = RuntimeError("Validation failed: file: File content cannot be empty")
        doc = tmp_path / "check.png"
        doc.touch()
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(doc)])
        assert exc_info.value.code == 1
        assert "Validation failed" in capsys.readouterr().err

    @patch("docscan.cli.scan_single")
    def test_configuration_error(
        self, mock_scan: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_scan.side_effect = ConfigurationError("MISTRAL_API_KEY is not set")
        doc = tmp_path / "check.png"
        doc.touch()
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(doc)])
        assert exc_info.value.code == 2
        assert "MISTRAL_API_KEY is not set" in capsys.readouterr().err
