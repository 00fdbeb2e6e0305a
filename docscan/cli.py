"""Command-line interface for scanning documents and exporting CSV.

Provides a ``scan`` subcommand for a single document and a ``batch``
subcommand that scans a folder in order and writes the results to CSV.
Batches stop at the first failing document.
"""

import argparse
import asyncio
import csv
import json
import sys
from pathlib import Path
from typing import Any

from docscan.core.errors import ConfigurationError
from docscan.core.result import Err
from docscan.ocr.types import Document, DocumentFormat
from docscan.scanner.factory import DocumentType, create_scanner
from docscan.scanner.scanner import DocumentScanner, ProcessingResult
from docscan.utils.config import load_config
from docscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".pdf": "application/pdf",
}
_META_COLUMNS = [
    "filename",
    "document_type",
    "is_valid_input",
    "ocr_confidence",
    "extraction_confidence",
    "overall_confidence",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    return sorted(
        path
        for path in input_dir.iterdir()
        if path.is_file() and path.suffix.lower() in _MIME_TYPES
    )


def _to_document(file_path: Path) -> Document:
    mime_type = _MIME_TYPES.get(file_path.suffix.lower())
    return Document(
        content=file_path,
        type=DocumentFormat.PDF if mime_type == "application/pdf" else DocumentFormat.IMAGE,
        name=file_path.name,
        mime_type=mime_type,
    )


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, object]:
    """Flatten nested record fields into dotted CSV columns.

    Lists are written as JSON text.
    """
    flat: dict[str, object] = {}
    for key, value in data.items():
        column = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{column}."))
        elif isinstance(value, list):
            flat[column] = json.dumps(value)
        else:
            flat[column] = value
    return flat


def _to_row(
    result: ProcessingResult[Any], filename: str, document_type: str
) -> dict[str, object]:
    row: dict[str, object] = {
        "filename": filename,
        "document_type": document_type,
        "is_valid_input": result.record.is_valid_input,
        "ocr_confidence": result.ocr_confidence,
        "extraction_confidence": result.extraction_confidence,
        "overall_confidence": result.overall_confidence,
    }
    record = result.record.model_dump(mode="json", by_alias=True, exclude_none=True)
    record.pop("isValidInput", None)
    row.update(_flatten(record))
    return row


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write scan results to a CSV file.

    Args:
        rows: One flattened row per document.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    all_keys: set[str] = set()
    for row in rows:
        all_keys.update(row.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str = "receipt",
    verbose: bool = False,
    scanner: DocumentScanner[Any] | None = None,
) -> dict[str, object]:
    """Scan every document in a folder and export the results to CSV.

    Nothing is written when any document fails.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: Document family to scan the files as.
        verbose: Whether to print the file list before scanning.
        scanner: Scanner to use; built from the configuration when omitted.

    Returns:
        Summary dict with the document count, scanned count and error.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "scanned": 0, "error": None}

    logger.info("Found %d documents to scan", len(files))
    if verbose:
        for i, file_path in enumerate(files, 1):
            print(f"Queued [{i}/{len(files)}]: {file_path.name}")

    scanner = scanner or create_scanner(document_type, load_config())
    outcome = asyncio.run(scanner.process_documents([_to_document(f) for f in files]))
    if isinstance(outcome, Err):
        logger.error("Batch failed: %s", outcome.error)
        return {"total": len(files), "scanned": 0, "error": outcome.error}

    rows = [
        _to_row(result, file_path.name, document_type)
        for result, file_path in zip(outcome.value, files)
    ]
    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary: dict[str, object] = {"total": len(files), "scanned": len(rows), "error": None}
    _print_summary(summary, output_csv)
    return summary


def _print_summary(summary: dict[str, object], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Scan Complete")
    print(f"{'=' * 50}")
    print(f"Total:   {summary['total']}")
    print(f"Scanned: {summary['scanned']}")
    print(f"Output:  {output_csv}")


def scan_single(
    file_path: Path,
    document_type: str = "receipt",
    scanner: DocumentScanner[Any] | None = None,
) -> dict[str, object]:
    """Scan a single document and return the serialized result.

    Args:
        file_path: Path to the document file.
        document_type: Document family to scan the file as.
        scanner: Scanner to use; built from the configuration when omitted.

    Returns:
        Dictionary with filename, document type and the processing result.

    Raises:
        RuntimeError: If the scan fails.
    """
    scanner = scanner or create_scanner(document_type, load_config())
    outcome = asyncio.run(scanner.process_document(_to_document(file_path)))
    if isinstance(outcome, Err):
        raise RuntimeError(outcome.error)
    return {
        "filename": file_path.name,
        "documentType": document_type,
        **outcome.value.to_dict(),
    }


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Check and receipt scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    doc_types = [t.value for t in DocumentType]

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Scan a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with documents")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=doc_types,
        default="receipt",
        dest="doc_type",
        help="Document type (default: receipt)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    single_parser = subparsers.add_parser("scan", help="Scan a single document")
    single_parser.add_argument("file", type=Path, help="Document file to scan")
    single_parser.add_argument(
        "-t",
        "--type",
        choices=doc_types,
        default="receipt",
        dest="doc_type",
        help="Document type (default: receipt)",
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    try:
        if args.command == "batch":
            if not args.input_dir.is_dir():
                print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
                sys.exit(1)
            summary = process_folder(args.input_dir, args.output, args.doc_type, args.verbose)
            if summary["error"]:
                print(f"Error: {summary['error']}", file=sys.stderr)
                sys.exit(1)
        elif args.command == "scan":
            if not args.file.exists():
                print(f"Error: {args.file} does not exist", file=sys.stderr)
                sys.exit(1)
            try:
                result = scan_single(args.file, args.doc_type)
            except RuntimeError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                sys.exit(1)
            output_str = json.dumps(result, indent=2)
            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                args.output.write_text(output_str)
                print(f"Output written to {args.output}")
            else:
                print(output_str)
        else:
            parser.print_help()
            sys.exit(0)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
