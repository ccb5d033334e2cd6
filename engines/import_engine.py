# engines/import_engine.py
"""
Spreadsheet import orchestration

Reads uploaded files, decodes the first sheet of each, classifies the header
row, parses the data rows and aggregates one report across all files. When
an ImportProcessor is supplied the validated records are handed to it for
reconciliation; otherwise they stay on the report.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import asyncio
import csv
import io
import logging
import os

import pandas as pd

from engines.cell_normalizer import is_blank, normalize_text
from engines.header_classifier import RecordType, classify_headers
from engines.record_parser import parse_records

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {'.csv'}
LEGACY_EXCEL_EXTENSIONS = {'.xls'}

# Persistence order matters: assignments and QMS plans reference employees
PERSIST_ORDER = (
    RecordType.EMPLOYEES,
    RecordType.TRAINING_ASSIGNMENTS,
    RecordType.QMS_UPDATES,
)


class WorkbookReadError(Exception):
    """Raised when an uploaded file cannot be decoded as a spreadsheet"""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not read {filename}: {reason}")


# ==========================================
# RESULT TYPES
# ==========================================

@dataclass(frozen=True)
class ImportSummary:
    total_rows: int
    valid_rows: int
    error_rows: int

    def to_dict(self) -> Dict[str, int]:
        return {
            'total_rows': self.total_rows,
            'valid_rows': self.valid_rows,
            'error_rows': self.error_rows,
        }


@dataclass(frozen=True)
class ParseResult:
    type: RecordType
    data: Tuple[Any, ...]
    errors: Tuple[str, ...]
    summary: ImportSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'data': [record.to_dict() for record in self.data],
            'errors': list(self.errors),
            'summary': self.summary.to_dict(),
        }


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one uploaded file"""
    filename: str
    result: Optional[ParseResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.result is not None and self.result.summary.valid_rows > 0

    def to_dict(self) -> Dict[str, Any]:
        payload = {'filename': self.filename, 'success': self.success, 'error': self.error}
        if self.result is not None:
            payload.update(self.result.to_dict())
        return payload


@dataclass
class ImportReport:
    outcomes: List[FileOutcome] = field(default_factory=list)
    persisted: Dict[RecordType, Dict[str, Any]] = field(default_factory=dict)

    @property
    def records(self) -> Dict[RecordType, List[Any]]:
        """Valid records of every file, grouped by type in upload order"""
        grouped = {record_type: [] for record_type in PERSIST_ORDER}
        for outcome in self.outcomes:
            if outcome.result is not None and outcome.result.type in grouped:
                grouped[outcome.result.type].extend(outcome.result.data)
        return grouped

    @property
    def totals(self) -> Dict[str, int]:
        return {record_type.value: len(records) for record_type, records in self.records.items()}

    def to_dict(self, include_records: bool = False) -> Dict[str, Any]:
        payload = {
            'success': any(o.success for o in self.outcomes),
            'files': [o.to_dict() for o in self.outcomes],
            'totals': self.totals,
            'persisted': {
                record_type.value: {
                    'inserted': len(result.get('inserted', [])),
                    'error': result.get('error'),
                }
                for record_type, result in self.persisted.items()
            },
        }
        if include_records:
            payload['records'] = {
                record_type.value: [r.to_dict() for r in records]
                for record_type, records in self.records.items()
            }
        return payload


# ==========================================
# FILE READING
# ==========================================

def upload_name(upload) -> str:
    """Base filename of an upload, whatever form it arrives in"""
    if isinstance(upload, tuple):
        return upload[0]
    if isinstance(upload, (str, Path)):
        return Path(upload).name
    filename = getattr(upload, 'filename', None) or getattr(upload, 'name', None) or 'upload'
    return os.path.basename(str(filename))


def read_upload(upload) -> Tuple[str, bytes]:
    """
    Return (filename, content) for an upload.

    Accepts a (filename, bytes) pair, a filesystem path, or a file-like
    object such as werkzeug's FileStorage.
    """
    if isinstance(upload, tuple):
        return upload[0], bytes(upload[1])
    if isinstance(upload, (str, Path)):
        return upload_name(upload), Path(upload).read_bytes()

    if hasattr(upload, 'seek'):
        upload.seek(0)
    return upload_name(upload), upload.read()


def read_first_sheet(content: bytes, filename: str) -> List[List[Any]]:
    """
    Decode the first sheet of a workbook (or a CSV file) as raw rows.

    No header inference happens here; row 0 is whatever the first sheet
    row holds. Blank cells come back as None.
    """
    extension = os.path.splitext(filename.lower())[1]

    try:
        if extension in CSV_EXTENSIONS:
            # Rows may be ragged; size the frame to the widest one
            text = content.decode('utf-8-sig')
            width = max((len(r) for r in csv.reader(io.StringIO(text))), default=0)
            if width == 0:
                return []
            df = pd.read_csv(io.StringIO(text), header=None, names=list(range(width)), dtype=str,
                             keep_default_na=False, skip_blank_lines=False, engine='python')
        else:
            engine = 'xlrd' if extension in LEGACY_EXCEL_EXTENSIONS else 'openpyxl'
            df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object, engine=engine)
    except pd.errors.EmptyDataError:
        return []
    except Exception as e:
        raise WorkbookReadError(filename, str(e)) from e

    return [
        [None if is_blank(value) else value for value in row]
        for row in df.itertuples(index=False, name=None)
    ]


# ==========================================
# PARSING
# ==========================================

def _key_row(headers: Sequence[str], row: Sequence[Any]) -> Dict[str, Any]:
    """Key a row by header. Every named header is present, blank cells as None"""
    keyed = {}
    for index, header in enumerate(headers):
        if not header or header in keyed:
            continue
        keyed[header] = row[index] if index < len(row) else None
    return keyed


def build_parse_result(rows: Sequence[Sequence[Any]]) -> ParseResult:
    """Classify and parse raw sheet rows (row 0 is the header)"""
    if not rows:
        return ParseResult(
            type=RecordType.UNKNOWN,
            data=(),
            errors=("No data found in the file",),
            summary=ImportSummary(0, 0, 0),
        )

    headers = [normalize_text(h) for h in rows[0]]

    # Sheet row numbers are 1-based and the header occupies row 1
    data_rows = [
        (row_num, row)
        for row_num, row in enumerate(rows[1:], start=2)
        if not all(value is None for value in row)
    ]
    total_rows = len(data_rows)

    record_type = classify_headers(headers)
    if record_type is RecordType.UNKNOWN:
        shown = ', '.join(h for h in headers if h) or '(none)'
        return ParseResult(
            type=RecordType.UNKNOWN,
            data=(),
            errors=(f"Could not determine data type from column headers: {shown}",),
            summary=ImportSummary(total_rows, 0, total_rows),
        )

    if not data_rows:
        return ParseResult(
            type=record_type,
            data=(),
            errors=("No data rows found in file",),
            summary=ImportSummary(0, 0, 0),
        )

    parsed = parse_records(
        record_type,
        [_key_row(headers, row) for _, row in data_rows],
        row_numbers=[row_num for row_num, _ in data_rows],
    )
    valid_rows = len(parsed.data)
    return ParseResult(
        type=record_type,
        data=parsed.data,
        errors=parsed.errors,
        summary=ImportSummary(total_rows, valid_rows, total_rows - valid_rows),
    )


class SpreadsheetImportEngine:
    """
    Drives the import pipeline across one or more uploaded files.
    Integrates with ImportProcessor for persistence when one is supplied.
    """

    def __init__(self, processor=None):
        self.processor = processor

    def parse_content(self, content: bytes, filename: str) -> ParseResult:
        rows = read_first_sheet(content, filename)
        result = build_parse_result(rows)
        logger.info(
            f"Parsed {filename} as {result.type.value}: "
            f"{result.summary.valid_rows}/{result.summary.total_rows} valid rows"
        )
        return result

    async def parse_file(self, upload) -> ParseResult:
        """Read one upload and parse it. Raises WorkbookReadError on undecodable files"""
        filename, content = await asyncio.to_thread(read_upload, upload)
        return self.parse_content(content, filename)

    async def _parse_outcome(self, upload) -> FileOutcome:
        filename = upload_name(upload)
        try:
            result = await self.parse_file(upload)
        except OSError as e:
            logger.error(f"Failed to read upload {filename}: {e}")
            return FileOutcome(filename=filename, error=f"Failed to read {filename}: {e}")
        except WorkbookReadError as e:
            logger.error(f"Failed to parse {filename}: {e.reason}")
            return FileOutcome(filename=filename, error=str(e))
        return FileOutcome(filename=filename, result=result)

    async def parse_files(self, uploads: Sequence) -> ImportReport:
        """
        Parse several uploads. Reads run concurrently; results keep the
        order the files were supplied in and one bad file never hides the
        outcome of the others.
        """
        outcomes = await asyncio.gather(*(self._parse_outcome(u) for u in uploads))
        report = ImportReport(outcomes=list(outcomes))
        logger.info(f"Parsed {len(outcomes)} files: {report.totals}")
        return report

    def persist(self, report: ImportReport) -> ImportReport:
        """Hand validated records to the processor, employees first"""
        if self.processor is None:
            return report

        records = report.records
        upserts = {
            RecordType.EMPLOYEES: self.processor.upsert_employees,
            RecordType.TRAINING_ASSIGNMENTS: self.processor.upsert_training_assignments,
            RecordType.QMS_UPDATES: self.processor.upsert_qms_updates,
        }
        for record_type in PERSIST_ORDER:
            if records[record_type]:
                report.persisted[record_type] = upserts[record_type](records[record_type])
        return report

    async def import_files(self, uploads: Sequence) -> ImportReport:
        report = await self.parse_files(uploads)
        return self.persist(report)
