# engines/record_parser.py
"""
Record parsing for spreadsheet imports

Each record type is described by a RecordSchema: which header tokens feed
which field, which fields are required, which hold emails, and how a
validated row becomes a canonical record. parse_records() dispatches on the
RecordType picked by the header classifier.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from engines.cell_normalizer import is_blank, normalize_date, normalize_email, normalize_text
from engines.header_classifier import RecordType, header_matches, normalize_header

logger = logging.getLogger(__name__)

PRIORITIES = ('low', 'medium', 'high')
DEFAULT_PRIORITY = 'medium'
FIRST_DATA_ROW = 2  # row 1 of the sheet is the header


# ==========================================
# CANONICAL RECORDS
# ==========================================

@dataclass(frozen=True)
class EmployeeRecord:
    email: str
    first_name: str
    last_name: str
    department: str = 'General'
    position: str = 'Employee'
    hire_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrainingAssignmentRecord:
    employee_email: str
    course_title: str
    assigned_date: str
    due_date: str
    priority: str = DEFAULT_PRIORITY
    description: str = ''
    category: str = 'General'
    duration: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QMSUpdateRecord:
    title: str
    category: str
    planned_start_date: str
    planned_end_date: str
    responsible_person_email: Optional[str] = None
    priority: str = DEFAULT_PRIORITY
    year: int = 0
    quarter: Optional[int] = None
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParsedRows:
    data: Tuple[Any, ...]
    errors: Tuple[str, ...]


# ==========================================
# VALUE COERCION
# ==========================================

def parse_int(value: Any) -> Optional[int]:
    """Integer value of a cell, or None. Accepts 2, 2.0 and '2'"""
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if number != number or not number.is_integer():
        return None
    return int(number)


def normalize_priority(value: Any) -> str:
    priority = normalize_text(value).lower()
    return priority if priority in PRIORITIES else DEFAULT_PRIORITY


def normalize_quarter(value: Any) -> Optional[int]:
    quarter = parse_int(value)
    if quarter is None or not 1 <= quarter <= 4:
        return None
    return quarter


def normalize_year(value: Any) -> int:
    year = parse_int(value)
    return year if year is not None else datetime.now().year


def normalize_duration(value: Any) -> int:
    duration = parse_int(value)
    return duration if duration is not None else 1


# ==========================================
# SCHEMAS
# ==========================================

@dataclass(frozen=True)
class RecordSchema:
    """Parsing strategy for one record type"""
    record_type: RecordType
    aliases: Mapping[str, Sequence[str]]        # field -> accepted header tokens
    normalizers: Mapping[str, Callable[[Any], Any]]
    required: Sequence[str]
    email_fields: Sequence[str]
    build: Callable[[Dict[str, Any]], Any]

    def resolve_headers(self, headers: Sequence[str]) -> Dict[str, str]:
        """
        Map each field to the header that feeds it.

        Exact alias matches are claimed first. Fields still unresolved then
        take the first unclaimed header that contains, or is contained by,
        one of their aliases. A header feeds at most one field.
        """
        normalized = []
        for header in headers:
            key = normalize_header(header)
            if key and key not in (n for _, n in normalized):
                normalized.append((header, key))

        resolved = {}
        claimed = set()
        for field, tokens in self.aliases.items():
            for token in tokens:
                header = next((h for h, n in normalized if n == token and h not in claimed), None)
                if header is not None:
                    resolved[field] = header
                    claimed.add(header)
                    break

        for field, tokens in self.aliases.items():
            if field in resolved:
                continue
            header = next((h for h, n in normalized
                           if h not in claimed and any(header_matches(t, n) for t in tokens)), None)
            if header is not None:
                resolved[field] = header
                claimed.add(header)
        return resolved

    def extract(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Pull each field out of a header->value row and normalize it"""
        resolved = self.resolve_headers(list(row))

        values = {}
        for field in self.aliases:
            raw = row.get(resolved[field]) if field in resolved else None
            values[field] = self.normalizers.get(field, normalize_text)(raw)
        return values

    def validate(self, values: Mapping[str, Any]) -> Optional[str]:
        """Reason the row must be rejected, or None"""
        missing = [f for f in self.required if values.get(f) in ('', None)]
        if missing:
            return f"Missing or invalid required fields: {', '.join(missing)}"
        for field in self.email_fields:
            email = values.get(field)
            if email and '@' not in email:
                return "Invalid email format"
        return None


def _build_employee(values: Dict[str, Any]) -> EmployeeRecord:
    return EmployeeRecord(
        email=values['email'],
        first_name=values['first_name'],
        last_name=values['last_name'],
        department=values['department'] or 'General',
        position=values['position'] or 'Employee',
        hire_date=values['hire_date'] or None,
    )


def _build_training_assignment(values: Dict[str, Any]) -> TrainingAssignmentRecord:
    return TrainingAssignmentRecord(
        employee_email=values['employee_email'],
        course_title=values['course_title'],
        assigned_date=values['assigned_date'],
        due_date=values['due_date'],
        priority=values['priority'],
        description=values['description'],
        category=values['category'] or 'General',
        duration=values['duration'],
    )


def _build_qms_update(values: Dict[str, Any]) -> QMSUpdateRecord:
    return QMSUpdateRecord(
        title=values['title'],
        category=values['category'],
        planned_start_date=values['planned_start_date'],
        planned_end_date=values['planned_end_date'],
        responsible_person_email=values['responsible_person_email'] or None,
        priority=values['priority'],
        year=values['year'],
        quarter=values['quarter'],
        description=values['description'],
    )


SCHEMAS = {
    RecordType.EMPLOYEES: RecordSchema(
        record_type=RecordType.EMPLOYEES,
        aliases={
            'email': ('email', 'emailaddress'),
            'first_name': ('firstname',),
            'last_name': ('lastname',),
            'department': ('department',),
            'position': ('position',),
            'hire_date': ('hiredate',),
        },
        normalizers={'email': normalize_email, 'hire_date': normalize_date},
        required=('email', 'first_name', 'last_name'),
        email_fields=('email',),
        build=_build_employee,
    ),
    RecordType.TRAINING_ASSIGNMENTS: RecordSchema(
        record_type=RecordType.TRAINING_ASSIGNMENTS,
        aliases={
            'employee_email': ('employeeemail', 'email'),
            'course_title': ('coursetitle', 'course'),
            'assigned_date': ('assigneddate',),
            'due_date': ('duedate',),
            'priority': ('priority',),
            'description': ('description',),
            'category': ('category',),
            'duration': ('duration', 'durationhours'),
        },
        normalizers={
            'employee_email': normalize_email,
            'assigned_date': normalize_date,
            'due_date': normalize_date,
            'priority': normalize_priority,
            'duration': normalize_duration,
        },
        required=('employee_email', 'course_title', 'assigned_date', 'due_date'),
        email_fields=('employee_email',),
        build=_build_training_assignment,
    ),
    RecordType.QMS_UPDATES: RecordSchema(
        record_type=RecordType.QMS_UPDATES,
        aliases={
            'title': ('title',),
            'category': ('category',),
            'planned_start_date': ('plannedstartdate', 'startdate'),
            'planned_end_date': ('plannedenddate', 'enddate'),
            'responsible_person_email': ('responsiblepersonemail', 'responsibleemail'),
            'priority': ('priority',),
            'year': ('year',),
            'quarter': ('quarter',),
            'description': ('description',),
        },
        normalizers={
            'planned_start_date': normalize_date,
            'planned_end_date': normalize_date,
            'responsible_person_email': normalize_email,
            'priority': normalize_priority,
            'year': normalize_year,
            'quarter': normalize_quarter,
        },
        required=('title', 'category', 'planned_start_date', 'planned_end_date'),
        # Optional, but validated whenever a value is supplied
        email_fields=('responsible_person_email',),
        build=_build_qms_update,
    ),
}


def parse_records(record_type: RecordType, rows: Sequence[Mapping[str, Any]],
                  start_row: int = FIRST_DATA_ROW,
                  row_numbers: Optional[Sequence[int]] = None) -> ParsedRows:
    """
    Validate and normalize keyed rows of one record type.

    Rejected rows contribute exactly one "Row {n}: reason" error and are
    left out of the data; later rows are still processed. Row numbers count
    from start_row unless the caller passes the sheet's own row_numbers
    (needed once blank rows have been dropped).
    """
    if record_type not in SCHEMAS:
        raise ValueError(f"No record schema for type {record_type}")
    if row_numbers is not None and len(row_numbers) != len(rows):
        raise ValueError("row_numbers must line up with rows")

    schema = SCHEMAS[record_type]
    data = []
    errors = []

    for offset, row in enumerate(rows):
        row_num = row_numbers[offset] if row_numbers is not None else start_row + offset
        values = schema.extract(row)
        reason = schema.validate(values)
        if reason:
            errors.append(f"Row {row_num}: {reason}")
            continue
        data.append(schema.build(values))

    logger.debug(f"Parsed {len(data)} {record_type.value} records, {len(errors)} rejected")
    return ParsedRows(data=tuple(data), errors=tuple(errors))
