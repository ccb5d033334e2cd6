# engines/header_classifier.py
"""
Header-based detection of the record type held in an uploaded sheet
"""

from typing import Dict, Iterable, List
import enum
import re

_NON_ALPHA = re.compile(r'[^a-z]')

MATCH_THRESHOLD = 3


class RecordType(enum.Enum):
    EMPLOYEES = "employees"
    TRAINING_ASSIGNMENTS = "training_assignments"
    QMS_UPDATES = "qms_updates"
    UNKNOWN = "unknown"


# Checked in this order; the first vocabulary to reach the threshold wins
HEADER_VOCABULARIES = {
    RecordType.EMPLOYEES: ('email', 'firstname', 'lastname', 'department', 'position'),
    RecordType.TRAINING_ASSIGNMENTS: ('employeeemail', 'coursetitle', 'assigneddate', 'duedate'),
    RecordType.QMS_UPDATES: ('title', 'category', 'plannedstartdate', 'plannedenddate',
                             'responsiblepersonemail'),
}


def normalize_header(header) -> str:
    """'Employee Email', 'employee_email' and 'employeeEmail' all become 'employeeemail'"""
    if header is None:
        return ''
    return _NON_ALPHA.sub('', str(header).lower())


def header_matches(token: str, normalized: str) -> bool:
    """A normalized header matches a token when either contains the other"""
    return bool(normalized) and (token in normalized or normalized in token)


def _token_matches(token: str, normalized_headers: List[str]) -> bool:
    return any(header_matches(token, h) for h in normalized_headers)


def score_headers(headers: Iterable) -> Dict[RecordType, int]:
    """Count, per vocabulary, how many tokens are matched by some header"""
    normalized = [normalize_header(h) for h in headers]
    return {
        record_type: sum(1 for token in tokens if _token_matches(token, normalized))
        for record_type, tokens in HEADER_VOCABULARIES.items()
    }


def classify_headers(headers: Iterable) -> RecordType:
    """
    Pick the record type for a header row.

    Thresholds are evaluated in fixed order (employees, training
    assignments, QMS updates), so a sheet that qualifies for two types
    always resolves to the earlier one.
    """
    scores = score_headers(headers)
    for record_type in HEADER_VOCABULARIES:
        if scores[record_type] >= MATCH_THRESHOLD:
            return record_type
    return RecordType.UNKNOWN
