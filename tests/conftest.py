import io
from datetime import date

import pytest
from openpyxl import Workbook

from app import create_app
from config import TestingConfig
from models import db as _db, Employee, TrainingCourse, TrainingAssignment, QMSUpdate


EMPLOYEE_HEADERS = ["Email", "First Name", "Last Name", "Department", "Position"]
TRAINING_HEADERS = ["Employee Email", "Course Title", "Assigned Date", "Due Date", "Priority"]
QMS_HEADERS = ["Title", "Category", "Planned Start Date", "Planned End Date",
               "Responsible Person Email"]


def make_xlsx(rows, extra_sheets=None):
    """Workbook bytes whose first sheet holds rows (row 0 is the header)"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    for row in rows:
        sheet.append(list(row))
    for title, extra_rows in (extra_sheets or {}).items():
        extra = workbook.create_sheet(title)
        for row in extra_rows:
            extra.append(list(row))

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_csv(rows):
    lines = [",".join("" if v is None else str(v) for v in row) for row in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def employees(db):
    people = [
        Employee(email="ann@example.com", first_name="Ann", last_name="Lee",
                 department="Quality", position="Auditor"),
        Employee(email="bob@example.com", first_name="Bob", last_name="Ray",
                 department="Production", position="Operator"),
    ]
    db.session.add_all(people)
    db.session.commit()
    return people


@pytest.fixture
def assignments(db, employees):
    ann, bob = employees
    safety = TrainingCourse(title="Safety Basics")
    gmp = TrainingCourse(title="GMP Refresher")
    db.session.add_all([safety, gmp])
    db.session.flush()

    rows = [
        TrainingAssignment(employee_id=ann.id, course_id=safety.id, assigned_date=date(2025, 1, 1),
                           due_date=date(2025, 2, 1), status="completed", priority="high"),
        TrainingAssignment(employee_id=ann.id, course_id=gmp.id, assigned_date=date(2025, 1, 1),
                           due_date=date(2025, 3, 1), status="assigned", priority="medium"),
        TrainingAssignment(employee_id=bob.id, course_id=safety.id, assigned_date=date(2025, 1, 1),
                           due_date=date(2025, 12, 31), status="in_progress", priority="low"),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


@pytest.fixture
def qms_updates(db, employees):
    ann = employees[0]
    rows = [
        QMSUpdate(title="Document Control Update", category="process",
                  planned_start_date=date(2025, 1, 1), planned_end_date=date(2025, 3, 31),
                  responsible_person_id=ann.id, status="completed", priority="high",
                  year=2025, quarter=1),
        QMSUpdate(title="Supplier Audit", category="system",
                  planned_start_date=date(2025, 4, 1), planned_end_date=date(2025, 6, 30),
                  status="in_progress", priority="medium", year=2025, quarter=2),
        QMSUpdate(title="CAPA Review", category="process",
                  planned_start_date=date(2026, 1, 10), planned_end_date=date(2026, 2, 28),
                  status="planned", priority="low", year=2026, quarter=1),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows
