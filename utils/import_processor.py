# utils/import_processor.py
"""
Persist validated import records

Reconciles canonical records against what is already stored: employees are
upserted on email, training assignments and QMS plans are linked to existing
employees by email and skipped when that employee does not exist.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

MAX_STORED_ERRORS = 200


def _to_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


class ImportProcessor:
    """Upserts validated import records into the database"""

    def __init__(self, db, models):
        self.db = db
        self.Employee = models['Employee']
        self.TrainingCourse = models['TrainingCourse']
        self.TrainingAssignment = models['TrainingAssignment']
        self.QMSUpdate = models['QMSUpdate']
        self.FileUpload = models.get('FileUpload')

    def _active_employee(self, email: str):
        return self.Employee.query.filter_by(email=email, is_active=True).first()

    def _failed(self, kind: str, error: Exception) -> Dict[str, Any]:
        self.db.session.rollback()
        logger.error(f"Error upserting {kind}: {error}", exc_info=True)
        return {'inserted': [], 'error': str(error)}

    # ==========================================
    # EMPLOYEES
    # ==========================================

    def upsert_employees(self, records: Sequence) -> Dict[str, Any]:
        """Insert or update employees keyed by email"""
        try:
            inserted = []
            created_count = 0
            updated_count = 0

            for record in records:
                employee = self.Employee.query.filter_by(email=record.email).first()
                if employee is None:
                    employee = self.Employee(email=record.email)
                    self.db.session.add(employee)
                    created_count += 1
                else:
                    updated_count += 1

                employee.first_name = record.first_name
                employee.last_name = record.last_name
                employee.department = record.department
                employee.position = record.position
                employee.hire_date = _to_date(record.hire_date)
                employee.is_active = True
                # Later rows for the same email must see this one
                self.db.session.flush()
                inserted.append(employee.to_dict())

            self.db.session.commit()
            logger.info(f"Employees upserted: {created_count} created, {updated_count} updated")
            return {'inserted': inserted, 'error': None}

        except (SQLAlchemyError, ValueError) as e:
            return self._failed('employees', e)

    # ==========================================
    # TRAINING ASSIGNMENTS
    # ==========================================

    def _get_or_create_course(self, record):
        course = self.TrainingCourse.query.filter_by(title=record.course_title).first()
        if course is None:
            course = self.TrainingCourse(
                title=record.course_title,
                description=record.description or '',
                duration_hours=record.duration or 1,
                category=record.category or 'General',
            )
            self.db.session.add(course)
            self.db.session.flush()
        return course

    def upsert_training_assignments(self, records: Sequence) -> Dict[str, Any]:
        """
        Insert or update assignments keyed by (employee, course).
        Records whose employee email is unknown are skipped.
        """
        try:
            inserted = []
            skipped = 0

            for record in records:
                employee = self._active_employee(record.employee_email)
                if employee is None:
                    logger.warning(f"Employee not found: {record.employee_email}")
                    skipped += 1
                    continue

                course = self._get_or_create_course(record)
                assignment = self.TrainingAssignment.query.filter_by(
                    employee_id=employee.id,
                    course_id=course.id
                ).first()
                if assignment is None:
                    assignment = self.TrainingAssignment(
                        employee_id=employee.id,
                        course_id=course.id,
                        status='assigned'
                    )
                    self.db.session.add(assignment)

                assignment.assigned_date = _to_date(record.assigned_date)
                assignment.due_date = _to_date(record.due_date)
                assignment.priority = record.priority
                self.db.session.flush()
                inserted.append(assignment.to_dict())

            self.db.session.commit()
            if skipped:
                logger.info(f"Skipped {skipped} training assignments with unknown employees")
            return {'inserted': inserted, 'error': None}

        except (SQLAlchemyError, ValueError) as e:
            return self._failed('training assignments', e)

    # ==========================================
    # QMS UPDATES
    # ==========================================

    def upsert_qms_updates(self, records: Sequence) -> Dict[str, Any]:
        """
        Insert QMS plans. A plan naming a responsible person who is not a
        known employee is skipped; a plan naming nobody is stored unassigned.
        """
        try:
            inserted = []

            for record in records:
                responsible_person_id = None
                if record.responsible_person_email:
                    employee = self._active_employee(record.responsible_person_email)
                    if employee is None:
                        logger.warning(f"Responsible person not found: {record.responsible_person_email}")
                        continue
                    responsible_person_id = employee.id

                update = self.QMSUpdate(
                    title=record.title,
                    description=record.description or '',
                    category=record.category,
                    planned_start_date=_to_date(record.planned_start_date),
                    planned_end_date=_to_date(record.planned_end_date),
                    responsible_person_id=responsible_person_id,
                    status='planned',
                    priority=record.priority,
                    year=record.year,
                    quarter=record.quarter,
                )
                self.db.session.add(update)
                self.db.session.flush()
                inserted.append(update.to_dict())

            self.db.session.commit()
            return {'inserted': inserted, 'error': None}

        except (SQLAlchemyError, ValueError) as e:
            return self._failed('QMS updates', e)

    # ==========================================
    # UPLOAD HISTORY
    # ==========================================

    def record_uploads(self, outcomes: Sequence) -> List[Any]:
        """Write one FileUpload row per parsed file"""
        if self.FileUpload is None:
            return []

        uploads = []
        try:
            for outcome in outcomes:
                result = outcome.result
                if outcome.error:
                    status = 'failed'
                elif result.summary.valid_rows == 0:
                    status = 'failed'
                elif result.summary.error_rows:
                    status = 'completed_with_errors'
                else:
                    status = 'completed'

                errors = [outcome.error] if outcome.error else list(result.errors)
                upload = self.FileUpload(
                    filename=outcome.filename,
                    record_type=result.type.value if result else None,
                    status=status,
                    total_rows=result.summary.total_rows if result else 0,
                    valid_rows=result.summary.valid_rows if result else 0,
                    error_rows=result.summary.error_rows if result else 0,
                    error_details=errors[:MAX_STORED_ERRORS],
                )
                self.db.session.add(upload)
                uploads.append(upload)

            self.db.session.commit()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            logger.error(f"Failed to record upload history: {e}")
            return []

        return uploads
