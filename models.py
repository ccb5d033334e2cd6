# models.py - Database Models
"""
Database models for the Training & QMS Dashboard
Employees, training courses/assignments, QMS update plans and import history
"""

from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()

# Status/priority vocabularies
PRIORITIES = ('low', 'medium', 'high')
ASSIGNMENT_STATUSES = ('assigned', 'in_progress', 'completed', 'overdue')
QMS_STATUSES = ('planned', 'in_progress', 'completed')

# ==========================================
# EMPLOYEE MODEL
# ==========================================

class Employee(db.Model):
    """Employee identified by email"""
    __tablename__ = 'employees'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)

    # Personal Info
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)

    # Work Info
    department = db.Column(db.String(100), default='General')
    position = db.Column(db.String(100), default='Employee')
    hire_date = db.Column(db.Date)
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'department': self.department,
            'position': self.position,
            'hire_date': self.hire_date.isoformat() if self.hire_date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Employee {self.email}>'

# ==========================================
# TRAINING MODELS
# ==========================================

class TrainingCourse(db.Model):
    """Training course, created on demand by assignment imports"""
    __tablename__ = 'training_courses'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text, default='')
    duration_hours = db.Column(db.Integer, default=1)
    category = db.Column(db.String(100), default='General')
    is_mandatory = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'duration_hours': self.duration_hours,
            'category': self.category,
            'is_mandatory': self.is_mandatory,
        }

    def __repr__(self):
        return f'<TrainingCourse {self.title}>'


class TrainingAssignment(db.Model):
    """A course assigned to an employee"""
    __tablename__ = 'training_assignments'

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('employees.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('training_courses.id'), nullable=False)

    assigned_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), default='assigned')
    priority = db.Column(db.String(20), default='medium')
    completed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    employee = db.relationship('Employee', backref=db.backref('training_assignments', lazy='dynamic'))
    course = db.relationship('TrainingCourse', backref='assignments')

    __table_args__ = (
        db.UniqueConstraint('employee_id', 'course_id', name='_employee_course_uc'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'employee_email': self.employee.email if self.employee else None,
            'employee_name': self.employee.name if self.employee else None,
            'course_id': self.course_id,
            'course_title': self.course.title if self.course else None,
            'duration_hours': self.course.duration_hours if self.course else None,
            'assigned_date': self.assigned_date.isoformat() if self.assigned_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'status': self.status,
            'priority': self.priority,
        }

# ==========================================
# QMS MODEL
# ==========================================

class QMSUpdate(db.Model):
    """Quality management system improvement plan"""
    __tablename__ = 'qms_updates'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    category = db.Column(db.String(100), nullable=False)

    planned_start_date = db.Column(db.Date, nullable=False)
    planned_end_date = db.Column(db.Date, nullable=False)
    responsible_person_id = db.Column(db.Integer, db.ForeignKey('employees.id'))

    status = db.Column(db.String(20), default='planned')
    priority = db.Column(db.String(20), default='medium')
    year = db.Column(db.Integer, nullable=False)
    quarter = db.Column(db.Integer)
    progress = db.Column(db.Integer, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    responsible_person = db.relationship('Employee', backref='qms_updates')

    def to_dict(self):
        person = self.responsible_person
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'planned_start_date': self.planned_start_date.isoformat() if self.planned_start_date else None,
            'planned_end_date': self.planned_end_date.isoformat() if self.planned_end_date else None,
            'status': self.status,
            'priority': self.priority,
            'year': self.year,
            'quarter': self.quarter,
            'progress': self.progress,
            'responsible_person_email': person.email if person else None,
            'first_name': person.first_name if person else None,
            'last_name': person.last_name if person else None,
        }

# ==========================================
# IMPORT HISTORY
# ==========================================

class FileUpload(db.Model):
    """Track spreadsheet imports, one row per uploaded file"""
    __tablename__ = 'file_uploads'

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(255), nullable=False)
    record_type = db.Column(db.String(50))  # employees, training_assignments, qms_updates, unknown
    status = db.Column(db.String(30), default='pending')

    # Results
    total_rows = db.Column(db.Integer, default=0)
    valid_rows = db.Column(db.Integer, default=0)
    error_rows = db.Column(db.Integer, default=0)
    error_details = db.Column(db.JSON)

    uploaded_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'record_type': self.record_type,
            'status': self.status,
            'total_rows': self.total_rows or 0,
            'valid_rows': self.valid_rows or 0,
            'error_rows': self.error_rows or 0,
            'error_count': len(self.error_details or []),
            'uploaded_at': self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
