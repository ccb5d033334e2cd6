# blueprints/dashboard.py
"""
Dashboard API routes
Headline statistics, employee list and filtered views of training
assignments and QMS plans
"""

from flask import Blueprint, request, jsonify
from sqlalchemy import or_
from models import db, Employee, TrainingAssignment, TrainingCourse, QMSUpdate
from utils.decorators import handle_db_errors, bad_request_on_value_error
from utils.dashboard_stats import (
    get_dashboard_stats, get_employee_training_stats, get_assignment_status,
    get_priority_breakdown, parse_date_arg, filter_by_date_range, priority_color
)
import logging

# Set up logging
logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api')

# ==========================================
# STATISTICS
# ==========================================

@dashboard_bp.route('/dashboard/stats')
@handle_db_errors
def dashboard_stats():
    stats = get_dashboard_stats()
    stats['training_by_priority'] = get_priority_breakdown(TrainingAssignment)
    stats['qms_by_priority'] = get_priority_breakdown(QMSUpdate)
    return jsonify(stats)

# ==========================================
# EMPLOYEES
# ==========================================

@dashboard_bp.route('/employees')
@handle_db_errors
def list_employees():
    """Active employees, optionally narrowed by department or a name/email search"""
    query = Employee.query.filter_by(is_active=True)

    department = request.args.get('department', '')
    if department:
        query = query.filter_by(department=department)

    search = request.args.get('search', '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.email.ilike(pattern)
        ))

    employees = query.order_by(Employee.last_name, Employee.first_name).all()
    return jsonify({'employees': [e.to_dict() for e in employees], 'total': len(employees)})


@dashboard_bp.route('/employees/<int:employee_id>/training')
@handle_db_errors
def employee_training(employee_id):
    employee = db.session.get(Employee, employee_id)
    if employee is None:
        return jsonify({'success': False, 'error': 'Employee not found'}), 404

    assignments = employee.training_assignments.order_by(TrainingAssignment.due_date).all()
    return jsonify({
        'employee': employee.to_dict(),
        'stats': get_employee_training_stats(employee_id),
        'assignments': [_assignment_payload(a) for a in assignments]
    })

# ==========================================
# TRAINING ASSIGNMENTS
# ==========================================

def _assignment_payload(assignment):
    payload = assignment.to_dict()
    payload['display_status'] = get_assignment_status(assignment)
    payload['priority_color'] = priority_color(assignment.priority)
    return payload


@dashboard_bp.route('/training-assignments')
@handle_db_errors
@bad_request_on_value_error
def list_training_assignments():
    """
    Training assignments filtered by status, employee, free-text search and
    a due date range (start/end as YYYY-MM-DD)
    """
    query = TrainingAssignment.query.join(Employee).join(TrainingCourse)

    status = request.args.get('status', '')
    if status:
        query = query.filter(TrainingAssignment.status == status)

    employee_id = request.args.get('employee_id', type=int)
    if employee_id:
        query = query.filter(TrainingAssignment.employee_id == employee_id)

    search = request.args.get('search', '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            TrainingCourse.title.ilike(pattern),
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.email.ilike(pattern)
        ))

    query = filter_by_date_range(
        query, TrainingAssignment.due_date,
        parse_date_arg(request.args.get('start')),
        parse_date_arg(request.args.get('end'))
    )

    assignments = query.order_by(TrainingAssignment.due_date).all()
    return jsonify({
        'assignments': [_assignment_payload(a) for a in assignments],
        'total': len(assignments)
    })

# ==========================================
# QMS UPDATES
# ==========================================

@dashboard_bp.route('/qms-updates')
@handle_db_errors
@bad_request_on_value_error
def list_qms_updates():
    """QMS plans filtered by year, quarter, status and a planned start date range"""
    query = QMSUpdate.query

    year = request.args.get('year', type=int)
    if year:
        query = query.filter(QMSUpdate.year == year)

    quarter = request.args.get('quarter', type=int)
    if quarter:
        if quarter not in (1, 2, 3, 4):
            raise ValueError("quarter must be between 1 and 4")
        query = query.filter(QMSUpdate.quarter == quarter)

    status = request.args.get('status', '')
    if status:
        query = query.filter(QMSUpdate.status == status)

    query = filter_by_date_range(
        query, QMSUpdate.planned_start_date,
        parse_date_arg(request.args.get('start')),
        parse_date_arg(request.args.get('end'))
    )

    updates = query.order_by(QMSUpdate.planned_start_date).all()
    payload = []
    for update in updates:
        item = update.to_dict()
        item['priority_color'] = priority_color(update.priority)
        payload.append(item)

    return jsonify({'qms_updates': payload, 'total': len(payload)})
