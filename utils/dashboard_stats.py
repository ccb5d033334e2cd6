# utils/dashboard_stats.py
"""
Dashboard statistics and display helpers
Totals, overdue training, upcoming QMS plans, completion rates and the
status/priority color mapping used by the charts and tables
"""

from datetime import date, timedelta
from typing import Any, Dict, Optional
import logging

from models import db, Employee, TrainingAssignment, QMSUpdate

logger = logging.getLogger(__name__)

UPCOMING_QMS_DAYS = 30
DUE_SOON_DAYS = 7

PRIORITY_COLORS = {
    'high': '#dc2626',
    'medium': '#f59e0b',
    'low': '#16a34a',
}

STATUS_COLORS = {
    'completed': '#16a34a',
    'overdue': '#dc2626',
    'due_soon': '#ea580c',
    'in_progress': '#2563eb',
    'assigned': '#4b5563',
    'planned': '#4b5563',
}


def priority_color(priority: Optional[str]) -> str:
    return PRIORITY_COLORS.get((priority or '').lower(), PRIORITY_COLORS['medium'])


def completion_rate(completed: int, total: int) -> int:
    """Whole-number percentage; 0 when there is nothing to complete"""
    if total <= 0:
        return 0
    return round(completed / total * 100)


def get_assignment_status(assignment, today: Optional[date] = None) -> Dict[str, str]:
    """Display status of a training assignment relative to its due date"""
    today = today or date.today()

    if assignment.status == 'completed':
        key, label = 'completed', 'Completed'
    elif assignment.due_date and assignment.due_date < today:
        key, label = 'overdue', 'Overdue'
    elif assignment.due_date and (assignment.due_date - today).days <= DUE_SOON_DAYS:
        key, label = 'due_soon', 'Due Soon'
    elif assignment.status == 'in_progress':
        key, label = 'in_progress', 'In Progress'
    else:
        key, label = 'assigned', 'Assigned'

    return {'key': key, 'label': label, 'color': STATUS_COLORS[key]}


def parse_date_arg(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD query argument. Blank values mean no bound"""
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())


def filter_by_date_range(query, column, start: Optional[date] = None, end: Optional[date] = None):
    """Restrict a query to start <= column <= end; missing bounds are ignored"""
    if start and end and start > end:
        raise ValueError("start date must not be after end date")
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query


def _overdue_filter(today: date):
    return db.and_(TrainingAssignment.due_date < today, TrainingAssignment.status != 'completed')


def get_dashboard_stats(today: Optional[date] = None) -> Dict[str, Any]:
    """Headline numbers for the dashboard"""
    today = today or date.today()

    try:
        total_employees = Employee.query.filter_by(is_active=True).count()
        total_training = TrainingAssignment.query.count()
        completed_training = TrainingAssignment.query.filter_by(status='completed').count()
        overdue_training = TrainingAssignment.query.filter(_overdue_filter(today)).count()

        total_qms = QMSUpdate.query.count()
        completed_qms = QMSUpdate.query.filter_by(status='completed').count()
        in_progress_qms = QMSUpdate.query.filter_by(status='in_progress').count()
        upcoming_qms = QMSUpdate.query.filter(
            QMSUpdate.planned_start_date <= today + timedelta(days=UPCOMING_QMS_DAYS),
            QMSUpdate.status != 'completed'
        ).count()

        return {
            'total_employees': total_employees,
            'total_training_assignments': total_training,
            'completed_training': completed_training,
            'overdue_training': overdue_training,
            'total_qms_updates': total_qms,
            'completed_qms': completed_qms,
            'in_progress_qms': in_progress_qms,
            'upcoming_qms': upcoming_qms,
            'completion_rate': completion_rate(completed_training, total_training),
        }
    except Exception as e:
        logger.error(f"Error getting dashboard stats: {e}")
        raise


def get_employee_training_stats(employee_id: int, today: Optional[date] = None) -> Dict[str, int]:
    """Completed/total/overdue assignment counts for one employee"""
    today = today or date.today()
    query = TrainingAssignment.query.filter_by(employee_id=employee_id)

    total = query.count()
    completed = query.filter(TrainingAssignment.status == 'completed').count()
    overdue = query.filter(_overdue_filter(today)).count()

    return {
        'completed': completed,
        'total': total,
        'overdue': overdue,
        'completion_rate': completion_rate(completed, total),
    }


def get_priority_breakdown(model) -> Dict[str, int]:
    """Row counts per priority for a model with a priority column"""
    rows = db.session.query(model.priority, db.func.count(model.id)).group_by(model.priority).all()
    breakdown = {priority: 0 for priority in PRIORITY_COLORS}
    for priority, count in rows:
        breakdown[priority or 'medium'] = breakdown.get(priority or 'medium', 0) + count
    return breakdown
