# blueprints/reminders.py
"""
Training reminder email routes
"""

from flask import Blueprint, request, jsonify, current_app
from models import TrainingAssignment
from utils.decorators import handle_db_errors
from utils.reminders import ReminderMailer, TrainingReminder
import logging

# Set up logging
logger = logging.getLogger(__name__)

reminders_bp = Blueprint('reminders', __name__, url_prefix='/api/reminders')


@reminders_bp.route('/training', methods=['POST'])
def send_training_reminder():
    """Send one reminder from an explicit payload"""
    data = request.get_json(silent=True) or {}

    try:
        reminder = TrainingReminder.from_dict(data)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    result = ReminderMailer.from_config(current_app.config).send_training_reminder(reminder)
    status_code = 200 if result['success'] else 502
    return jsonify(result), status_code


@reminders_bp.route('/bulk', methods=['POST'])
@handle_db_errors
def send_bulk_reminders():
    """
    Send reminders for a list of assignment ids.
    Completed assignments are left out.
    """
    data = request.get_json(silent=True) or {}
    assignment_ids = data.get('assignment_ids') or []

    if not isinstance(assignment_ids, list) or not assignment_ids:
        return jsonify({'success': False, 'error': 'assignment_ids must be a non-empty list'}), 400

    try:
        assignment_ids = [int(i) for i in assignment_ids]
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'assignment_ids must be integers'}), 400

    assignments = (
        TrainingAssignment.query
        .filter(TrainingAssignment.id.in_(assignment_ids))
        .filter(TrainingAssignment.status != 'completed')
        .all()
    )
    if not assignments:
        return jsonify({'success': False, 'error': 'No pending assignments found'}), 404

    custom_message = data.get('custom_message')
    reminders = [TrainingReminder.from_assignment(a, custom_message) for a in assignments]
    logger.info(f"Sending {len(reminders)} bulk training reminders")

    result = ReminderMailer.from_config(current_app.config).send_bulk_reminders(reminders)
    return jsonify(result)
