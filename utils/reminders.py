# utils/reminders.py
"""
Training reminder emails

Sent through the Resend HTTP API. Without an API key the mailer runs in demo
mode: messages are logged instead of sent and every send reports success.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
import logging

import requests
from jinja2 import Environment, select_autoescape

logger = logging.getLogger(__name__)

RESEND_API_URL = 'https://api.resend.com/emails'
REQUEST_TIMEOUT = 10

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

REMINDER_TEMPLATE = _env.from_string("""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Training Reminder</h2>
  <p>Hi {{ employee_name }},</p>
  <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="margin-top: 0; color: #495057;">Course Details</h3>
    <p><strong>Course:</strong> {{ course_title }}</p>
    <p><strong>Due Date:</strong> {{ due_date }}</p>
  </div>
  {% if custom_message %}
  <div style="margin: 20px 0;">
    <h4>Additional Message:</h4>
    <p style="white-space: pre-line;">{{ custom_message }}</p>
  </div>
  {% endif %}
  <p>Please complete this training by the due date. If you have any questions, please don't hesitate to reach out.</p>
  <p>Best regards,<br>Training Team</p>
  <hr style="margin: 30px 0; border: none; border-top: 1px solid #dee2e6;">
  <p style="font-size: 12px; color: #6c757d;">
    This is an automated reminder from your training management system.
  </p>
</div>
""")


@dataclass(frozen=True)
class TrainingReminder:
    employee_email: str
    employee_name: str
    course_title: str
    due_date: str
    custom_message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingReminder':
        missing = [k for k in ('employee_email', 'employee_name', 'course_title', 'due_date')
                   if not data.get(k)]
        if missing:
            raise ValueError(f"Missing reminder fields: {', '.join(missing)}")
        return cls(
            employee_email=data['employee_email'],
            employee_name=data['employee_name'],
            course_title=data['course_title'],
            due_date=data['due_date'],
            custom_message=data.get('custom_message'),
        )

    @classmethod
    def from_assignment(cls, assignment, custom_message: Optional[str] = None) -> 'TrainingReminder':
        return cls(
            employee_email=assignment.employee.email,
            employee_name=assignment.employee.name,
            course_title=assignment.course.title,
            due_date=assignment.due_date.isoformat(),
            custom_message=custom_message,
        )


def _display_date(value: str) -> str:
    try:
        return date.fromisoformat(value).strftime('%B %d, %Y')
    except ValueError:
        return value


def render_reminder_html(reminder: TrainingReminder) -> str:
    return REMINDER_TEMPLATE.render(
        employee_name=reminder.employee_name,
        course_title=reminder.course_title,
        due_date=_display_date(reminder.due_date),
        custom_message=reminder.custom_message,
    )


class ReminderMailer:
    """Sends training reminders, one at a time or in parallel batches"""

    def __init__(self, api_key: Optional[str] = None,
                 from_address: str = 'Training Team <training@yourdomain.com>',
                 max_workers: int = 8, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.from_address = from_address
        self.max_workers = max_workers
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'ReminderMailer':
        return cls(
            api_key=config.get('RESEND_API_KEY'),
            from_address=config.get('REMINDER_FROM_ADDRESS', 'Training Team <training@yourdomain.com>'),
            max_workers=config.get('REMINDER_MAX_WORKERS', 8),
        )

    @property
    def demo_mode(self) -> bool:
        return not self.api_key

    def _deliver(self, reminder: TrainingReminder) -> Optional[str]:
        """POST one email to the provider and return its id. Raises on failure"""
        response = self.session.post(
            RESEND_API_URL,
            headers={'Authorization': f'Bearer {self.api_key}'},
            json={
                'from': self.from_address,
                'to': [reminder.employee_email],
                'subject': f'Training Reminder: {reminder.course_title}',
                'html': render_reminder_html(reminder),
            },
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json().get('id')

    def send_training_reminder(self, reminder: TrainingReminder) -> Dict[str, Any]:
        if self.demo_mode:
            logger.info(
                f"DEMO EMAIL - Training Reminder to {reminder.employee_email}: "
                f"{reminder.course_title} due {reminder.due_date}"
            )
            return {
                'success': True,
                'message': 'Email sent successfully (demo mode - check logs for details)',
            }

        try:
            email_id = self._deliver(reminder)
            return {
                'success': True,
                'message': 'Training reminder sent successfully',
                'email_id': email_id,
            }
        except requests.RequestException as e:
            logger.error(f"Email sending error for {reminder.employee_email}: {e}")
            return {'success': False, 'error': str(e)}

    def send_bulk_reminders(self, reminders: Sequence[TrainingReminder],
                            custom_message: Optional[str] = None) -> Dict[str, Any]:
        """Send many reminders in parallel; each send succeeds or fails on its own"""
        if custom_message:
            reminders = [
                TrainingReminder(r.employee_email, r.employee_name, r.course_title,
                                 r.due_date, custom_message)
                for r in reminders
            ]
        total = len(reminders)

        if self.demo_mode:
            for index, reminder in enumerate(reminders, start=1):
                logger.info(
                    f"DEMO BULK EMAIL {index}/{total}: {reminder.employee_name} "
                    f"({reminder.employee_email}) - {reminder.course_title} due {reminder.due_date}"
                )
            return {
                'success': True,
                'message': f'Bulk emails sent successfully to {total} employees '
                           f'(demo mode - check logs for details)',
                'details': {'successful': total, 'failed': 0, 'total': total},
            }

        results: List[Dict[str, Any]] = []
        if reminders:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as executor:
                results = list(executor.map(self.send_training_reminder, reminders))

        successful = sum(1 for r in results if r['success'])
        failed = total - successful
        if failed:
            logger.error(f"{failed} emails failed to send")

        message = f'Sent {successful} emails successfully'
        if failed:
            message += f', {failed} failed'
        return {
            'success': successful > 0,
            'message': message,
            'details': {'successful': successful, 'failed': failed, 'total': total},
        }
