"""Tests for training reminder emails."""
from unittest.mock import MagicMock

import pytest
import requests

from utils.reminders import RESEND_API_URL, ReminderMailer, TrainingReminder, render_reminder_html


def make_reminder(email="ann@example.com", **overrides):
    data = {'employee_email': email, 'employee_name': "Ann Lee",
            'course_title': "Safety Basics", 'due_date': "2025-02-01"}
    data.update(overrides)
    return TrainingReminder.from_dict(data)


def fake_session(fail_for=()):
    """Session whose post() fails for the given recipients"""
    session = MagicMock()

    def post(url, headers=None, json=None, timeout=None):
        response = MagicMock()
        if json['to'][0] in fail_for:
            response.raise_for_status.side_effect = requests.HTTPError("422 Unprocessable")
        else:
            response.json.return_value = {'id': f"email-{json['to'][0]}"}
        return response

    session.post.side_effect = post
    return session


def test_from_dict_requires_fields():
    with pytest.raises(ValueError) as excinfo:
        TrainingReminder.from_dict({'employee_email': "ann@example.com", 'due_date': ""})
    assert "employee_name" in str(excinfo.value)
    assert "due_date" in str(excinfo.value)


def test_html_escapes_user_text():
    html = render_reminder_html(make_reminder(custom_message="<script>alert(1)</script>"))

    assert "February 01, 2025" in html
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_demo_mode_logs_instead_of_sending():
    session = MagicMock()
    mailer = ReminderMailer(api_key=None, session=session)

    result = mailer.send_training_reminder(make_reminder())

    assert mailer.demo_mode
    assert result['success'] is True
    assert "demo mode" in result['message']
    session.post.assert_not_called()


def test_send_single_reminder():
    session = fake_session()
    mailer = ReminderMailer(api_key="re_test", session=session)

    result = mailer.send_training_reminder(make_reminder())

    assert result == {'success': True, 'message': 'Training reminder sent successfully',
                      'email_id': "email-ann@example.com"}
    url = session.post.call_args.args[0]
    payload = session.post.call_args.kwargs['json']
    assert url == RESEND_API_URL
    assert payload['subject'] == "Training Reminder: Safety Basics"
    assert session.post.call_args.kwargs['headers']['Authorization'] == "Bearer re_test"


def test_provider_failure_is_reported():
    mailer = ReminderMailer(api_key="re_test", session=fake_session(fail_for={"ann@example.com"}))

    result = mailer.send_training_reminder(make_reminder())

    assert result['success'] is False
    assert "422" in result['error']


def test_bulk_send_counts_each_result():
    session = fake_session(fail_for={"bad@example.com"})
    mailer = ReminderMailer(api_key="re_test", max_workers=3, session=session)
    reminders = [make_reminder("a@example.com"), make_reminder("bad@example.com"),
                 make_reminder("c@example.com")]

    result = mailer.send_bulk_reminders(reminders, custom_message="Please finish this week")

    assert result['success'] is True
    assert result['message'] == 'Sent 2 emails successfully, 1 failed'
    assert result['details'] == {'successful': 2, 'failed': 1, 'total': 3}
    assert session.post.call_count == 3
    for call in session.post.call_args_list:
        assert "Please finish this week" in call.kwargs['json']['html']


def test_bulk_send_all_failed():
    mailer = ReminderMailer(api_key="re_test", session=fake_session(fail_for={"a@example.com"}))

    result = mailer.send_bulk_reminders([make_reminder("a@example.com")])

    assert result['success'] is False
    assert result['details']['failed'] == 1


def test_bulk_demo_mode():
    mailer = ReminderMailer(api_key=None, session=MagicMock())

    result = mailer.send_bulk_reminders([make_reminder("a@example.com"), make_reminder("b@example.com")])

    assert result['success'] is True
    assert result['details'] == {'successful': 2, 'failed': 0, 'total': 2}


def test_mailer_from_config():
    mailer = ReminderMailer.from_config({'RESEND_API_KEY': "re_live", 'REMINDER_MAX_WORKERS': 2})

    assert not mailer.demo_mode
    assert mailer.max_workers == 2
