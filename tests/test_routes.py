"""End-to-end tests for the HTTP API."""
import io

from openpyxl import load_workbook

from conftest import EMPLOYEE_HEADERS, QMS_HEADERS, TRAINING_HEADERS, make_xlsx
from models import Employee, FileUpload, QMSUpdate, TrainingAssignment


def upload(client, url, *files):
    data = {'files': [(io.BytesIO(content), name) for name, content in files]}
    return client.post(url, data=data, content_type='multipart/form-data')


# ==========================================
# IMPORT
# ==========================================

def test_import_employees_then_training(client):
    employees = make_xlsx([
        EMPLOYEE_HEADERS,
        ["ann@example.com", "Ann", "Lee", "Quality", "Auditor"],
        ["bob@example.com", "Bob", "Ray", "Production", "Operator"],
    ])
    training = make_xlsx([
        TRAINING_HEADERS,
        ["ann@example.com", "Safety Basics", "2025-01-01", "2025-02-01", "high"],
        ["ghost@example.com", "Safety Basics", "2025-01-01", "2025-02-01", "high"],
        ["bob@example.com", "", "2025-01-01", "2025-02-01", "low"],
    ])

    response = upload(client, '/api/import', ("training.xlsx", training), ("employees.xlsx", employees))
    body = response.get_json()

    assert response.status_code == 200
    assert body['success'] is True
    assert [f['filename'] for f in body['files']] == ["training.xlsx", "employees.xlsx"]
    assert body['files'][0]['errors'] == ["Row 4: Missing or invalid required fields: course_title"]
    assert body['persisted']['employees'] == {'inserted': 2, 'error': None}
    assert body['persisted']['training_assignments'] == {'inserted': 1, 'error': None}

    assert Employee.query.count() == 2
    assert TrainingAssignment.query.count() == 1
    assert FileUpload.query.count() == 2


def test_import_qms_plans(client, employees):
    plans = make_xlsx([
        QMS_HEADERS + ["Quarter"],
        ["Doc Update", "system", "2025-01-01", "2025-03-31", "ann@example.com", 1],
        ["Risk Review", "system", "2025-04-01", "2025-06-30", "bad-email", 2],
    ])

    body = upload(client, '/api/import', ("plans.xlsx", plans)).get_json()

    assert body['files'][0]['type'] == "qms_updates"
    assert body['files'][0]['summary'] == {'total_rows': 2, 'valid_rows': 1, 'error_rows': 1}
    assert QMSUpdate.query.one().responsible_person.email == "ann@example.com"


def test_import_requires_files(client):
    response = client.post('/api/import', data={}, content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_import_rejects_other_extensions(client):
    response = upload(client, '/api/import', ("notes.txt", b"hello"))
    assert response.status_code == 400
    assert "notes.txt" in response.get_json()['error']


def test_unrecognized_file_is_recorded_as_failed(client):
    content = make_xlsx([["Foo", "Bar"], ["1", "2"]])
    body = upload(client, '/api/import', ("mystery.xlsx", content)).get_json()

    assert body['success'] is False
    assert body['files'][0]['type'] == "unknown"
    assert FileUpload.query.one().status == "failed"


def test_upload_filenames_are_sanitized(client):
    content = make_xlsx([EMPLOYEE_HEADERS, ["ann@example.com", "Ann", "Lee", "Quality", "Auditor"]])
    body = upload(client, '/api/import', ("my people.xlsx", content)).get_json()

    assert body['files'][0]['filename'] == "my_people.xlsx"
    assert FileUpload.query.one().filename == "my_people.xlsx"


def test_preview_does_not_save(client):
    content = make_xlsx([EMPLOYEE_HEADERS, ["ann@example.com", "Ann", "Lee", "Quality", "Auditor"]])
    body = upload(client, '/api/import/preview', ("people.xlsx", content)).get_json()

    assert body['records']['employees'][0]['email'] == "ann@example.com"
    assert Employee.query.count() == 0
    assert FileUpload.query.count() == 0


# ==========================================
# TEMPLATES
# ==========================================

def test_xlsx_template_download(client):
    response = client.get('/api/import/templates/employees')

    assert response.status_code == 200
    assert "employee_template.xlsx" in response.headers['Content-Disposition']
    workbook = load_workbook(io.BytesIO(response.data))
    assert workbook.sheetnames[0] == "Data"


def test_csv_template_download(client):
    response = client.get('/api/import/templates/qms?format=csv')

    assert response.status_code == 200
    assert response.data.decode('utf-8').splitlines()[0].startswith("Title,Description,Category")


def test_unknown_template(client):
    assert client.get('/api/import/templates/payroll').status_code == 404


def test_templates_import_cleanly(client):
    """Every downloadable template parses without row errors, in dependency order."""
    files = []
    for kind in ('employees', 'training', 'qms'):
        response = client.get(f'/api/import/templates/{kind}')
        files.append((f"{kind}.xlsx", response.data))

    body = upload(client, '/api/import', *files).get_json()

    assert [f['type'] for f in body['files']] == ["employees", "training_assignments", "qms_updates"]
    assert all(f['errors'] == [] for f in body['files'])
    assert body['persisted']['training_assignments']['inserted'] == 3
    assert body['persisted']['qms_updates']['inserted'] == 3


# ==========================================
# HISTORY
# ==========================================

def test_upload_history_and_errors(client):
    content = make_xlsx([EMPLOYEE_HEADERS, ["nope", "Ann", "Lee", "Quality", "Auditor"],
                         ["ann@example.com", "Ann", "Lee", "Quality", "Auditor"]])
    upload(client, '/api/import', ("people.xlsx", content))

    history = client.get('/api/import/history').get_json()['uploads']
    assert len(history) == 1
    assert history[0]['status'] == "completed_with_errors"

    errors = client.get(f"/api/import/history/{history[0]['id']}/errors").get_json()
    assert errors['error_count'] == 1
    assert errors['errors'][0]['message'] == "Row 2: Invalid email format"


def test_missing_history_entry(client):
    assert client.get('/api/import/history/999/errors').status_code == 404


# ==========================================
# DASHBOARD
# ==========================================

def test_dashboard_stats_route(client, assignments, qms_updates):
    body = client.get('/api/dashboard/stats').get_json()

    assert body['total_employees'] == 2
    assert body['total_training_assignments'] == 3
    assert body['training_by_priority'] == {'high': 1, 'medium': 1, 'low': 1}


def test_employee_list_and_search(client, employees):
    assert client.get('/api/employees').get_json()['total'] == 2
    found = client.get('/api/employees?search=bob').get_json()['employees']
    assert [e['email'] for e in found] == ["bob@example.com"]


def test_employee_training(client, employees, assignments):
    body = client.get(f'/api/employees/{employees[0].id}/training').get_json()

    assert body['employee']['email'] == "ann@example.com"
    assert body['stats']['total'] == 2
    assert len(body['assignments']) == 2
    assert client.get('/api/employees/999/training').status_code == 404


def test_training_assignment_filters(client, assignments):
    assert client.get('/api/training-assignments').get_json()['total'] == 3
    assert client.get('/api/training-assignments?status=completed').get_json()['total'] == 1
    assert client.get('/api/training-assignments?search=gmp').get_json()['total'] == 1

    body = client.get('/api/training-assignments?start=2025-02-01&end=2025-03-01').get_json()
    assert body['total'] == 2
    assert 'display_status' in body['assignments'][0]


def test_bad_date_filter_is_a_bad_request(client, assignments):
    assert client.get('/api/training-assignments?start=yesterday').status_code == 400
    assert client.get('/api/training-assignments?start=2025-03-01&end=2025-01-01').status_code == 400


def test_qms_filters(client, qms_updates):
    assert client.get('/api/qms-updates?year=2025').get_json()['total'] == 2
    assert client.get('/api/qms-updates?year=2025&quarter=2').get_json()['total'] == 1
    assert client.get('/api/qms-updates?status=planned').get_json()['total'] == 1
    assert client.get('/api/qms-updates?quarter=7').status_code == 400


# ==========================================
# REMINDERS
# ==========================================

def test_single_reminder_in_demo_mode(client):
    response = client.post('/api/reminders/training', json={
        'employee_email': "ann@example.com", 'employee_name': "Ann Lee",
        'course_title': "Safety Basics", 'due_date': "2025-02-01",
    })

    assert response.status_code == 200
    assert response.get_json()['success'] is True


def test_single_reminder_validation(client):
    response = client.post('/api/reminders/training', json={'employee_email': "ann@example.com"})
    assert response.status_code == 400


def test_bulk_reminders_skip_completed(client, assignments):
    ids = [a.id for a in assignments]
    body = client.post('/api/reminders/bulk', json={'assignment_ids': ids}).get_json()

    assert body['success'] is True
    assert body['details']['total'] == 2


def test_bulk_reminders_need_ids(client):
    assert client.post('/api/reminders/bulk', json={}).status_code == 400
    assert client.post('/api/reminders/bulk', json={'assignment_ids': [12345]}).status_code == 404


# ==========================================
# HEALTH
# ==========================================

def test_health(client):
    body = client.get('/health').get_json()

    assert body['status'] == "healthy"
    assert body['database'] == "connected"
    assert body['email'] == "demo"


def test_test_db(client, employees):
    body = client.get('/api/test-db').get_json()

    assert body['success'] is True
    assert body['backend'] == "sqlite"
    assert body['counts']['employees'] == 2
    assert body['samples']['employees'][0]['email'] == "ann@example.com"
    assert body['samples']['qms_updates'] == []


def test_unknown_route_returns_json(client):
    response = client.get('/api/nowhere')
    assert response.status_code == 404
    assert response.get_json()['success'] is False
