# blueprints/data_import.py
"""
Spreadsheet import routes
Upload one or more employee / training / QMS files, preview parsing results,
download example templates and browse import history
"""

from flask import Blueprint, request, jsonify, current_app, send_file
from werkzeug.utils import secure_filename
from models import db, Employee, TrainingCourse, TrainingAssignment, QMSUpdate, FileUpload
from engines.import_engine import SpreadsheetImportEngine
from utils.decorators import handle_db_errors
from utils.import_processor import ImportProcessor
from utils.import_templates import TEMPLATE_FILENAMES, build_template_csv, build_template_xlsx
import asyncio
import logging

# Set up logging
logger = logging.getLogger(__name__)

data_import_bp = Blueprint('data_import', __name__, url_prefix='/api/import')

# ==========================================
# HELPERS
# ==========================================

def allowed_file(filename):
    """Check if uploaded file has allowed extension"""
    allowed = current_app.config.get('ALLOWED_EXTENSIONS', {'xlsx', 'xls', 'csv'})
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed


def get_processor():
    return ImportProcessor(db, {
        'Employee': Employee,
        'TrainingCourse': TrainingCourse,
        'TrainingAssignment': TrainingAssignment,
        'QMSUpdate': QMSUpdate,
        'FileUpload': FileUpload,
    })


def collect_uploads():
    """
    Pull uploaded files out of the request.
    Returns (files, error_response)
    """
    files = request.files.getlist('files') or request.files.getlist('file')
    files = [f for f in files if f and f.filename]
    for f in files:
        f.filename = secure_filename(f.filename) or 'upload'

    if not files:
        return None, (jsonify({'success': False, 'error': 'No file provided'}), 400)

    rejected = [f.filename for f in files if not allowed_file(f.filename)]
    if rejected:
        return None, (jsonify({
            'success': False,
            'error': f"Invalid file type: {', '.join(rejected)}. Please upload .xlsx, .xls or .csv files"
        }), 400)

    return files, None

# ==========================================
# IMPORT ROUTES
# ==========================================

@data_import_bp.route('', methods=['POST'])
@handle_db_errors
def import_files():
    """Parse uploaded files and save the valid records"""
    files, error_response = collect_uploads()
    if error_response:
        return error_response

    logger.info(f"Importing {len(files)} files: {[f.filename for f in files]}")

    processor = get_processor()
    engine = SpreadsheetImportEngine(processor=processor)
    report = asyncio.run(engine.import_files(files))
    processor.record_uploads(report.outcomes)

    return jsonify(report.to_dict())


@data_import_bp.route('/preview', methods=['POST'])
def preview_files():
    """Parse uploaded files without saving anything"""
    files, error_response = collect_uploads()
    if error_response:
        return error_response

    try:
        report = asyncio.run(SpreadsheetImportEngine().parse_files(files))
        return jsonify(report.to_dict(include_records=True))
    except Exception as e:
        logger.error(f"Error previewing upload: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Server error during validation'}), 500

# ==========================================
# TEMPLATE DOWNLOAD ROUTES
# ==========================================

@data_import_bp.route('/templates/<kind>')
def download_template(kind):
    """Download an example file for one of the import formats"""
    file_format = request.args.get('format', 'xlsx').lower()
    if kind not in TEMPLATE_FILENAMES:
        return jsonify({'success': False, 'error': f'Unknown template: {kind}'}), 404
    if file_format not in ('xlsx', 'csv'):
        return jsonify({'success': False, 'error': 'format must be xlsx or csv'}), 400

    if file_format == 'csv':
        output = build_template_csv(kind)
        mimetype = 'text/csv'
    else:
        output = build_template_xlsx(kind)
        mimetype = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

    return send_file(
        output,
        mimetype=mimetype,
        as_attachment=True,
        download_name=f'{TEMPLATE_FILENAMES[kind]}.{file_format}'
    )

# ==========================================
# UPLOAD HISTORY ROUTES
# ==========================================

@data_import_bp.route('/history')
@handle_db_errors
def upload_history():
    """Recent imports, newest first"""
    limit = min(request.args.get('limit', 20, type=int), 200)
    query = FileUpload.query

    record_type = request.args.get('record_type', '')
    if record_type:
        query = query.filter_by(record_type=record_type)

    status = request.args.get('status', '')
    if status:
        query = query.filter_by(status=status)

    uploads = query.order_by(FileUpload.uploaded_at.desc(), FileUpload.id.desc()).limit(limit).all()
    return jsonify({'uploads': [u.to_dict() for u in uploads]})


@data_import_bp.route('/history/<int:upload_id>/errors')
@handle_db_errors
def upload_errors(upload_id):
    """Row errors stored for one import"""
    upload = db.session.get(FileUpload, upload_id)
    if upload is None:
        return jsonify({'success': False, 'error': 'Upload not found'}), 404

    errors = upload.error_details or []
    return jsonify({
        'upload': upload.to_dict(),
        'errors': [{'message': e, 'type': 'Error'} for e in errors],
        'error_count': len(errors)
    })
