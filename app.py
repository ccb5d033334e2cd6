# app.py - Application factory
"""
Main application file for the Training & QMS Dashboard
Run locally with `python app.py`; under gunicorn use `app:create_app()`
"""

from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
import logging
import os

# Import db from models before the blueprints
from models import db
from config import Config

logger = logging.getLogger(__name__)


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def register_blueprints(app):
    from blueprints.data_import import data_import_bp
    from blueprints.dashboard import dashboard_bp
    from blueprints.reminders import reminders_bp

    app.register_blueprint(data_import_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reminders_bp)


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(413)
    def file_too_large(error):
        max_mb = app.config.get('MAX_CONTENT_LENGTH', 0) // (1024 * 1024)
        return jsonify({'success': False, 'error': f'File too large. Maximum size is {max_mb}MB'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Internal server error'}), 500


def register_health_routes(app):
    @app.route('/health')
    def health_check():
        """Health check endpoint"""
        try:
            with db.engine.connect() as conn:
                conn.execute(text('SELECT 1'))
            database = 'connected'
            status, code = 'healthy', 200
        except SQLAlchemyError as e:
            logger.error(f"Health check database error: {e}")
            database = 'disconnected'
            status, code = 'unhealthy', 503

        return jsonify({
            'status': status,
            'version': app.config.get('APP_VERSION'),
            'environment': app.config.get('ENV'),
            'database': database,
            'database_configured': app.config.get('DATABASE_CONFIGURED', False),
            'email': 'demo' if not app.config.get('RESEND_API_KEY') else 'configured',
            'timestamp': datetime.utcnow().isoformat()
        }), code

    @app.route('/api/test-db')
    def test_db():
        """Report the database backend, row counts and the first rows of each table"""
        from models import Employee, TrainingAssignment, QMSUpdate, FileUpload

        tables = {
            'employees': Employee,
            'training_assignments': TrainingAssignment,
            'qms_updates': QMSUpdate,
            'file_uploads': FileUpload
        }
        try:
            return jsonify({
                'success': True,
                'backend': db.engine.name,
                'counts': {name: model.query.count() for name, model in tables.items()},
                'samples': {
                    name: [row.to_dict() for row in model.query.order_by(model.id).limit(3).all()]
                    for name, model in tables.items()
                }
            })
        except SQLAlchemyError as e:
            logger.error(f"Database test failed: {e}")
            db.session.rollback()
            return jsonify({'success': False, 'error': str(e)}), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    db.init_app(app)

    register_blueprints(app)
    register_error_handlers(app)
    register_health_routes(app)

    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables ready")
        except SQLAlchemyError as e:
            logger.error(f"Error initializing database: {e}")

    logger.info(f"Training dashboard {app.config.get('APP_VERSION')} started ({app.config.get('ENV')})")
    return app


# Run the application
if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    application = create_app()
    application.run(host='0.0.0.0', port=port, debug=application.config.get('DEBUG', False))
