# utils/decorators.py
"""
Custom decorators for API error handling
"""

from functools import wraps
import logging

from flask import jsonify
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models import db

logger = logging.getLogger(__name__)


def handle_db_errors(f):
    """
    Decorator to turn database failures into JSON errors.
    Rolls the session back so the next request starts clean.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except OperationalError as e:
            logger.error(f"Database operational error in {f.__name__}: {str(e)}")
            db.session.rollback()
            return jsonify({
                'success': False,
                'error': 'Database connection error. Please try again.'
            }), 503
        except SQLAlchemyError as e:
            logger.error(f"Database error in {f.__name__}: {str(e)}")
            db.session.rollback()
            return jsonify({'success': False, 'error': 'Database error'}), 500

    return decorated_function


def bad_request_on_value_error(f):
    """
    Decorator to report malformed query arguments (dates, ids) as 400s
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

    return decorated_function
