# config.py
"""
Application configuration, read from environment variables
"""

import os


def _database_url():
    database_url = os.environ.get('DATABASE_URL')
    if not database_url:
        return 'sqlite:///training_dashboard.db'
    # Heroku/Render style URLs
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    return database_url


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    ENV = os.environ.get('FLASK_ENV', 'production')
    DEBUG = ENV == 'development'
    APP_VERSION = os.environ.get('APP_VERSION', '1.0.0')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DATABASE_CONFIGURED = bool(os.environ.get('DATABASE_URL'))
    SQLALCHEMY_ENGINE_OPTIONS = (
        {'pool_pre_ping': True, 'pool_recycle': 300}
        if SQLALCHEMY_DATABASE_URI.startswith('postgresql') else {}
    )

    # File uploads
    ALLOWED_EXTENSIONS = {'xlsx', 'xls', 'csv'}
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # Email reminders (Resend); demo mode when no key is set
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    REMINDER_FROM_ADDRESS = os.environ.get(
        'REMINDER_FROM_ADDRESS', 'Training Team <training@yourdomain.com>'
    )
    REMINDER_MAX_WORKERS = int(os.environ.get('REMINDER_MAX_WORKERS', 8))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    DATABASE_CONFIGURED = True
    RESEND_API_KEY = None
