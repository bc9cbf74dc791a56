"""Flask configuration for the TaskReset service."""

import os
from pathlib import Path


class Config:
    """Base configuration."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database settings
    DATA_DIR = Path(os.environ.get('DATA_DIR', '/data'))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f"sqlite:///{DATA_DIR / 'taskreset.db'}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CREATE_TABLES = os.environ.get('CREATE_TABLES', 'false').lower() == 'true'

    # APScheduler settings
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() == 'true'

    # Daily reset settings
    RESET_TIMEZONE = os.environ.get('RESET_TIMEZONE', 'Asia/Tokyo')
    RESET_PRIMARY_TIME = os.environ.get('RESET_PRIMARY_TIME', '05:30')
    RESET_BACKUP_TIME = os.environ.get('RESET_BACKUP_TIME', '05:45')
    RESET_BATCH_SIZE = int(os.environ.get('RESET_BATCH_SIZE', '500'))

    # Admin API (disabled when no token is configured)
    ADMIN_API_TOKEN = os.environ.get('ADMIN_API_TOKEN')

    # Application settings
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    DATA_DIR = Path(__file__).parent / 'data'
    SQLALCHEMY_DATABASE_URI = f"sqlite:///{DATA_DIR / 'taskreset.db'}"
    CREATE_TABLES = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    # Re-evaluate DATA_DIR and database URI to ensure environment variable is picked up
    DATA_DIR = Path(os.environ.get('DATA_DIR', '/data'))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f"sqlite:///{DATA_DIR / 'taskreset.db'}"


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    # Disable scheduler during tests
    SCHEDULER_ENABLED = False
    CREATE_TABLES = False
    RESET_TIMEZONE = 'Asia/Tokyo'
    RESET_BATCH_SIZE = 500
    ADMIN_API_TOKEN = 'test-admin-token'


# Config dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
