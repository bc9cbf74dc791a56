"""TaskReset Flask application - Main entry point."""

import os
import sys
import logging
from pathlib import Path

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import text

# Configure logging for the entire application
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

from taskreset.models import db

# Initialize Flask-Migrate
migrate = Migrate()


def create_app(config_name=None):
    """Application factory pattern for Flask app creation."""
    app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'production' if os.path.exists('/data') else 'development')

    from taskreset.config import config
    app.config.from_object(config[config_name])

    # Ensure data directory exists (skip for in-memory or external databases)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') \
            and app.config['SQLALCHEMY_DATABASE_URI'] != "sqlite:///:memory:":
        Path(app.config['DATA_DIR']).mkdir(parents=True, exist_ok=True)

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    if app.config.get('CREATE_TABLES'):
        with app.app_context():
            db.create_all()

    register_routes(app)
    register_commands(app)

    # Initialize background scheduler
    from taskreset.scheduler import init_scheduler
    init_scheduler(app)

    return app


def register_routes(app):
    """Register all application routes."""
    from taskreset.routes import resets_bp

    app.register_blueprint(resets_bp)

    @app.route('/health')
    def health():
        """Health check endpoint for monitoring."""
        try:
            db.session.execute(text('SELECT 1'))
            db_status = 'healthy'
        except Exception as e:
            db_status = f'unhealthy: {str(e)}'

        from taskreset.scheduler import get_job_status

        return jsonify({
            'status': 'healthy' if db_status == 'healthy' else 'degraded',
            'database': db_status,
            'jobs': get_job_status()
        })


def register_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('reset-tasks')
    @click.option('--label', default='manual', show_default=True,
                  help='Trigger label recorded on the ledger and on reset tasks.')
    def reset_tasks_command(label):
        """Run the daily task reset now."""
        from taskreset.jobs.daily_reset import run_daily_task_reset

        summary = run_daily_task_reset(label)
        if summary.skipped:
            click.echo("Reset already succeeded today; nothing to do.")
        else:
            click.echo(f"Reset {summary.processed_count} tasks.")
