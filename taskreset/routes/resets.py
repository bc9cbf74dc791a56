"""Admin API endpoints for the daily reset ledger."""

import logging
import re
import secrets
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from taskreset.services.ledger import IdempotencyLedger
from taskreset.services.store import TaskStore
from taskreset.utils.timezone import SystemClock

logger = logging.getLogger(__name__)

resets_bp = Blueprint('resets', __name__, url_prefix='/api/resets')

DATE_KEY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
MAX_LIST_LIMIT = 366


def admin_token_required(f):
    """Require ``Authorization: Bearer <ADMIN_API_TOKEN>``.

    The API is disabled entirely while no token is configured.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ADMIN_API_TOKEN')
        if not expected:
            return jsonify({
                'error': 'Forbidden',
                'message': 'Admin API is disabled'
            }), 403

        auth_header = request.headers.get('Authorization', '')
        token = auth_header[7:] if auth_header.startswith('Bearer ') else ''

        # Use constant-time comparison to prevent timing attacks
        if not token or not secrets.compare_digest(token, expected):
            return jsonify({
                'error': 'Unauthorized',
                'message': 'Valid admin token required'
            }), 401

        return f(*args, **kwargs)
    return decorated_function


def _ledger():
    return IdempotencyLedger(TaskStore(), SystemClock())


@resets_bp.route('', methods=['GET'])
@admin_token_required
def list_runs():
    """List recent ledger entries, newest first."""
    try:
        limit = int(request.args.get('limit', 30))
    except ValueError:
        return jsonify({
            'error': 'BadRequest',
            'message': 'limit must be an integer'
        }), 400

    limit = max(1, min(limit, MAX_LIST_LIMIT))
    entries = _ledger().recent(limit)

    return jsonify({
        'data': [entry.to_dict() for entry in entries],
        'message': f'Found {len(entries)} reset runs'
    })


@resets_bp.route('/<date_key>', methods=['GET'])
@admin_token_required
def get_run(date_key):
    """Get the ledger entry for one day."""
    if not DATE_KEY_RE.match(date_key):
        return jsonify({
            'error': 'BadRequest',
            'message': 'date_key must be YYYY-MM-DD'
        }), 400

    entry = _ledger().get(date_key)
    if entry is None:
        return jsonify({
            'error': 'NotFound',
            'message': f'No reset run recorded for {date_key}'
        }), 404

    return jsonify({'data': entry.to_dict()})


@resets_bp.route('/run', methods=['POST'])
@admin_token_required
def trigger_run():
    """Run the daily reset now with an optional trigger label."""
    from taskreset.jobs.daily_reset import run_daily_task_reset

    data = request.get_json(silent=True) or {}
    label = data.get('label', 'manual')
    if not isinstance(label, str) or not label.strip() or len(label) > 32:
        return jsonify({
            'error': 'BadRequest',
            'message': 'label must be a non-empty string of at most 32 characters'
        }), 400

    try:
        summary = run_daily_task_reset(label.strip())
    except Exception as e:
        logger.error(f"Manual reset failed: {e}")
        return jsonify({
            'error': 'InternalServerError',
            'message': 'Reset failed; see server logs'
        }), 500

    return jsonify({
        'data': summary.to_dict(),
        'message': 'Reset already completed today' if summary.skipped else 'Reset completed'
    })
