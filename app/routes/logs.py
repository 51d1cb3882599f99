"""
Log Routes

Endpoints:
- GET /api/logs/recent         - Recent logs
- GET /api/logs/files          - Log files list
"""
from flask import Blueprint, jsonify, request

from .. import get_logging

logs_bp = Blueprint('logs', __name__)


@logs_bp.route('/recent', methods=['GET'])
def get_recent():
    count = request.args.get('count', 100, type=int)
    logs = get_logging().get_recent_logs(count)
    return jsonify({'success': True, 'count': len(logs), 'logs': logs})


@logs_bp.route('/files', methods=['GET'])
def list_files():
    return jsonify({'success': True, 'files': get_logging().get_log_files()})
