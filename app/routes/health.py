"""
Health Routes

Endpoints:
- /health
"""
from flask import Blueprint, jsonify, current_app
from datetime import datetime

from .. import get_registry, get_coordinator

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    registry = get_registry()
    return jsonify({
        'status': 'healthy',
        'service': 'video-upload-service',
        'timestamp': datetime.now().isoformat(),
        'files': len(registry),
        'processing': registry.processing_ids(),
        'outstanding_jobs': get_coordinator().outstanding_jobs(),
        'upload_path': current_app.config.get('UPLOAD_DIR')
    })
