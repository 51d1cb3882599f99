"""
Static File Routes

Serves STATIC_DIR, which holds the encoded outputs under videostore/ and
any client assets.
"""
from flask import Blueprint, current_app, send_from_directory

static_bp = Blueprint('static_files', __name__)


@static_bp.route('/', methods=['GET'])
def index():
    return send_from_directory(current_app.config['STATIC_DIR'], 'index.html')


@static_bp.route('/<path:filename>', methods=['GET'])
def static_file(filename):
    return send_from_directory(current_app.config['STATIC_DIR'], filename)
