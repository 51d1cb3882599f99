"""
Route Blueprints Registration
"""
from flask import Response


def text_response(message, status=200):
    """Short plain-text body, as returned by the upload and processing endpoints."""
    return Response(message, status=status, mimetype='text/plain')


def register_blueprints(app):
    """Register all route blueprints with the app"""

    from .health import health_bp
    from .uploads import uploads_bp
    from .processing import processing_bp
    from .logs import logs_bp
    from .static_files import static_bp

    # Register blueprints
    app.register_blueprint(health_bp)
    app.register_blueprint(uploads_bp)
    app.register_blueprint(processing_bp)
    app.register_blueprint(logs_bp, url_prefix='/api/logs')
    # Catch-all, registered last
    app.register_blueprint(static_bp)
