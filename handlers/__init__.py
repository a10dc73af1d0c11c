"""
handlers/ - Presentation Layer
================================
Flask blueprints. Each handler parses the HTTP request, delegates to the
appropriate Service and serializes the response.
No business logic lives here.
"""

from flask import current_app, jsonify


def get_services():
    """The service container wired by `main.create_app`, or None when unconfigured."""
    return current_app.extensions.get("services")


def unconfigured_response():
    return jsonify({"error": "Database not configured"}), 500
