"""
handlers/reminders.py
---------------------
Entry point for the external scheduler (cron) that triggers reminder dispatch.
"""

from flask import Blueprint, jsonify

from handlers import get_services, unconfigured_response
from security.auth import bearer_token_required
from utils.logger import get_logger

logger = get_logger(__name__)

reminders_bp = Blueprint("reminders", __name__, url_prefix="/api/reminders")


@reminders_bp.route("/dispatch", methods=["POST"])
@bearer_token_required("REMINDER_CRON_SECRET")
def dispatch():
    """Send today's reminders. Returns how many were processed."""
    services = get_services()
    if services is None:
        return unconfigured_response()

    try:
        sent = services.reminders.dispatch_due()
    except Exception as e:
        logger.exception(f"Failed to dispatch reminders: {e}")
        return jsonify({"error": "Failed to fetch reminders"}), 500

    return jsonify({"success": True, "sent": sent}), 200
