"""
security/auth.py
-----------------
Request guards for the HTTP endpoints.
"""

import hmac
from functools import wraps
from typing import Callable

from flask import current_app, g, jsonify, request

from utils.logger import get_logger

logger = get_logger(__name__)


def bearer_token_required(secret_key: str):
    """
    Decorator that requires `Authorization: Bearer <secret>`.

    The secret is read from `app.config[secret_key]` on each request.
    When it is empty the endpoint stays open (dev mode).

    Usage:
        @bearer_token_required("REMINDER_CRON_SECRET")
        def dispatch():
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            secret = current_app.config.get(secret_key, "")
            if secret:
                auth = request.headers.get("Authorization", "")
                if not hmac.compare_digest(auth.encode(), f"Bearer {secret}".encode()):
                    logger.warning(f"Unauthorized call to {request.path} from {request.remote_addr}")
                    return jsonify({"error": "Unauthorized"}), 401
            return func(*args, **kwargs)

        return wrapper

    return decorator


def user_required(func: Callable):
    """
    Decorator for dashboard routes: the authenticating proxy in front of the
    API passes the signed-in user's ID in the `X-User-Id` header.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        raw = request.headers.get("X-User-Id", "").strip()
        if not (raw.isascii() and raw.isdigit()):
            return jsonify({"error": "Sessão inválida"}), 401
        g.user_id = int(raw)
        return func(*args, **kwargs)

    return wrapper
