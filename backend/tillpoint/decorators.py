# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

STAFF_HEADER = "X-Staff-Id"


def current_staff_id() -> str | None:
    """Staff identity for the current request, as established by @require_staff."""
    return getattr(g, "staff_id", None)


def require_staff(f):
    """
    Require an authenticated staff identity.

    Authentication itself lives in the upstream auth/session layer, which
    forwards the staff member's id in the X-Staff-Id header. Sets g.staff_id.

    SECURITY: Returns 401 when the header is missing or blank.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        staff_id = (request.headers.get(STAFF_HEADER) or "").strip()
        if not staff_id:
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401
        g.staff_id = staff_id
        return f(*args, **kwargs)

    return decorated_function
