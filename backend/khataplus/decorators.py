# Overview: Tenant-context decorator for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services.organization_service import get_organization, get_profile
from .errors import NotFoundError


def _header_int(name: str):
    raw = request.headers.get(name)
    if raw is None or not raw.strip():
        return None
    raw = raw.strip()
    if not raw.isdigit():
        raise ValueError(name)
    return int(raw)


def require_tenant(f):
    """
    Establish tenant context from request headers.

    The sign-in layer in front of this service resolves the caller's session
    and forwards the tenant as X-Org-Id (and the acting staff member as
    X-Profile-Id). Sets:
    - g.org_id: The organization ID (tenant context) - REQUIRED
    - g.org: The active Organization
    - g.profile_id: Acting profile, or None

    Returns 401 when the header is missing or malformed and 404 when the
    organization is unknown or deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            org_id = _header_int("X-Org-Id")
            profile_id = _header_int("X-Profile-Id")
        except ValueError as exc:
            return jsonify({"error": f"Invalid {exc} header"}), 401

        if org_id is None:
            return jsonify({"error": "Tenant context required"}), 401

        try:
            org = get_organization(org_id)
            if profile_id is not None:
                get_profile(org_id, profile_id)
        except NotFoundError as e:
            return jsonify({"error": str(e), "details": e.details}), 404

        g.org_id = org.id
        g.org = org
        g.profile_id = profile_id

        return f(*args, **kwargs)

    return decorated_function
