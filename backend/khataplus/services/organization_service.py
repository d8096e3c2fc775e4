# Overview: Organization (tenant) lifecycle and GST settings.

from __future__ import annotations

import re
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Organization, Profile
from ..time_utils import resolve_zone
from .concurrency import lock_for_update, run_unit
from .tax_service import validate_gstin

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,62}$")

PROFILE_ROLES = ("owner", "admin", "staff")

SETTINGS_FIELDS = ("name", "gstin", "state_code", "timezone", "gst_enabled", "gst_inclusive")

INVOICE_PREFIX = "INV"


def _check_state_code(value: Any) -> str:
    code = str(value).strip()
    if len(code) != 2 or not code.isdigit():
        raise ValidationError("state_code must be a 2-digit GST state code")
    return code


def _check_timezone(value: Any) -> str:
    try:
        resolve_zone(value)
    except ValueError as exc:
        raise ValidationError(str(exc))
    return value


def _check_bool(field: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def create_organization(
    name: str,
    slug: str,
    *,
    gstin: Optional[str] = None,
    state_code: Optional[str] = None,
    timezone: str = "Asia/Kolkata",
    gst_enabled: bool = True,
    gst_inclusive: bool = False,
) -> Organization:
    if not name or not str(name).strip():
        raise ValidationError("name is required")
    slug = (slug or "").strip().lower()
    if not _SLUG_RE.match(slug):
        raise ValidationError("slug must be 2-63 lowercase letters, digits or dashes")

    if gstin:
        gstin = validate_gstin(gstin)
        # Seller state is encoded in the GSTIN's first two digits
        state_code = state_code or gstin[:2]
    if state_code is not None:
        state_code = _check_state_code(state_code)

    org = Organization(
        name=str(name).strip(),
        slug=slug,
        gstin=gstin,
        state_code=state_code,
        timezone=_check_timezone(timezone),
        gst_enabled=_check_bool("gst_enabled", gst_enabled),
        gst_inclusive=_check_bool("gst_inclusive", gst_inclusive),
        is_active=True,
    )

    def _op():
        db.session.add(org)
        try:
            db.session.flush()
        except IntegrityError:
            raise ConflictError("Organization slug already exists", details={"slug": slug})
        return org

    return run_unit(_op, commit=True)


def get_organization(org_id: int, *, active_only: bool = True) -> Organization:
    query = db.session.query(Organization).filter_by(id=org_id)
    if active_only:
        query = query.filter_by(is_active=True)
    org = query.first()
    if not org:
        raise NotFoundError("Organization not found")
    return org


def allocate_invoice_number(org_id: int) -> str:
    """
    Hand out the org's next invoice number ("INV-000042").

    Runs inside the caller's write unit, so the counter moves only if the sale
    commits and a rejected sale never burns a number.
    """
    result = db.session.execute(
        update(Organization)
        .where(Organization.id == org_id)
        .values(next_invoice_number=Organization.next_invoice_number + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Organization not found")
    current = db.session.query(Organization.next_invoice_number).filter_by(id=org_id).scalar()
    return f"{INVOICE_PREFIX}-{current - 1:06d}"


def list_organizations() -> list[Organization]:
    return db.session.query(Organization).order_by(Organization.id.asc()).all()


def update_settings(org_id: int, patch: dict) -> Organization:
    """
    Update GST / locale settings. Only affects sales recorded afterwards:
    every Sale stores the rate and split it was computed with.
    """
    if not isinstance(patch, dict):
        raise ValidationError("Invalid JSON payload")
    for key in patch:
        if key not in SETTINGS_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")

    def _op():
        org = lock_for_update(
            db.session.query(Organization).filter_by(id=org_id, is_active=True)
        ).first()
        if not org:
            raise NotFoundError("Organization not found")

        if "name" in patch:
            if not patch["name"] or not str(patch["name"]).strip():
                raise ValidationError("name cannot be blank")
            org.name = str(patch["name"]).strip()
        if "gstin" in patch:
            org.gstin = validate_gstin(patch["gstin"]) if patch["gstin"] else None
            if org.gstin and "state_code" not in patch:
                org.state_code = org.gstin[:2]
        if "state_code" in patch:
            org.state_code = _check_state_code(patch["state_code"]) if patch["state_code"] else None
        if "timezone" in patch:
            org.timezone = _check_timezone(patch["timezone"])
        if "gst_enabled" in patch:
            org.gst_enabled = _check_bool("gst_enabled", patch["gst_enabled"])
        if "gst_inclusive" in patch:
            org.gst_inclusive = _check_bool("gst_inclusive", patch["gst_inclusive"])

        db.session.flush()
        return org

    return run_unit(_op, commit=True)


def create_profile(org_id: int, email: str, *, name: Optional[str] = None, role: str = "staff") -> Profile:
    if role not in PROFILE_ROLES:
        raise ValidationError(f"role must be one of {', '.join(PROFILE_ROLES)}")
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("email must be a valid address")

    def _op():
        get_organization(org_id)
        profile = Profile(org_id=org_id, email=email, name=name, role=role)
        db.session.add(profile)
        try:
            db.session.flush()
        except IntegrityError:
            raise ConflictError("Profile email already exists in organization", details={"email": email})
        return profile

    return run_unit(_op, commit=True)


def get_profile(org_id: int, profile_id: int) -> Profile:
    profile = db.session.query(Profile).filter_by(id=profile_id, org_id=org_id).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile
