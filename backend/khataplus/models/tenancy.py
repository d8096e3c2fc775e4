from __future__ import annotations

from ..extensions import db
from khataplus.time_utils import to_utc_z

class Organization(db.Model):
    """
    Multi-tenant root: Every tenant is an Organization (one shop).

    All inventory, sales, ledgers and reports belong to exactly one
    organization and every query is scoped by org_id.

    GST settings live here and are read explicitly into a TaxConfig at the
    moment a sale is recorded; changing them later never rewrites history.
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Seller GSTIN and its two-digit state code (first two GSTIN digits)
    gstin = db.Column(db.String(15), nullable=True)
    state_code = db.Column(db.String(2), nullable=True)

    # Business-day attribution for daily reports
    timezone = db.Column(db.String(64), nullable=False, default="Asia/Kolkata")

    gst_enabled = db.Column(db.Boolean, nullable=False, default=True)
    gst_inclusive = db.Column(db.Boolean, nullable=False, default=False)

    # Next invoice number to hand out; advanced by a conditional UPDATE
    next_invoice_number = db.Column(db.Integer, nullable=False, default=1)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "gstin": self.gstin,
            "state_code": self.state_code,
            "timezone": self.timezone,
            "gst_enabled": self.gst_enabled,
            "gst_inclusive": self.gst_inclusive,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Profile(db.Model):
    """
    Staff member of an organization, used for created_by attribution only.

    Sign-in and session handling live outside this service.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        db.UniqueConstraint("org_id", "email", name="uq_profiles_org_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(128), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="staff")  # owner, admin, staff

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("profiles", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }
