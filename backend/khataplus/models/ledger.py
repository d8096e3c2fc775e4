from __future__ import annotations

from ..extensions import db
from ..money import money_str
from khataplus.time_utils import to_utc_z


class Customer(db.Model):
    """
    Khata account: a customer the shop extends credit to.

    MULTI-TENANT: Customers are scoped to organizations via org_id.

    WHY balance is cached: statements and customer lists need the current
    receivable without folding every transaction. The cache is written ONLY by
    ledger_service.apply_transaction / reverse_transaction and is re-verified
    against the fold of khata_transactions inside the same DB transaction.
    Positive balance = the customer owes the shop.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_org_name", "org_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(500), nullable=True)

    balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    organization = db.relationship("Organization", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "balance": money_str(self.balance),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class KhataTransaction(db.Model):
    """
    Append-only customer ledger entry.

    TRANSACTION TYPES:
    - credit: goods given on credit (balance goes up)
    - payment: customer paid back (balance goes down)

    IMMUTABLE: amount and type are never updated and rows are never deleted.
    A mistaken entry is neutralised by reversal (reversed_at set), which
    removes it from the fold without losing the audit trail.
    """
    __tablename__ = "khata_transactions"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_khata_transactions_amount_positive"),
        db.Index("ix_khata_transactions_customer_created", "customer_id", "created_at", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)  # credit, payment
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    note = db.Column(db.String(500), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    reversed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reversal_reason = db.Column(db.String(255), nullable=True)

    customer = db.relationship("Customer", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "customer_id": self.customer_id,
            "type": self.type,
            "amount": money_str(self.amount),
            "note": self.note,
            "sale_id": self.sale_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "reversed_at": to_utc_z(self.reversed_at) if self.reversed_at else None,
            "reversal_reason": self.reversal_reason,
        }


class Supplier(db.Model):
    """
    Supplier account. Positive balance = the shop owes the supplier.

    Same cache discipline as Customer: only ledger_service writes balance.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_org_name", "org_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    gstin = db.Column(db.String(15), nullable=True)

    balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    organization = db.relationship("Organization", backref=db.backref("suppliers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "gstin": self.gstin,
            "balance": money_str(self.balance),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class SupplierTransaction(db.Model):
    """
    Append-only supplier ledger entry (purchase | payment).
    invoice_no is the supplier's bill number for purchases.
    """
    __tablename__ = "supplier_transactions"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_supplier_transactions_amount_positive"),
        db.Index("ix_supplier_transactions_supplier_created", "supplier_id", "created_at", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)  # purchase, payment
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    note = db.Column(db.String(500), nullable=True)
    invoice_no = db.Column(db.String(64), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    reversed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reversal_reason = db.Column(db.String(255), nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "supplier_id": self.supplier_id,
            "type": self.type,
            "amount": money_str(self.amount),
            "note": self.note,
            "invoice_no": self.invoice_no,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "reversed_at": to_utc_z(self.reversed_at) if self.reversed_at else None,
            "reversal_reason": self.reversal_reason,
        }
