from __future__ import annotations

from ..extensions import db
from ..money import money_str, unit_price_str
from khataplus.time_utils import to_utc_z

class Sale(db.Model):
    """
    One invoice line: an item, a quantity and the tax split frozen at sale time.

    WHY frozen: gst_rate, tax_mode, jurisdiction, the entered unit_price and
    unit_cost are captured when the sale is recorded; quantity edits reprice
    from these and nothing else. Later changes to item prices, GST rates or
    org settings never alter historical profit or an invoice already handed
    to a customer.

    Lines recorded together share a batch_id (the GroupedSale id) and an
    invoice_no, a short per-org sequential number printed on the invoice and
    filed in GST returns.

    INVARIANTS (checked by sales_service before insert):
    - total_amount == quantity * sale_price + gst_amount   (+/- 0.01)
    - profit == quantity * (sale_price - unit_cost)        (+/- 0.01)
    - payment_status only moves pending -> paid
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        # Daily report rebuilds scan by business date
        db.Index("ix_sales_org_sale_date", "org_id", "sale_date"),
        db.Index("ix_sales_org_batch", "org_id", "batch_id"),
        db.Index("ix_sales_org_invoice", "org_id", "invoice_no"),
        db.Index("ix_sales_org_inventory_date", "org_id", "inventory_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False, index=True)
    batch_id = db.Column(db.String(36), nullable=False)
    invoice_no = db.Column(db.String(16), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(18, 8), nullable=False)  # As entered: pre-tax or tax-inclusive per tax_mode
    sale_price = db.Column(db.Numeric(18, 8), nullable=False)  # Unit price, pre-tax (taxable / quantity)
    unit_cost = db.Column(db.Numeric(14, 2), nullable=False)  # buy_price captured at sale time

    # Tax split (all amounts in rupees, two decimal places)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    tax_mode = db.Column(db.String(16), nullable=False, default="exclusive")  # exclusive, inclusive
    jurisdiction = db.Column(db.String(8), nullable=False, default="intra")  # intra (CGST+SGST), inter (IGST)
    taxable_amount = db.Column(db.Numeric(14, 2), nullable=False)
    gst_amount = db.Column(db.Numeric(14, 2), nullable=False)
    cgst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    sgst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    igst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    profit = db.Column(db.Numeric(14, 2), nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)  # Cash, UPI, Card, Credit
    payment_status = db.Column(db.String(16), nullable=False, default="paid", index=True)  # pending, paid

    # Counterpart (optional; GSTIN makes the invoice B2B)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_gstin = db.Column(db.String(15), nullable=True, index=True)
    place_of_supply = db.Column(db.String(2), nullable=True)
    hsn_code = db.Column(db.String(8), nullable=True)

    # Business date in the organization's timezone; created_at is UTC system time
    sale_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    inventory_item = db.relationship("InventoryItem", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} batch={self.batch_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "inventory_id": self.inventory_id,
            "batch_id": self.batch_id,
            "invoice_no": self.invoice_no,
            "quantity": self.quantity,
            "unit_price": unit_price_str(self.unit_price),
            "sale_price": unit_price_str(self.sale_price),
            "unit_cost": money_str(self.unit_cost),
            "gst_rate": money_str(self.gst_rate),
            "tax_mode": self.tax_mode,
            "jurisdiction": self.jurisdiction,
            "taxable_amount": money_str(self.taxable_amount),
            "gst_amount": money_str(self.gst_amount),
            "cgst_amount": money_str(self.cgst_amount),
            "sgst_amount": money_str(self.sgst_amount),
            "igst_amount": money_str(self.igst_amount),
            "total_amount": money_str(self.total_amount),
            "profit": money_str(self.profit),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_gstin": self.customer_gstin,
            "place_of_supply": self.place_of_supply,
            "hsn_code": self.hsn_code,
            "sale_date": self.sale_date.isoformat() if self.sale_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
            "created_by": self.created_by,
        }
