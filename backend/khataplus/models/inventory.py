from __future__ import annotations

from ..extensions import db
from ..money import money_str
from khataplus.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Stock-keeping item with a mutable on-hand count.

    The stock column is only ever decremented through a conditional UPDATE
    (stock = stock - q WHERE stock >= q), and the CHECK constraint backs that
    up: on-hand may never go negative, even under concurrent sales.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("org_id", "sku", name="uq_inventory_org_sku"),
        db.CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),
        db.Index("ix_inventory_org_name", "org_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    buy_price = db.Column(db.Numeric(14, 2), nullable=False)
    sell_price = db.Column(db.Numeric(14, 2), nullable=True)
    gst_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    hsn_code = db.Column(db.String(8), nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=True)  # Low-stock alert threshold

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("inventory_items", lazy=True))

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} sku={self.sku!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "sku": self.sku,
            "name": self.name,
            "buy_price": money_str(self.buy_price),
            "sell_price": money_str(self.sell_price),
            "gst_percentage": money_str(self.gst_percentage),
            "hsn_code": self.hsn_code,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
