# Overview: Threaded concurrency tests against a file-backed SQLite database.

"""
Concurrency tests for KhataPlus.

Each test runs real threads, each in its own app context and DB session,
against a temporary SQLite file (in-memory databases share one connection
and cannot show write contention).
"""
import os
import tempfile
import threading
import unittest
from decimal import Decimal

from khataplus import create_app
from khataplus.errors import InsufficientStockError
from khataplus.extensions import db
from khataplus.models import Organization, InventoryItem, Customer, Sale
from khataplus.services import ledger_service, sales_service


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            org = Organization(name="Concurrency Kirana", slug="concurrency-kirana", state_code="27")
            db.session.add(org)
            db.session.commit()
            self.org_id = org.id

            item = InventoryItem(
                org_id=self.org_id,
                sku="CONCUR-1",
                name="Last packets",
                buy_price=Decimal("40.00"),
                gst_percentage=Decimal("5"),
                stock=5,
            )
            customer = Customer(org_id=self.org_id, name="Busy Customer", balance=Decimal("0.00"))
            db.session.add_all([item, customer])
            db.session.commit()
            self.item_id = item.id
            self.customer_id = customer.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_together(self, target, count):
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(count)

        def worker():
            with self.app.app_context():
                try:
                    barrier.wait()
                    target()
                    with lock:
                        results.append("ok")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_concurrent_sales_never_oversell(self):
        results = self._run_together(
            lambda: sales_service.record_sale(self.org_id, self.item_id, 3, "50", "Cash"),
            2,
        )

        succeeded = [r for r in results if r == "ok"]
        rejected = [r for r in results if isinstance(r, InsufficientStockError)]
        self.assertEqual(len(succeeded), 1, results)
        self.assertEqual(len(rejected), 1, results)

        with self.app.app_context():
            item = db.session.get(InventoryItem, self.item_id)
            self.assertEqual(item.stock, 2)
            self.assertEqual(db.session.query(Sale).count(), 1)

    def test_concurrent_khata_postings_all_land(self):
        results = self._run_together(
            lambda: ledger_service.post_transaction(
                "customer", self.org_id, self.customer_id, "credit", "10"
            ),
            8,
        )

        self.assertTrue(all(r == "ok" for r in results), results)
        with self.app.app_context():
            balance = ledger_service.verify_balance("customer", self.org_id, self.customer_id)
            self.assertEqual(balance, Decimal("80.00"))


if __name__ == "__main__":
    unittest.main()
