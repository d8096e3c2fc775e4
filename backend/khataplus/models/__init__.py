from .tenancy import Organization, Profile
from .inventory import InventoryItem
from .sales import Sale
from .ledger import Customer, KhataTransaction, Supplier, SupplierTransaction
from .reporting import Expense, DailyReport

__all__ = [
    'Organization', 'Profile',
    'InventoryItem',
    'Sale',
    'Customer', 'KhataTransaction', 'Supplier', 'SupplierTransaction',
    'Expense', 'DailyReport',
]
