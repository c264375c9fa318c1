from .auth import User, Permission, StoreUserPermission, SessionToken
from .tenancy import Store, StoreUser
from .catalog import IncomeCategory, ExpenseCategory, Vendor, Client
from .expenses import Expense, ExpensePayment, ExpenseLog
from .purchases import Purchase, PurchaseLog
from .sales import Sale, SaleLog
from .receivables import Receivable, ReceivablePayment, ReceivableLog
from .sequencing import SequenceLock

__all__ = [
    'User', 'Permission', 'StoreUserPermission', 'SessionToken',
    'Store', 'StoreUser',
    'IncomeCategory', 'ExpenseCategory', 'Vendor', 'Client',
    'Expense', 'ExpensePayment', 'ExpenseLog',
    'Purchase', 'PurchaseLog',
    'Sale', 'SaleLog',
    'Receivable', 'ReceivablePayment', 'ReceivableLog',
    'SequenceLock',
]
