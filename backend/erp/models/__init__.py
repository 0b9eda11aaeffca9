from .auth import User, SessionToken
from .catalog import Item, Brand, Manufacturer
from .parties import Vendor, Customer
from .purchases import (
    PurchaseOrder, PurchaseOrderItem, Bill, BillItem,
    PaymentMade, PaymentAllocation, VendorCredit, VendorCreditItem,
)
from .sales import (
    SalesOrder, SalesOrderItem, Invoice, InvoiceItem,
    DeliveryChallan, DeliveryChallanItem, PaymentReceived, PosSession,
)
from .stock import BinLocation, BillItemBinAllocation, InvoiceItemBinAllocation, TransferOrderAllocation
from .documents import DocumentSequence, TransferOrder, TransferOrderItem
from .operations import ExpenseCategory, Expense, Task, AIInsight, AIPrediction, ReportTemplate, GeneratedReport

__all__ = [
    'User', 'SessionToken',
    'Item', 'Brand', 'Manufacturer',
    'Vendor', 'Customer',
    'PurchaseOrder', 'PurchaseOrderItem', 'Bill', 'BillItem',
    'PaymentMade', 'PaymentAllocation', 'VendorCredit', 'VendorCreditItem',
    'SalesOrder', 'SalesOrderItem', 'Invoice', 'InvoiceItem',
    'DeliveryChallan', 'DeliveryChallanItem', 'PaymentReceived', 'PosSession',
    'BinLocation', 'BillItemBinAllocation', 'InvoiceItemBinAllocation', 'TransferOrderAllocation',
    'DocumentSequence', 'TransferOrder', 'TransferOrderItem',
    'ExpenseCategory', 'Expense', 'Task', 'AIInsight', 'AIPrediction', 'ReportTemplate', 'GeneratedReport',
]
