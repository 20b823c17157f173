from .account import Account
from .auditlog import AuditLog
from .bill import Bill, BillLine
from .ctro import CocoaAgent, Ctro, CtroLine, CtroTotals
from .customer import Customer
from .document import Document, DocumentJournal
from .entitymembership import Company, CompanyMembership, User
from .invoice import Invoice, InvoiceLine
from .journal import JournalEntry, JournalLine
from .mapping import ControlAccounts, CtroAccounts, TaxAccounts, TaxRate
from .period import Period
from .ratecard import (Depot, District, RateCard, RateCardLine, Region,
                       TakeoverCenter)
from .sequence import CompanySequence
from .settlement import (PaymentVoucher, Receipt, ReceiptAllocation,
                         VoucherAllocation)
from .supplier import Supplier
