from decimal import Decimal
from django.db import models
from .account import Account
from .bill import Bill
from .customer import Customer
from .document import Document
from .invoice import Invoice
from .supplier import Supplier

ZERO = Decimal("0.00")


# ---------- Receipt (customer pays us) ----------
class Receipt(Document):
    doc_type = "receipt"

    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="receipts"
    )
    # Cash / bank account the money lands in
    cash_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="+")
    amount_received = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    # Tax withheld by the customer (we hold a WHT credit certificate)
    wht_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_allocated = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "doc_no"], name="uq_receipt_company_number"
            )
        ]

    @property
    def party(self):
        return self.customer


class ReceiptAllocation(models.Model):
    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name="allocations")
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="allocations")
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="receipt_alloc_amount_positive"
            ),
        ]

    def __str__(self):
        return f"{self.receipt_id} → INV {self.invoice_id}: {self.amount}"


# ---------- Payment voucher (we pay a supplier) ----------
class PaymentVoucher(Document):
    doc_type = "voucher"

    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, related_name="vouchers"
    )
    cash_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="+")
    amount_paid = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    # Tax we withhold and owe to the revenue authority
    wht_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_allocated = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "doc_no"], name="uq_voucher_company_number"
            )
        ]

    @property
    def party(self):
        return self.supplier


class VoucherAllocation(models.Model):
    voucher = models.ForeignKey(PaymentVoucher, on_delete=models.CASCADE, related_name="allocations")
    bill = models.ForeignKey(Bill, on_delete=models.PROTECT, related_name="allocations")
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="voucher_alloc_amount_positive"
            ),
        ]

    def __str__(self):
        return f"{self.voucher_id} → BILL {self.bill_id}: {self.amount}"
