from decimal import Decimal
from django.db import models
from .account import Account
from .customer import Customer
from .document import Document

ZERO = Decimal("0.00")


class Invoice(Document):  # Represents a customer invoice
    doc_type = "invoice"

    customer = models.ForeignKey(
        Customer,
        # prevent deleting customer who has an invoice
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    due_date = models.DateField(null=True, blank=True)

    # Output tax rates as applied (from TaxRate on doc_date, zero if exempt)
    vat_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))
    nhil_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))
    getfund_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))

    # Totals projection, rewritten with the lines in the same transaction
    total_net = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    vat_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    nhil_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    getfund_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_gross = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        indexes = [
            models.Index(fields=["company", "doc_no"], name="invoice_company_no_idx"),
            models.Index(fields=["company", "customer"], name="invoice_company_customer_idx"),
        ]
        constraints = [
            # Within one company, each invoice number must be unique
            models.UniqueConstraint(
                fields=["company", "doc_no"], name="uq_invoice_company_number"
            )
        ]

    @property
    def party(self):
        return self.customer

    @property
    def total(self):
        return self.total_gross


class InvoiceLine(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="lines")
    description = models.CharField(max_length=400, blank=True, default="")
    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=4)
    income_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="+")
    # round2(quantity × unit_price)
    net_amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0), name="inv_line_quantity_positive"
            ),
        ]

    def __str__(self):
        return f"{self.description} {self.net_amount}"
