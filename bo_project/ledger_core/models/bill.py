from decimal import Decimal
from django.db import models
from .account import Account
from .document import Document
from .supplier import Supplier


class Bill(Document):  # Supplier invoice (AP side)
    doc_type = "bill"

    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, related_name="bills"
    )
    supplier_ref = models.CharField(max_length=64, blank=True, default="")
    due_date = models.DateField(null=True, blank=True)

    # Totals projection (bills carry no tax, gross == net)
    total_net = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_gross = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        indexes = [
            models.Index(fields=["company", "doc_no"], name="bill_company_no_idx"),
            models.Index(fields=["company", "supplier"], name="bill_company_supplier_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "doc_no"], name="uq_bill_company_number"
            )
        ]

    @property
    def party(self):
        return self.supplier

    @property
    def total(self):
        return self.total_gross


class BillLine(models.Model):
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="lines")
    description = models.CharField(max_length=400, blank=True, default="")
    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=4)
    expense_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="+")
    net_amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0), name="bill_line_quantity_positive"
            ),
        ]

    def __str__(self):
        return f"{self.description} {self.net_amount}"
