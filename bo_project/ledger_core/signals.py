"""Only drafts leave the database; posted documents are voided or reversed."""

from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete

from .models import Bill, Ctro, Invoice, PaymentVoucher, Receipt

# Accounts and periods used by journals are already held by on_delete=PROTECT.


# pre_delete signal auto-fires just before Django deletes a model instance
def prevent_delete_non_draft_document(sender, instance, **kwargs):
    if instance.status != "draft":
        raise ValidationError("Only draft documents can be deleted.")


for document_model in (Invoice, Bill, Receipt, PaymentVoucher, Ctro):
    pre_delete.connect(
        prevent_delete_non_draft_document,
        sender=document_model,
        dispatch_uid=f"ledger_core_delete_guard_{document_model.__name__}",
    )
