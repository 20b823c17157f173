import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

import ledger_core.managers


def money(default=Decimal("0.00")):
    return models.DecimalField(decimal_places=2, default=default, max_digits=18)


def user_fk():
    return models.ForeignKey(
        blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
        related_name="+", to=settings.AUTH_USER_MODEL,
    )


def document_fields():
    """Columns of the abstract Document header."""
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("doc_no", models.CharField(max_length=40)),
        ("doc_date", models.DateField()),
        ("narration", models.TextField(blank=True, default="")),
        ("status", models.CharField(
            choices=[("draft", "Draft"), ("submitted", "Submitted"), ("approved", "Approved"),
                     ("posted", "Posted"), ("reversed", "Reversed"), ("voided", "Voided")],
            default="draft", max_length=10,
        )),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("submitted_at", models.DateTimeField(blank=True, null=True)),
        ("posted_at", models.DateTimeField(blank=True, null=True)),
        ("cancelled_at", models.DateTimeField(blank=True, null=True)),
        ("status_note", models.TextField(blank=True, default="")),
        ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
        ("period", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.period")),
        ("created_by", user_fk()),
        ("submitted_by", user_fk()),
        ("posted_by", user_fk()),
        ("cancelled_by", user_fk()),
    ]


def account_fk(null=True):
    return models.ForeignKey(
        blank=null, null=null, on_delete=django.db.models.deletion.PROTECT,
        related_name="+", to="ledger_core.account",
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        # ---------- Tenancy & identity ----------
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("currency_code", models.CharField(default="GHS", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"verbose_name_plural": "companies"},
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions without explicitly assigning them.",
                    verbose_name="superuser status",
                )),
                ("username", models.CharField(
                    error_messages={"unique": "A user with that username already exists."},
                    help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                    max_length=150, unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name="username",
                )),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(
                    default=False,
                    help_text="Designates whether the user can log into this admin site.",
                    verbose_name="staff status",
                )),
                ("is_active", models.BooleanField(
                    default=True,
                    help_text="Designates whether this user should be treated as active. "
                              "Unselect this instead of deleting accounts.",
                    verbose_name="active",
                )),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("default_company", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="default_users", to="ledger_core.company",
                )),
                ("groups", models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will get all permissions "
                              "granted to each of their groups.",
                    related_name="user_set", related_query_name="user", to="auth.group",
                    verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True, help_text="Specific permissions for this user.",
                    related_name="user_set", related_query_name="user", to="auth.permission",
                    verbose_name="user permissions",
                )),
            ],
            options={
                "indexes": [models.Index(fields=["default_company"], name="user_default_company_idx")],
            },
            managers=[
                ("objects", ledger_core.managers.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="CompanyMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(
                    choices=[("admin", "Admin"), ("accounts_officer", "Accounts Officer"),
                             ("manager", "Manager"), ("director", "Director"), ("auditor", "Auditor")],
                    max_length=20,
                )),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="memberships",
                    to="ledger_core.company",
                )),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="memberships",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "indexes": [models.Index(fields=["company", "user"], name="membership_company_user_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "company", "role"), name="uq_user_company_role"),
                ],
            },
        ),
        # ---------- Chart of accounts & periods ----------
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32)),
                ("name", models.CharField(max_length=200)),
                ("ac_type", models.CharField(
                    choices=[("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity"),
                             ("income", "Income"), ("expense", "Expense")],
                    max_length=10,
                )),
                ("normal_balance", models.CharField(
                    choices=[("debit", "Debit"), ("credit", "Credit")], default="debit", max_length=6,
                )),
                ("is_active", models.BooleanField(default=True)),
                ("is_control_account", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "ordering": ("company", "code"),
                "indexes": [
                    models.Index(fields=["company", "ac_type"], name="account_company_type_idx"),
                    models.Index(fields=["company", "code"], name="account_company_code_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uq_company_account_code"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Period",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveIntegerField()),
                ("month", models.PositiveSmallIntegerField()),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(
                    choices=[("open", "Open"), ("closed", "Closed")], default="open", max_length=10,
                )),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("reopened_at", models.DateTimeField(blank=True, null=True)),
                ("reopen_reason", models.TextField(blank=True, default="")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.company")),
                ("closed_by", user_fk()),
                ("reopened_by", user_fk()),
            ],
            options={
                "ordering": ("company", "start_date"),
                "indexes": [
                    models.Index(fields=["company", "start_date"], name="period_company_start_idx"),
                    models.Index(fields=["company", "status"], name="period_company_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "year", "month"), name="uq_company_period_month"),
                ],
            },
        ),
        # ---------- Journals ----------
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_date", models.DateField()),
                ("narration", models.TextField(blank=True, default="")),
                ("status", models.CharField(
                    choices=[("draft", "Draft"), ("approved", "Approved"), ("posted", "Posted"),
                             ("reversed", "Reversed")],
                    default="draft", max_length=10,
                )),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("reversed_at", models.DateTimeField(blank=True, null=True)),
                ("source_type", models.CharField(default="manual", max_length=20)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("period", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.period")),
                ("created_by", user_fk()),
                ("approved_by", user_fk()),
                ("posted_by", user_fk()),
                ("reversed_by", user_fk()),
                ("reversal_of", models.OneToOneField(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="reversal", to="ledger_core.journalentry",
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "entry_date"], name="je_company_date_idx"),
                    models.Index(fields=["company", "status"], name="je_company_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("debit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.account")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("journal", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="lines",
                    to="ledger_core.journalentry",
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "account"], name="jl_company_account_idx"),
                    models.Index(fields=["company", "journal"], name="jl_company_journal_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="jl_non_negative_amounts",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            _connector="OR",
                        ),
                        name="jl_debit_xor_credit",
                    ),
                ],
            },
        ),
        # ---------- Parties ----------
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("contact_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("payment_terms_days", models.IntegerField(default=30)),
                ("tax_exempt", models.BooleanField(default=False)),
                ("wht_applicable", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="customer_company_name_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "name"), name="uq_company_customer_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("contact_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("payment_terms_days", models.IntegerField(default=30)),
                ("wht_applicable", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="supplier_company_name_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "name"), name="uq_company_supplier_name"),
                ],
            },
        ),
        # ---------- Cocoa geography & rate cards ----------
        migrations.CreateModel(
            name="Region",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uq_company_region")],
            },
        ),
        migrations.CreateModel(
            name="District",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("region", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="districts", to="ledger_core.region",
                )),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("region", "name"), name="uq_region_district")],
            },
        ),
        migrations.CreateModel(
            name="Depot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("district", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="depots", to="ledger_core.district",
                )),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uq_company_depot")],
            },
        ),
        migrations.CreateModel(
            name="TakeoverCenter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "name"), name="uq_company_takeover_center"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RateCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("season", models.CharField(max_length=20)),
                ("bag_weight_kg", models.DecimalField(decimal_places=2, default=Decimal("62.50"), max_digits=8)),
                ("bags_per_tonne", models.DecimalField(decimal_places=3, default=Decimal("16"), max_digits=8)),
                ("effective_from", models.DateField()),
                ("effective_to", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "effective_from"], name="ratecard_company_from_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RateCardLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("producer_price_per_tonne", models.DecimalField(decimal_places=4, max_digits=18)),
                ("buyer_margin_per_tonne", models.DecimalField(decimal_places=4, max_digits=18)),
                ("secondary_evac_cost_per_tonne", models.DecimalField(decimal_places=4, max_digits=18)),
                ("takeover_price_per_tonne", models.DecimalField(decimal_places=4, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("rate_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.ratecard",
                )),
                ("region", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.region",
                )),
                ("district", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.district",
                )),
                ("depot", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="+", to="ledger_core.depot",
                )),
                ("takeover_center", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.takeovercenter",
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["rate_card", "depot", "takeover_center"], name="ratecardline_key_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CocoaAgent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("role_type", models.CharField(blank=True, default="", max_length=40)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("district", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to="ledger_core.district",
                )),
            ],
        ),
        # ---------- Invoices & bills ----------
        migrations.CreateModel(
            name="Invoice",
            fields=document_fields() + [
                ("due_date", models.DateField(blank=True, null=True)),
                ("vat_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("nhil_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("getfund_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("total_net", money()),
                ("vat_amount", money()),
                ("nhil_amount", money()),
                ("getfund_amount", money()),
                ("total_gross", money()),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.customer",
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "doc_no"], name="invoice_company_no_idx"),
                    models.Index(fields=["company", "customer"], name="invoice_company_customer_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "doc_no"), name="uq_invoice_company_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=18)),
                ("unit_price", models.DecimalField(decimal_places=4, max_digits=18)),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("income_account", account_fk(null=False)),
                ("invoice", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.invoice",
                )),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="inv_line_quantity_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=document_fields() + [
                ("supplier_ref", models.CharField(blank=True, default="", max_length=64)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("total_net", money()),
                ("total_gross", money()),
                ("supplier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="bills", to="ledger_core.supplier",
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "doc_no"], name="bill_company_no_idx"),
                    models.Index(fields=["company", "supplier"], name="bill_company_supplier_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "doc_no"), name="uq_bill_company_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BillLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=18)),
                ("unit_price", models.DecimalField(decimal_places=4, max_digits=18)),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("expense_account", account_fk(null=False)),
                ("bill", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.bill",
                )),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="bill_line_quantity_positive"),
                ],
            },
        ),
        # ---------- Settlements ----------
        migrations.CreateModel(
            name="Receipt",
            fields=document_fields() + [
                ("amount_received", money()),
                ("wht_amount", money()),
                ("total_allocated", money()),
                ("cash_account", account_fk(null=False)),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="ledger_core.customer",
                )),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "doc_no"), name="uq_receipt_company_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReceiptAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("invoice", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="allocations", to="ledger_core.invoice",
                )),
                ("receipt", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="ledger_core.receipt",
                )),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="receipt_alloc_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentVoucher",
            fields=document_fields() + [
                ("amount_paid", money()),
                ("wht_amount", money()),
                ("total_allocated", money()),
                ("cash_account", account_fk(null=False)),
                ("supplier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="vouchers", to="ledger_core.supplier",
                )),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "doc_no"), name="uq_voucher_company_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VoucherAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("bill", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="allocations", to="ledger_core.bill",
                )),
                ("voucher", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="allocations",
                    to="ledger_core.paymentvoucher",
                )),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="voucher_alloc_amount_positive"),
                ],
            },
        ),
        # ---------- CTRO ----------
        migrations.CreateModel(
            name="Ctro",
            fields=document_fields() + [
                ("season", models.CharField(blank=True, default="", max_length=20)),
                ("evacuation_payment_mode", models.CharField(
                    choices=[("payable", "Evacuation payable"), ("cash", "Cash / bank")],
                    default="payable", max_length=10,
                )),
                ("remarks", models.TextField(blank=True, default="")),
                ("agent", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="ctros", to="ledger_core.cocoaagent",
                )),
                ("depot", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="+", to="ledger_core.depot",
                )),
                ("evacuation_cash_account", account_fk()),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "doc_no"), name="uq_ctro_company_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CtroLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_date", models.DateField()),
                ("waybill_no", models.CharField(blank=True, default="", max_length=64)),
                ("bags", models.PositiveIntegerField()),
                ("tonnage", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("evacuation_treatment", models.CharField(
                    choices=[("company_paid", "Company paid"), ("deducted", "Deducted from agent")],
                    default="company_paid", max_length=15,
                )),
                ("rate_status", models.CharField(
                    choices=[("rated", "Rated"), ("no_published_rate", "No published rate")],
                    default="rated", max_length=20,
                )),
                ("bags_per_tonne", models.DecimalField(decimal_places=3, default=Decimal("16"), max_digits=8)),
                ("applied_producer_price_per_tonne", models.DecimalField(decimal_places=4, default=Decimal("0.00"), max_digits=18)),
                ("applied_buyer_margin_per_tonne", models.DecimalField(decimal_places=4, default=Decimal("0.00"), max_digits=18)),
                ("applied_secondary_evac_cost_per_tonne", models.DecimalField(decimal_places=4, default=Decimal("0.00"), max_digits=18)),
                ("applied_takeover_price_per_tonne", models.DecimalField(decimal_places=4, default=Decimal("0.00"), max_digits=18)),
                ("producer_price_value", money()),
                ("buyers_margin_value", money()),
                ("evacuation_cost", money()),
                ("line_total", money()),
                ("ctro", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.ctro",
                )),
                ("depot", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="+", to="ledger_core.depot",
                )),
                ("takeover_center", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.takeovercenter",
                )),
                ("district", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to="ledger_core.district",
                )),
                ("rate_card", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="+", to="ledger_core.ratecard",
                )),
                ("rate_card_line", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="+", to="ledger_core.ratecardline",
                )),
            ],
            options={"ordering": ("id",)},
        ),
        migrations.CreateModel(
            name="CtroTotals",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_bags", models.PositiveIntegerField(default=0)),
                ("total_tonnage", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=18)),
                ("total_producer_value", money()),
                ("total_buyers_margin", money()),
                ("total_evacuation", money()),
                ("total_evacuation_company_paid", money()),
                ("total_evacuation_deducted", money()),
                ("grand_total", money()),
                ("unrated_lines", models.PositiveIntegerField(default=0)),
                ("computed_at", models.DateTimeField(auto_now=True)),
                ("ctro", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name="totals", to="ledger_core.ctro",
                )),
            ],
        ),
        # ---------- Document ↔ journal ----------
        migrations.CreateModel(
            name="DocumentJournal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_type", models.CharField(
                    choices=[("invoice", "Invoice"), ("bill", "Bill"), ("receipt", "Receipt"),
                             ("voucher", "Payment voucher"), ("ctro", "CTRO")],
                    max_length=10,
                )),
                ("doc_id", models.BigIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("journal", models.OneToOneField(
                    on_delete=django.db.models.deletion.PROTECT, related_name="document_link",
                    to="ledger_core.journalentry",
                )),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("doc_type", "doc_id"), name="uq_doc_journal_document"),
                ],
            },
        ),
        # ---------- Account mappings & tax ----------
        migrations.CreateModel(
            name="ControlAccounts",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("company", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name="+", to="ledger_core.company",
                )),
                ("ar_control", account_fk()),
                ("ap_control", account_fk()),
                ("wht_receivable", account_fk()),
                ("wht_payable", account_fk()),
            ],
            options={"verbose_name_plural": "control accounts"},
        ),
        migrations.CreateModel(
            name="TaxAccounts",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("company", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name="+", to="ledger_core.company",
                )),
                ("vat_output", account_fk()),
                ("nhil_output", account_fk()),
                ("getfund_output", account_fk()),
            ],
            options={"verbose_name_plural": "tax accounts"},
        ),
        migrations.CreateModel(
            name="CtroAccounts",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("company", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name="+", to="ledger_core.company",
                )),
                ("cocoa_stock_field", account_fk()),
                ("cocoa_stock_margin", account_fk()),
                ("cocoa_stock_evacuation", account_fk()),
                ("advances_to_agents", account_fk()),
                ("buyers_margin_income", account_fk()),
                ("evacuation_payable", account_fk()),
            ],
            options={"verbose_name_plural": "CTRO accounts"},
        ),
        migrations.CreateModel(
            name="TaxRate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("effective_from", models.DateField()),
                ("vat_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("nhil_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("getfund_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "ordering": ("company", "-effective_from"),
                "constraints": [
                    models.UniqueConstraint(fields=("company", "effective_from"), name="uq_company_tax_rate_date"),
                ],
            },
        ),
        # ---------- Audit & numbering ----------
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entity", models.CharField(max_length=40)),
                ("entity_id", models.CharField(max_length=64)),
                ("action", models.CharField(max_length=40)),
                ("before", models.JSONField(blank=True, null=True)),
                ("after", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
                ("company", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    to="ledger_core.company",
                )),
            ],
            options={
                "ordering": ("created_at", "id"),
                "indexes": [
                    models.Index(fields=["company", "created_at"], name="audit_company_created_idx"),
                    models.Index(fields=["entity", "entity_id"], name="audit_entity_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CompanySequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("prefix", models.CharField(max_length=10)),
                ("year", models.PositiveIntegerField()),
                ("last_value", models.PositiveIntegerField(default=0)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "prefix", "year"), name="uq_company_sequence"),
                ],
            },
        ),
    ]
