"""Shared setup for the database-backed tests."""
import calendar
import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from ..models import (Account, Company, CompanyMembership, ControlAccounts,
                      CtroAccounts, Customer, Depot, District, Period,
                      RateCard, RateCardLine, Region, Supplier, TakeoverCenter,
                      TaxAccounts, User)
from ..permissions import (ACCOUNTS_OFFICER, ADMIN, AUDITOR, DIRECTOR,
                           MANAGER)

ACCOUNTS = [
    ("1000", "Cash", "asset", "debit"),
    ("1100", "Accounts Receivable", "asset", "debit"),
    ("1150", "WHT Receivable", "asset", "debit"),
    ("1200", "Advances to Agents", "asset", "debit"),
    ("1300", "Cocoa Stock - Field", "asset", "debit"),
    ("1310", "Cocoa Stock - Margin", "asset", "debit"),
    ("1320", "Cocoa Stock - Evacuation", "asset", "debit"),
    ("2000", "Accounts Payable", "liability", "credit"),
    ("2100", "VAT Output", "liability", "credit"),
    ("2110", "NHIL Output", "liability", "credit"),
    ("2120", "GETFund Output", "liability", "credit"),
    ("2150", "WHT Payable", "liability", "credit"),
    ("2200", "Evacuation Payable", "liability", "credit"),
    ("4000", "Sales", "income", "credit"),
    ("4100", "Buyers Margin Income", "income", "credit"),
    ("5000", "Expenses", "expense", "debit"),
]


def make_company(name="Test Co", slug=None):
    return Company.objects.create(name=name, slug=slug or name.lower().replace(" ", "-"))


def make_user(company, username, *roles):
    user = User.objects.create_user(username=username, password="pw")
    for role in roles:
        CompanyMembership.objects.create(user=user, company=company, role=role)
    return user


def make_accounts(company):
    return {
        code: Account.objects.create(
            company=company, code=code, name=name, ac_type=ac_type, normal_balance=normal
        )
        for code, name, ac_type, normal in ACCOUNTS
    }


def make_periods(company, year):
    periods = {}
    for month in range(1, 13):
        periods[month] = Period.objects.create(
            company=company,
            year=year,
            month=month,
            start_date=datetime.date(year, month, 1),
            end_date=datetime.date(year, month, calendar.monthrange(year, month)[1]),
        )
    return periods


def configure_mappings(company, accounts):
    ControlAccounts.objects.create(
        company=company,
        ar_control=accounts["1100"],
        ap_control=accounts["2000"],
        wht_receivable=accounts["1150"],
        wht_payable=accounts["2150"],
    )
    TaxAccounts.objects.create(
        company=company,
        vat_output=accounts["2100"],
        nhil_output=accounts["2110"],
        getfund_output=accounts["2120"],
    )
    CtroAccounts.objects.create(
        company=company,
        cocoa_stock_field=accounts["1300"],
        cocoa_stock_margin=accounts["1310"],
        cocoa_stock_evacuation=accounts["1320"],
        advances_to_agents=accounts["1200"],
        buyers_margin_income=accounts["4100"],
        evacuation_payable=accounts["2200"],
    )


class LedgerTestCase(TestCase):
    """
    One company with a user per role, a chart of accounts, mappings,
    twelve open periods for the current year, a customer and a supplier.
    """

    def setUp(self):
        self.today = timezone.localdate()
        self.company = make_company()
        self.admin = make_user(self.company, "admin", ADMIN)
        self.officer = make_user(self.company, "officer", ACCOUNTS_OFFICER)
        self.manager = make_user(self.company, "manager", MANAGER)
        self.director = make_user(self.company, "director", DIRECTOR)
        self.auditor = make_user(self.company, "auditor", AUDITOR)

        self.accounts = make_accounts(self.company)
        self.cash = self.accounts["1000"]
        self.ar = self.accounts["1100"]
        self.ap = self.accounts["2000"]
        self.sales = self.accounts["4000"]
        self.expenses = self.accounts["5000"]
        configure_mappings(self.company, self.accounts)

        self.periods = make_periods(self.company, self.today.year)
        self.period = self.periods[self.today.month]

        self.customer = Customer.objects.create(company=self.company, name="Kofi Traders")
        self.supplier = Supplier.objects.create(company=self.company, name="Ama Supplies")

    # ---------- helpers ----------
    def lines(self, amount, debit_account=None, credit_account=None):
        amount = Decimal(amount)
        return [
            {"account_id": (debit_account or self.cash).pk, "debit": amount, "credit": 0},
            {"account_id": (credit_account or self.sales).pk, "debit": 0, "credit": amount},
        ]

    def invoice_payload(self, amount="1000.00", **extra):
        payload = {
            "customer_id": self.customer.pk,
            "doc_date": self.today,
            "lines": [
                {
                    "description": "Consulting",
                    "quantity": "1",
                    "unit_price": amount,
                    "income_account_id": self.sales.pk,
                }
            ],
        }
        payload.update(extra)
        return payload

    def posted_invoice(self, amount="1000.00", **extra):
        from ..services import documents, workflow

        invoice = documents.create_invoice_draft(
            self.company, self.officer, **self.invoice_payload(amount, **extra)
        )
        workflow.submit("invoice", invoice.pk, self.officer)
        workflow.post("invoice", invoice.pk, self.manager)
        invoice.refresh_from_db()
        return invoice

    def posted_bill(self, amount="400.00"):
        from ..services import documents, workflow

        bill = documents.create_bill_draft(
            self.company, self.officer,
            supplier_id=self.supplier.pk,
            doc_date=self.today,
            lines=[{"description": "Fuel", "quantity": "1", "unit_price": amount,
                    "expense_account_id": self.expenses.pk}],
        )
        workflow.submit("bill", bill.pk, self.officer)
        workflow.post("bill", bill.pk, self.manager)
        bill.refresh_from_db()
        return bill


class CocoaTestCase(LedgerTestCase):
    """Adds cocoa geography and a rate card effective from January 1st."""

    def setUp(self):
        super().setUp()
        self.region = Region.objects.create(company=self.company, name="Ashanti")
        self.district = District.objects.create(company=self.company, region=self.region, name="Offinso")
        self.depot = Depot.objects.create(company=self.company, district=self.district, name="Offinso Depot")
        self.center = TakeoverCenter.objects.create(company=self.company, name="Kumasi Takeover")
        self.other_center = TakeoverCenter.objects.create(company=self.company, name="Tema Takeover")

        self.rate_card = RateCard.objects.create(
            company=self.company,
            season="main",
            bags_per_tonne=Decimal("16"),
            effective_from=datetime.date(self.today.year, 1, 1),
        )
        self.rate_line = RateCardLine.objects.create(
            rate_card=self.rate_card,
            region=self.region,
            district=self.district,
            depot=self.depot,
            takeover_center=self.center,
            producer_price_per_tonne=Decimal("2000"),
            buyer_margin_per_tonne=Decimal("300"),
            secondary_evac_cost_per_tonne=Decimal("150"),
            takeover_price_per_tonne=Decimal("2450"),
        )

    def ctro_line(self, bags=160, treatment="company_paid", center=None):
        return {
            "depot_id": self.depot.pk,
            "takeover_center_id": (center or self.center).pk,
            "bags": bags,
            "evacuation_treatment": treatment,
            "waybill_no": "WB-1",
        }
