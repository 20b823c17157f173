import calendar
import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

from ledger_core.models import (Account, CocoaAgent, Company, CompanyMembership,
                                ControlAccounts, CtroAccounts, Customer, Depot,
                                District, Period, RateCard, RateCardLine,
                                Region, Supplier, TakeoverCenter, TaxAccounts,
                                TaxRate)
from ledger_core.models.entitymembership import ROLE_CHOICES

User = get_user_model()

# code, name, type, normal balance, control?
CHART_OF_ACCOUNTS = [
    ("1000", "Cash on Hand", "asset", "debit", False),
    ("1010", "Bank - Operating", "asset", "debit", False),
    ("1100", "Accounts Receivable", "asset", "debit", True),
    ("1150", "WHT Receivable", "asset", "debit", False),
    ("1200", "Advances to Agents", "asset", "debit", False),
    ("1300", "Cocoa Stock - Field", "asset", "debit", False),
    ("1310", "Cocoa Stock - Buyers Margin", "asset", "debit", False),
    ("1320", "Cocoa Stock - Evacuation", "asset", "debit", False),
    ("2000", "Accounts Payable", "liability", "credit", True),
    ("2100", "VAT Output", "liability", "credit", False),
    ("2110", "NHIL Output", "liability", "credit", False),
    ("2120", "GETFund Output", "liability", "credit", False),
    ("2150", "WHT Payable", "liability", "credit", False),
    ("2200", "Evacuation Payable", "liability", "credit", False),
    ("3000", "Owner's Equity", "equity", "credit", False),
    ("4000", "Sales Revenue", "income", "credit", False),
    ("4100", "Buyers Margin Income", "income", "credit", False),
    ("5000", "Operating Expenses", "expense", "debit", False),
]


class Command(BaseCommand):
    help = (
        "Create a demo company with users per role, chart of accounts, "
        "account mappings, twelve periods and a CTRO rate card."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            type=str,
            default="Demo Cocoa Ltd",
            help="Name of the demo company (default: Demo Cocoa Ltd)",
        )
        parser.add_argument(
            "--year", type=int, default=None,
            help="Fiscal year for the periods (default: current year)",
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo users."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        company_name = options["company"]
        year = options["year"] or datetime.date.today().year
        password = options["password"]

        # 1. Company
        company, created = Company.objects.get_or_create(
            name=company_name,
            defaults={"slug": self.unique_slug(company_name)},
        )
        self.stdout.write(self.style.SUCCESS(f"Company: {company} ({'created' if created else 'existing'})"))

        # 2. One user per role
        for role, label in ROLE_CHOICES:
            username = f"{company.slug}-{role}"
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": f"{username}@example.com", "default_company": company},
            )
            if created:
                user.set_password(password)
                user.save()
            CompanyMembership.objects.get_or_create(user=user, company=company, role=role)
            self.stdout.write(f"  {label}: {username}")

        # 3. Chart of accounts
        accounts = {}
        for code, name, ac_type, normal, control in CHART_OF_ACCOUNTS:
            accounts[code], _ = Account.objects.get_or_create(
                company=company,
                code=code,
                defaults={
                    "name": name,
                    "ac_type": ac_type,
                    "normal_balance": normal,
                    "is_control_account": control,
                },
            )
        self.stdout.write(self.style.SUCCESS(f"Chart of accounts: {len(accounts)} accounts"))

        # 4. Account mappings and tax rates
        ControlAccounts.objects.update_or_create(
            company=company,
            defaults={
                "ar_control": accounts["1100"],
                "ap_control": accounts["2000"],
                "wht_receivable": accounts["1150"],
                "wht_payable": accounts["2150"],
            },
        )
        TaxAccounts.objects.update_or_create(
            company=company,
            defaults={
                "vat_output": accounts["2100"],
                "nhil_output": accounts["2110"],
                "getfund_output": accounts["2120"],
            },
        )
        CtroAccounts.objects.update_or_create(
            company=company,
            defaults={
                "cocoa_stock_field": accounts["1300"],
                "cocoa_stock_margin": accounts["1310"],
                "cocoa_stock_evacuation": accounts["1320"],
                "advances_to_agents": accounts["1200"],
                "buyers_margin_income": accounts["4100"],
                "evacuation_payable": accounts["2200"],
            },
        )
        TaxRate.objects.get_or_create(
            company=company,
            effective_from=datetime.date(year, 1, 1),
            defaults={
                "vat_rate": Decimal("0.15"),
                "nhil_rate": Decimal("0.025"),
                "getfund_rate": Decimal("0.025"),
            },
        )
        self.stdout.write(self.style.SUCCESS("Account mappings configured"))

        # 5. Twelve monthly periods
        for month in range(1, 13):
            last_day = calendar.monthrange(year, month)[1]
            Period.objects.get_or_create(
                company=company,
                year=year,
                month=month,
                defaults={
                    "start_date": datetime.date(year, month, 1),
                    "end_date": datetime.date(year, month, last_day),
                },
            )
        self.stdout.write(self.style.SUCCESS(f"Periods: {year}-01 .. {year}-12"))

        # 6. Parties and cocoa master data
        Customer.objects.get_or_create(company=company, name="Demo Customer")
        Supplier.objects.get_or_create(company=company, name="Demo Supplier")

        region, _ = Region.objects.get_or_create(company=company, name="Ashanti")
        district, _ = District.objects.get_or_create(company=company, region=region, name="Offinso")
        depot, _ = Depot.objects.get_or_create(
            company=company, name="Offinso Depot", defaults={"district": district}
        )
        center, _ = TakeoverCenter.objects.get_or_create(company=company, name="Kumasi Takeover")
        CocoaAgent.objects.get_or_create(
            company=company, name="Demo Purchasing Clerk", defaults={"district": district}
        )

        card, created = RateCard.objects.get_or_create(
            company=company,
            season=f"{year}/{str(year + 1)[-2:]}",
            defaults={"effective_from": datetime.date(year, 1, 1)},
        )
        if created:
            RateCardLine.objects.create(
                rate_card=card,
                region=region,
                district=district,
                depot=depot,
                takeover_center=center,
                producer_price_per_tonne=Decimal("2000"),
                buyer_margin_per_tonne=Decimal("300"),
                secondary_evac_cost_per_tonne=Decimal("150"),
                takeover_price_per_tonne=Decimal("2450"),
            )
        self.stdout.write(self.style.SUCCESS(f"Rate card: {card}"))
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))

    @staticmethod
    def unique_slug(name, max_tries=100):
        # "Demo Cocoa Ltd" → "demo-cocoa-ltd", then "-1", "-2", ... if taken
        base = slugify(name) or "company"
        slug = base
        i = 1
        while Company.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise RuntimeError("Couldn't generate unique slug")
        return slug
