from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager, UserManager

# Roles a user can hold inside one company
# (a user may hold several roles for the same company)
ROLE_CHOICES = [
    ("admin", "Admin"),
    ("accounts_officer", "Accounts Officer"),  # maker
    ("manager", "Manager"),  # checker / poster
    ("director", "Director"),  # view only
    ("auditor", "Auditor"),  # view only
]


# ---------- Tenant / Company ----------
class Company(models.Model):

    """Tenant / Organization"""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same slug
    )

    # Functional currency; every amount in the ledger is in this currency
    currency_code = models.CharField(max_length=10, default="GHS")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):
    """
    AUTH_USER_MODEL = "ledger_core.User" must be set
    before the very first migrate.
    """
    default_company = models.ForeignKey(
        "Company",
        # Nullable, user might exist before being assigned company
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    phone = models.CharField(max_length=32, blank=True)

    objects = UserManager()

    class Meta:
        indexes = [models.Index(fields=["default_company"], name="user_default_company_idx")]

    def __str__(self):
        return self.get_full_name() or self.username

    def roles_for(self, company):
        """Active roles held in ``company`` (empty set when not a member)."""
        return set(
            self.memberships.filter(company=company, is_active=True)
            .values_list("role", flat=True)
        )


# ---------- CompanyMembership ----------
class CompanyMembership(models.Model):  # Bridge between User and Company

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",  # See all companies users belong to
    )
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)

    # Suspend access without deleting the record
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        # One row per role; multi-role users get several rows
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company", "role"],
                name="uq_user_company_role",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        """
        A user's default company must be one they belong to. The membership
        being validated counts, so the first membership can set it up.
        """
        if self.user_id and self.user.default_company_id:
            default_company_pk = self.user.default_company_id
            existing_company_ids = set(
                self.user.memberships.exclude(pk=self.pk).values_list(
                    "company_id", flat=True
                )
            )
            if (
                default_company_pk not in existing_company_ids
                and default_company_pk != self.company_id
            ):
                raise ValidationError(
                    f"Default company {self.user.default_company} must be a user's membership."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
