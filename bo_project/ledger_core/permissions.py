"""
Role × action × status policy for workflow documents.

Pure: no database, no request. The same table is consulted by every
service before it touches a document, whatever the UI showed.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

# Roles (CompanyMembership.role values)
ADMIN = "admin"
ACCOUNTS_OFFICER = "accounts_officer"
MANAGER = "manager"
DIRECTOR = "director"
AUDITOR = "auditor"

# Actions
VIEW = "VIEW"
CREATE = "CREATE"
EDIT = "EDIT"
DELETE_DRAFT = "DELETE_DRAFT"
SUBMIT = "SUBMIT"
POST = "POST"
VOID = "VOID"
REVERSE = "REVERSE"
REJECT = "REJECT"

ACTIONS = (VIEW, CREATE, EDIT, DELETE_DRAFT, SUBMIT, POST, VOID, REVERSE, REJECT)

# Reasons shown to operators
ONLY_POSTED_VOID = "Only posted documents can be voided or reversed."
ONLY_DRAFT_DELETE = "Only draft documents can be deleted."
ONLY_DRAFT_EDIT = "Only draft documents can be edited."
ONLY_DRAFT_SUBMIT = "Only draft documents can be submitted."
ONLY_SUBMITTED_POST = "Only submitted documents can be posted."
ONLY_SUBMITTED_REJECT = "Only submitted documents can be rejected."
ONLY_NEW_CREATE = "Documents are created new, not from an existing status."
NOT_PERMITTED = "Not permitted."
ROLE_NOT_PERMITTED = "Role not permitted."


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class PolicyRule:
    role: str
    action: str
    # None stands for "no status yet" (create)
    from_statuses: FrozenSet[Optional[str]]
    reason: str  # given when the status is not in from_statuses


def _rule(role, action, statuses, reason):
    return PolicyRule(role, action, frozenset(statuses), reason)


POLICY = (
    _rule(ADMIN, CREATE, {None}, ONLY_NEW_CREATE),
    _rule(ADMIN, EDIT, {"draft"}, ONLY_DRAFT_EDIT),
    _rule(ADMIN, DELETE_DRAFT, {"draft"}, ONLY_DRAFT_DELETE),
    _rule(ADMIN, SUBMIT, {"draft"}, ONLY_DRAFT_SUBMIT),
    _rule(ADMIN, POST, {"submitted"}, ONLY_SUBMITTED_POST),
    _rule(ADMIN, REJECT, {"submitted"}, ONLY_SUBMITTED_REJECT),
    _rule(ADMIN, VOID, {"posted"}, ONLY_POSTED_VOID),
    _rule(ADMIN, REVERSE, {"posted"}, ONLY_POSTED_VOID),

    _rule(ACCOUNTS_OFFICER, CREATE, {None}, ONLY_NEW_CREATE),
    _rule(ACCOUNTS_OFFICER, EDIT, {"draft"}, ONLY_DRAFT_EDIT),
    _rule(ACCOUNTS_OFFICER, DELETE_DRAFT, {"draft"}, ONLY_DRAFT_DELETE),
    _rule(ACCOUNTS_OFFICER, SUBMIT, {"draft"}, ONLY_DRAFT_SUBMIT),

    _rule(MANAGER, POST, {"submitted"}, ONLY_SUBMITTED_POST),
    _rule(MANAGER, REJECT, {"submitted"}, ONLY_SUBMITTED_REJECT),
    _rule(MANAGER, VOID, {"posted"}, ONLY_POSTED_VOID),
    _rule(MANAGER, REVERSE, {"posted"}, ONLY_POSTED_VOID),
)

# What a role hears when the table has no row for the action at all
ROLE_DEFAULT_REASONS = {
    ADMIN: NOT_PERMITTED,
    ACCOUNTS_OFFICER: "You can submit but not post or void.",
    MANAGER: "You have view and posting rights only.",
    DIRECTOR: "View-only role.",
    AUDITOR: "View-only role.",
}

_INDEX = {(r.role, r.action): r for r in POLICY}
ROLE_ORDER = {role: i for i, role in enumerate(ROLE_DEFAULT_REASONS)}


def can_perform(role: str, status: Optional[str], action: str) -> Decision:
    """Decision for a single role."""
    if action == VIEW:
        return Decision(True)
    if role not in ROLE_DEFAULT_REASONS:
        return Decision(False, ROLE_NOT_PERMITTED)

    rule = _INDEX.get((role, action))
    if rule is None:
        return Decision(False, ROLE_DEFAULT_REASONS[role])
    if status in rule.from_statuses:
        return Decision(True)
    return Decision(False, rule.reason)


def evaluate_permission(roles: Iterable[str], status: Optional[str], action: str) -> Decision:
    """
    Role-by-role: the first role granting the action wins.
    On denial, the reason comes from the first role that has a rule for
    the action (a status problem), else from the first role held
    (an empty role set is treated as view-only).
    """
    if action == VIEW:
        return Decision(True)

    if isinstance(roles, (set, frozenset)):
        # unordered input: fall back to a fixed role order
        roles = sorted(roles, key=lambda r: ROLE_ORDER.get(r, len(ROLE_ORDER)))
    roles = list(roles)
    for role in roles:
        decision = can_perform(role, status, action)
        if decision.allowed:
            return decision

    ruled = [role for role in roles if (role, action) in _INDEX]
    fallback = can_perform((ruled or roles or [AUDITOR])[0], status, action)
    return Decision(False, fallback.reason or NOT_PERMITTED)


def grants_action(roles: Iterable[str], action: str) -> bool:
    """True when some role may take ``action`` from at least one status."""
    return any((role, action) in _INDEX for role in roles)
