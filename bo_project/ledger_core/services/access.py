"""Identity checks layered on top of the pure permission table."""
from ..exceptions import InvalidStateTransition, PermissionDeniedError
from ..permissions import evaluate_permission, grants_action

NO_ACCESS = "User does not have access to this company."


def company_roles(actor, company) -> set:
    if actor is None:
        raise PermissionDeniedError("An acting user is required.")
    roles = actor.roles_for(company)
    if not roles:
        raise PermissionDeniedError(NO_ACCESS)
    return roles


def require_permission(actor, company, status, action) -> set:
    """
    Raise with the table's reason unless allowed: InvalidStateTransition
    when the roles could take the action from another status,
    PermissionDeniedError otherwise.
    """
    roles = company_roles(actor, company)
    decision = evaluate_permission(roles, status, action)
    if not decision.allowed:
        if grants_action(roles, action):
            raise InvalidStateTransition(decision.reason)
        raise PermissionDeniedError(decision.reason)
    return roles


def require_role(actor, company, allowed_roles, message="User does not have permission for this action.") -> set:
    roles = company_roles(actor, company)
    if not roles & set(allowed_roles):
        raise PermissionDeniedError(message)
    return roles


def ensure_not_maker(record, actor, message) -> None:
    """Maker/checker: the creator may not approve or post their own record."""
    if record.created_by_id is not None and record.created_by_id == actor.pk:
        raise PermissionDeniedError(message)
