import json
from typing import Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.forms.models import model_to_dict

from ..models import AuditLog, Company


def snapshot(instance, extra: Optional[dict] = None) -> dict:
    """JSON-safe dict of a model instance (Decimals and dates become strings)."""
    data = model_to_dict(instance)
    data["id"] = instance.pk
    if extra:
        data.update(extra)
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def log_action(
    *,
    action: str,
    entity: str,
    entity_id,
    company: Optional[Company] = None,
    actor=None,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
) -> AuditLog:
    """
    Central audit recorder. Appends one row; rows are never updated.
    Called inside the caller's transaction so it commits or rolls back
    with the change it describes.
    """
    return AuditLog.objects.create(
        company=company,
        actor=actor,
        entity=entity,
        entity_id=str(entity_id),
        action=action,
        before=before,
        after=after,
    )
