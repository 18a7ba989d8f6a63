from datetime import datetime

from ..domain.errors import ItemUnavailable


def guard_not_deleted(resource, msg: str) -> None:
    """Ensure ``resource`` is not soft-deleted."""
    if resource is not None and getattr(resource, "deleted_at", None) is not None:
        raise ItemUnavailable(msg, id=str(resource.id))


def soft_delete(model_obj, now: datetime) -> None:
    """Mark ``model_obj`` as deleted by setting ``deleted_at``."""
    model_obj.deleted_at = now


def restore(model_obj) -> None:
    """Clear the ``deleted_at`` flag for ``model_obj``."""
    model_obj.deleted_at = None
