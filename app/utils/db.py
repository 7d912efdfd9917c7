"""Database utility functions shared by the service layer."""

from typing import Any, Dict

from sqlalchemy import inspect

from app.database import Base


def model_to_dict(obj: Base) -> Dict[str, Any]:
    """Return the column attributes of an ORM instance as a plain dict.

    Keys are attribute names, so ``ContentModel.meta`` comes back as ``meta``
    rather than as the underlying ``metadata`` column name.
    """
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def apply_updates(obj: Base, updates: Dict[str, Any]) -> Base:
    """Set every key of ``updates`` on ``obj``. Unknown keys are ignored."""
    columns = {attr.key for attr in inspect(obj).mapper.column_attrs}
    for key, value in updates.items():
        if key in columns and key != "id":
            setattr(obj, key, value)
    return obj
