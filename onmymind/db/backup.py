"""JSON encoding of note store backups."""

import json

from dateutil.parser import isoparse

from onmymind.db.models import Backup, DeletedItem, Item
from onmymind.utils.time_utils import to_utc


def backup_to_json(backup: Backup) -> bytes:
    """Serialize a backup as pretty-printed JSON."""
    data = {
        "items": [
            {"text": item.text, "created_at": item.created_at.isoformat()}
            for item in backup.items
        ],
        "deleted_items": [
            {"text": item.text, "deleted_at": item.deleted_at.isoformat()}
            for item in backup.deleted_items
        ],
        "exported_at": backup.exported_at.isoformat() if backup.exported_at else None,
    }
    return json.dumps(data, indent=4, ensure_ascii=False).encode("utf-8")


def backup_from_json(content: bytes | str) -> Backup:
    """Parse a backup file.

    Raises:
        ValueError: if the content is not a backup document
    """
    try:
        data = json.loads(content)
        items = [
            Item(text=entry["text"], created_at=to_utc(isoparse(entry["created_at"])))
            for entry in data.get("items") or []
        ]
        deleted = [
            DeletedItem(text=entry["text"], deleted_at=to_utc(isoparse(entry["deleted_at"])))
            for entry in data.get("deleted_items") or []
        ]
        exported_at = data.get("exported_at")
    except (KeyError, TypeError, AttributeError, json.JSONDecodeError) as e:
        raise ValueError(f"invalid backup file format: {e}") from e

    return Backup(
        items=items,
        deleted_items=deleted,
        exported_at=to_utc(isoparse(exported_at)) if exported_at else None,
    )
