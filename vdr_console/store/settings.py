# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Named settings blobs with defaults."""
import copy
import json
import logging
from typing import Any, Callable

from vdr_console.db.models import AppSetting
from vdr_console.store.documents import _get_db_session, _write_lock

log = logging.getLogger(__name__)


class SettingsStore:
    """Read/write one JSON settings object stored under ``name``.

    Reads fall back to a deep copy of ``defaults`` until something has
    been written; :meth:`reset` writes the defaults back.
    """

    def __init__(self, name: str, defaults: dict[str, Any]):
        self.name = name
        self.defaults = defaults

    def get(self) -> dict[str, Any]:
        with _get_db_session() as db:
            row = db.get(AppSetting, self.name)
            if row is None:
                return copy.deepcopy(self.defaults)
            return json.loads(row.value_json)

    def put(self, value: dict[str, Any]) -> dict[str, Any]:
        return self.update(lambda current: value)

    def update(self, change: Callable[[dict[str, Any]], dict[str, Any]]) -> dict[str, Any]:
        """Replace the stored value with ``change(current)`` in one transaction."""
        with _write_lock, _get_db_session() as db:
            row = db.get(AppSetting, self.name, with_for_update=True)
            current = copy.deepcopy(self.defaults) if row is None else json.loads(row.value_json)
            value = change(current)
            payload = json.dumps(value, separators=(",", ":"))
            if row is None:
                db.add(AppSetting(name=self.name, value_json=payload))
            else:
                row.value_json = payload
        log.info(f"Settings updated: {self.name}")
        return value

    def reset(self) -> dict[str, Any]:
        return self.put(copy.deepcopy(self.defaults))
