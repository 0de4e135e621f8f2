# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Record and settings persistence on top of the database layer."""

from vdr_console.store.documents import DocumentExistsError, DocumentStore
from vdr_console.store.settings import SettingsStore

__all__ = ["DocumentExistsError", "DocumentStore", "SettingsStore"]
