"""
CLI Context for managing application dependencies.

Holds the settings and the FileStore for one CLI invocation, so commands get
their dependencies injected instead of reaching for global state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .settings import Settings, create_settings_from_env
from .store import FileStore


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    The store is created on first access and reused for the rest of the
    command. Tests pass a prebuilt store instead.
    """
    settings: Settings
    _store: Optional[FileStore] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())

    @property
    def store(self) -> FileStore:
        """
        Get or create the FileStore (lazy initialization).

        Returns:
            FileStore wired to oras-py and the Harbor API
        """
        if self._store is None:
            self._store = FileStore.from_settings(self.settings)
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
