"""
UI preference persistence, kept apart from the corpus store.
"""

from .store import DEFAULT_PREFS_PATH, PreferenceStore, UiPreferences

__all__ = ["DEFAULT_PREFS_PATH", "PreferenceStore", "UiPreferences"]
