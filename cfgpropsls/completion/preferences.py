"""
Completion preferences.

An immutable value object passed to the engine on every request. The server
builds a new one whenever the client configuration changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

PREF_DEPR_ERROR_SHOW = "cfgprops.deprecated.showError"
PREF_DEPR_SORT_LAST = "cfgprops.deprecated.sortLast"


@dataclass(frozen=True)
class CompletionPreferences:
    show_error_deprecated: bool = True
    sort_deprecated_last: bool = True

    def get_bool(self, key: str, default: bool) -> bool:
        if key == PREF_DEPR_ERROR_SHOW:
            return self.show_error_deprecated
        if key == PREF_DEPR_SORT_LAST:
            return self.sort_deprecated_last
        return default

    @classmethod
    def from_settings(
        cls, settings: Mapping[str, Any] | None, base: CompletionPreferences | None = None
    ) -> CompletionPreferences:
        """
        Build preferences from client settings.

        Accepts nested (`{"cfgprops": {"deprecated": {"showError": false}}}`)
        and flat dotted (`{"cfgprops.deprecated.showError": false}`) forms.
        Missing or non-boolean values keep the `base` value.
        """
        base = base or cls()
        values = {f.name: getattr(base, f.name) for f in fields(cls)}
        if not isinstance(settings, Mapping):
            return base

        for key, attr in (
            (PREF_DEPR_ERROR_SHOW, "show_error_deprecated"),
            (PREF_DEPR_SORT_LAST, "sort_deprecated_last"),
        ):
            value = _lookup(settings, key)
            if isinstance(value, bool):
                values[attr] = value

        return cls(**values)


def _lookup(settings: Mapping[str, Any], dotted_key: str) -> Any:
    if dotted_key in settings:
        return settings[dotted_key]

    node: Any = settings
    for part in dotted_key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node
