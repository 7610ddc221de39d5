"""
Metadata hint aggregation.

Value hints match by containment, map key hints match by prefix. Providers
are reported through the diagnostics channel and never executed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from cfgpropsls.workspace.metadata_cache import Hints, ValueHint, ValueProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderDiagnostic:
    """Record of a declared provider that was not executed."""

    property_name: str
    role: str  # "key" or "value"
    provider: str
    parameters: dict[str, Any] = field(default_factory=dict)


DiagnosticsSink = Callable[[ProviderDiagnostic], None]


class HintAggregator:
    def __init__(self, diagnostics: DiagnosticsSink | None = None) -> None:
        self.diagnostics = diagnostics

    def value_hints(self, hints: Hints, filter: str | None) -> list[ValueHint]:
        return [
            hint for hint in hints.value_hints
            if filter is None or filter in hint.value
        ]

    def key_hints(self, hints: Hints, prefix: str) -> list[ValueHint]:
        return [hint for hint in hints.key_hints if hint.value.startswith(prefix)]

    def log_providers(
        self,
        property_name: str,
        role: str,
        providers: Iterable[ValueProvider],
        diagnostics: DiagnosticsSink | None = None,
    ) -> None:
        providers = list(providers)
        if not providers:
            return

        logger.debug("%s providers for %s:", role.capitalize(), property_name)
        sink = diagnostics or self.diagnostics
        for provider in providers:
            logger.debug("%s - params: %s", provider.name, provider.parameters)
            if sink:
                sink(
                    ProviderDiagnostic(
                        property_name=property_name,
                        role=role,
                        provider=provider.name,
                        parameters=dict(provider.parameters),
                    )
                )
