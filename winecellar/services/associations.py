"""Grape association helpers.

A wine's grapes are always set as a whole (see ``cellar_store.replace_grapes``);
this module holds the pure helpers around that: decoding the checkbox form
and the grape-prefix filter used by the wine table.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol


class MultiValueForm(Protocol):
    def getlist(self, key: Any) -> list[Any]: ...


def form_values(form: MultiValueForm, field: str) -> list[str]:
    """Every value posted under ``field``, as stripped, non-empty strings.

    Unchecked checkboxes are simply absent, so a form with none ticked
    yields an empty list.
    """
    values = []
    for value in form.getlist(field):
        if isinstance(value, str) and value.strip():
            values.append(value.strip())
    return values


def grape_matches(grapes: Iterable[str], prefix: str | None) -> bool:
    """True if any grape name starts with ``prefix``, ignoring case.

    A missing or blank prefix matches every wine, including wines with no grapes.
    """
    if not prefix or not prefix.strip():
        return True
    needle = prefix.strip().casefold()
    return any(grape.casefold().startswith(needle) for grape in grapes)


def filter_wines_by_grape(rows: Iterable[Mapping[str, Any]], prefix: str | None) -> list[Mapping[str, Any]]:
    """Keep the wine-table rows whose ``grapes`` match ``prefix``."""
    return [row for row in rows if grape_matches(row["grapes"], prefix)]
