# catalog_browser/models/fetch_state.py

"""Observable states published by the fetch controller.

Exactly one variant is active at a time:

- :class:`InitialState` before any result has arrived.
- :class:`LoadedState` after a successful page load or search.
- :class:`ErrorState` after a failed command; it never carries items.
"""

from dataclasses import dataclass, field

from catalog_browser.models.product import Product


@dataclass(frozen=True)
class InitialState:
    """No data yet."""

    items: tuple[Product, ...] = ()


@dataclass(frozen=True)
class LoadedState:
    """Products currently on display, in presentation order."""

    items: tuple[Product, ...] = ()


@dataclass(frozen=True)
class ErrorState:
    """The last command failed; previously shown items are discarded."""

    message: str
    items: tuple[Product, ...] = field(default=(), init=False)


FetchState = InitialState | LoadedState | ErrorState
