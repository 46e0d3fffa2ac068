"""Concrete store adapters.

Why a package:
- One module per backend (Chrome, Edge, Firefox).
- Each module implements `core.interfaces.store.StoreAdapter`.
"""

from adapters.stores.chrome import ChromeStore
from adapters.stores.edge import EdgeStore
from adapters.stores.firefox import FirefoxStore

__all__ = [
	"ChromeStore",
	"EdgeStore",
	"FirefoxStore",
]
