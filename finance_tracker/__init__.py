"""Top‑level package for the finance tracker.

This file makes the directory a Python package and exposes
convenient names.  The primary modules are:

* ``models`` – ledger record types and the seeded default categories
* ``storage`` – the JSON-backed ledger store, including backup export/import
* ``analytics`` – monthly and annual statistics over the transaction list
* ``budgets`` / ``savings`` / ``distribution`` – budget status, savings
  goal progress and the income split across wallets
* ``ledger`` – the controller that owns the store and validates changes

A typical session looks like:

```python
from finance_tracker import FinanceLedger, LedgerStore

ledger = FinanceLedger(LedgerStore("data/ledger"))
ledger.add_transaction(120.0, "expense", "food", "2024-05-03")
stats = ledger.monthly_stats("2024-05")
```
"""

from . import analytics  # noqa: F401  # re-exported for convenience
from .ledger import FinanceLedger
from .storage import LedgerStore

__all__ = ["analytics", "FinanceLedger", "LedgerStore"]
