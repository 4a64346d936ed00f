"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
storage keys, thresholds and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))
LEDGER_DIR = Path(os.getenv("FINTRACK_LEDGER_DIR", DATA_DIR / "ledger"))
BACKUPS_DIR = DATA_DIR / "backups"

# Logical table name -> file stem inside LEDGER_DIR
STORAGE_KEYS: Dict[str, str] = {
    'transactions': 'slx_transactions',
    'categories': 'slx_categories',
    'goals': 'slx_goals',
    'savingsGoals': 'slx_savings_goals',
    'incomeSources': 'slx_income_sources',
    'wallets': 'slx_wallets',
    'walletTransactions': 'slx_wallet_transactions',
    'settings': 'slx_settings',
}

# Budget classification: ratio of spent/limit at which a budget is "near" it
NEAR_LIMIT_RATIO = float(os.getenv("FINTRACK_NEAR_LIMIT_RATIO", "0.8"))

# Trailing window used by the investments overview
INVESTMENT_HISTORY_MONTHS = 6

# Neutral display values for dangling category references
FALLBACK_CATEGORY_NAME = 'Outros'
FALLBACK_ICON = 'CircleDot'
FALLBACK_COLOR = '#94A3B8'


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, LEDGER_DIR, BACKUPS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
