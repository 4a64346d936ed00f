#!/usr/bin/env python3
"""Export the ledger to a backup document or restore one."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker.config import BACKUPS_DIR, ensure_data_directories
from finance_tracker.storage import LedgerStore


def export_backup(store: LedgerStore, output: Optional[Path] = None) -> Path:
    target = output or BACKUPS_DIR / f"slx-finance-backup-{date.today().isoformat()}.json"
    if output is None:
        ensure_data_directories()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(store.export_all_data(), encoding='utf-8')
    return target


def import_backup(store: LedgerStore, source: Path) -> bool:
    return store.import_all_data(source.read_text(encoding='utf-8'))


def main() -> int:
    parser = argparse.ArgumentParser(description='Back up or restore the ledger tables.')
    parser.add_argument('--ledger-dir', help='Directory holding the ledger tables')
    sub = parser.add_subparsers(dest='command', required=True)
    export_cmd = sub.add_parser('export', help='Write every table to a JSON document')
    export_cmd.add_argument('--output', type=Path, help='Destination file')
    import_cmd = sub.add_parser('import', help='Overwrite the tables present in a JSON document')
    import_cmd.add_argument('source', type=Path, help='Backup document to restore')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    store = LedgerStore(args.ledger_dir)
    if args.command == 'export':
        print(f"Backup written to {export_backup(store, args.output)}")
        return 0
    if import_backup(store, args.source):
        print("Backup restored.")
        return 0
    print("Backup file is invalid; nothing was changed.", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
