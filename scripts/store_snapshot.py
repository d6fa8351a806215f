"""Export the configured store to a JSON snapshot, or load one into it.

The snapshot has the same layout as the flat-file store, so this also moves
data between backends:

  STORE_BACKEND=json python scripts/store_snapshot.py export dump.json
  STORE_BACKEND=sql  python scripts/store_snapshot.py import dump.json
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from terramail.config import Settings
from terramail.store import COLLECTIONS, build_store

logger = logging.getLogger("store_snapshot")
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Export or import a TerraMail store snapshot")
    parser.add_argument("action", choices=("export", "import"))
    parser.add_argument("path", type=Path, help="Snapshot file")
    args = parser.parse_args()

    store = build_store(Settings())
    try:
        if args.action == "export":
            snapshot = store.dump()
            args.path.write_text(
                json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8"
            )
        else:
            snapshot = json.loads(args.path.read_text(encoding="utf-8"))
            missing = [name for name in COLLECTIONS if name not in snapshot]
            if missing:
                parser.error(f"snapshot is missing collections: {', '.join(missing)}")
            store.load(snapshot)
    finally:
        store.close()

    logger.info(
        "%s complete: %s (file=%s)",
        args.action,
        {name: len(snapshot.get(name, [])) for name in COLLECTIONS},
        args.path,
    )


if __name__ == "__main__":
    main()
