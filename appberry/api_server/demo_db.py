"""Demo table used by ``GET /api/d1-demo``.

One sqlite table, ``dummy(id TEXT PRIMARY KEY, description TEXT NOT NULL)``.
Calls are blocking; the route runs them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Dict, List

DEMO_ROW = {"id": "test_id", "description": "test description"}

SCHEMA = """
CREATE TABLE IF NOT EXISTS dummy (
    id TEXT PRIMARY KEY,
    description TEXT NOT NULL
)
"""


class DemoStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._ready = False

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        if not self._ready:
            conn.execute(SCHEMA)
            conn.commit()
            self._ready = True
            print(f"[db] demo table ready at {self.path}")
        return conn

    def round_trip(self) -> List[Dict[str, str]]:
        """Delete the demo row, insert it again and return every row."""
        with closing(self._connect()) as conn:
            with conn:
                conn.execute("DELETE FROM dummy WHERE id = ?", (DEMO_ROW["id"],))
                conn.execute(
                    "INSERT INTO dummy (id, description) VALUES (?, ?)",
                    (DEMO_ROW["id"], DEMO_ROW["description"]),
                )
            rows = conn.execute("SELECT id, description FROM dummy").fetchall()
        return [{"id": r["id"], "description": r["description"]} for r in rows]
