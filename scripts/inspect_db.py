from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env", override=False)


def main() -> None:
    db_path = os.getenv("SQLITE_PATH", "photopicker.db")
    conn = sqlite3.connect(db_path)
    try:
        print("DB:", db_path)
        print("Tables:")
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ):
            print("-", row[0])

        row = conn.execute("SELECT COUNT(*) FROM photos").fetchone()
        print("\nPhotos:", row[0] if row else 0)

        print("\nPending decisions:")
        for row in conn.execute(
            """
            SELECT decision_id, photo_id, action, created_at
            FROM decisions
            WHERE executed = 0
            ORDER BY seq ASC
            LIMIT 20
            """
        ):
            print(row)

        print("\nArchive batches:")
        for row in conn.execute(
            """
            SELECT b.batch_id, b.created_at, m.status, COUNT(m.move_index)
            FROM archive_batches AS b
            LEFT JOIN archive_moves AS m ON m.batch_id = b.batch_id
            GROUP BY b.batch_id, m.status
            ORDER BY b.seq DESC
            """
        ):
            print(row)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
