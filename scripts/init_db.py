from __future__ import annotations

import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import describe_db, load_settings

from src.hr_payroll.hr_payroll.database.bootstrap import apply_schema, list_tables

PAYROLL_TABLES = ("employees", "attendance_records", "leave_requests", "salary_rules", "payroll_records")


def main() -> int:
    load_dotenv(override=False)
    db_config = dict(load_settings().DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    missing = [t for t in PAYROLL_TABLES if t not in tables]
    if missing:
        print(f"FAILED: schema applied to {describe_db(db_config)} but tables are missing: {', '.join(missing)}")
        return 1

    print(f"OK: schema ready on {describe_db(db_config)} ({len(tables)} tables)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
