from __future__ import annotations

import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import describe_db, load_settings

from src.hr_payroll.hr_payroll.common.auth import issue_token
from src.hr_payroll.hr_payroll.core.enums import Role
from src.hr_payroll.hr_payroll.database.bootstrap import DEMO_EMPLOYEES, apply_seed_sql, ensure_demo_employees


def main() -> None:
    load_dotenv(override=False)
    settings = load_settings()
    db_config = dict(settings.DB_CONFIG)

    seed_path = REPO_ROOT / "database" / "seed.sql"
    apply_seed_sql(db_config, seed_path=seed_path)
    ids = ensure_demo_employees(db_config)

    print(f"OK: seeded {describe_db(db_config)}")
    for employee_id, (code, name, role, *_rest) in zip(ids, DEMO_EMPLOYEES):
        token = issue_token(
            secret=settings.SECRET_KEY,
            employee_id=employee_id,
            role=Role(role),
            algorithm=getattr(settings, "TOKEN_ALGORITHM", "HS256"),
        )
        print(f"{code} {name} ({role}) bearer token: {token}")


if __name__ == "__main__":
    main()
