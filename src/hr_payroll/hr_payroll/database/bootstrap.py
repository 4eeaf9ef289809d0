from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

# Runs of quoted literals (backslash escapes allowed) or characters other than ; and quotes.
_STATEMENT = re.compile(r"""(?:'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|[^;'"])+""", re.S)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


# (code, name, role, password, annual salary, department, designation, location)
DEMO_EMPLOYEES = (
    ("EMP-0001", "Admin Demo", "admin", "admin123", 1200000, "Management", "HR Administrator", "onsite"),
    ("EMP-0002", "Rahim Uddin", "employee", "staff123", 600000, "Engineering", "Software Engineer", "onsite"),
)


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "hr_payroll_db")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quoted strings."""
    for match in _STATEMENT.finditer(sql):
        stmt = match.group(0).strip()
        if stmt:
            yield stmt


def _run_script(db_config: dict, path: str | Path) -> None:
    sql = _strip_comments(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8")))
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)


def ensure_demo_employees(db_config: dict) -> list[int]:
    """Upsert the demo admin and employee with login passwords; returns their ids."""
    conn = _connect(_as_target(db_config))
    ids: list[int] = []
    try:
        cur = conn.cursor(dictionary=True)
        for code, name, role, password, salary, department, designation, location in DEMO_EMPLOYEES:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT employee_id FROM employees WHERE employee_code=%s", (code,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE employees
                    SET full_name=%s, password_hash=%s, role=%s, department=%s, designation=%s, is_active=1
                    WHERE employee_code=%s
                    """,
                    (name, password_hash, role, department, designation, code),
                )
                ids.append(int(existing["employee_id"]))
            else:
                cur.execute(
                    """
                    INSERT INTO employees (
                        employee_code, full_name, role, password_hash, annual_salary,
                        department, designation, work_location_type
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (code, name, role, password_hash, salary, department, designation, location),
                )
                ids.append(int(cur.lastrowid))

        conn.commit()
        return ids
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
