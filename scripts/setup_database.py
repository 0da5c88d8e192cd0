#!/usr/bin/env python3
"""
Fraud Case Tracker database setup.

Commands:
    init [--demo]                 create schema, enum types and tables
    reset [--mode schema|data]    drop and recreate, or truncate, the tables
    seed --demo                   load demo users and cases
    verify                        check tables and enum values

Only objects inside the fraud_cases schema are touched.

Usage:
    python scripts/setup_database.py init --demo
    python scripts/setup_database.py reset --mode data --yes

The connection URL comes from --admin-url, DATABASE_URL_ADMIN or
DATABASE_URL, in that order.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import psycopg
from psycopg.rows import dict_row

SCHEMA = "fraud_cases"
DB_DIR = Path(__file__).resolve().parent.parent / "db"
SCHEMA_FILE = "fraud_cases_schema.sql"
DEMO_FILE = "seed_demo.sql"

# Children first, so drops and truncates never trip a foreign key
TABLES = ("case_escalations", "cases", "users")
ENUM_TYPES = {
    "user_role": ["admin", "investigator", "analyst", "viewer"],
    "case_status": ["open", "in_progress", "escalated", "resolved", "closed"],
    "case_priority": ["low", "medium", "high", "critical"],
}


class SetupError(Exception):
    """A setup step failed; the message is printed and the script exits 1."""


def split_sql_statements(sql_content: str) -> list[str]:
    """Split SQL on top-level semicolons, keeping ``$$`` bodies intact.

    Full-line ``--`` comments between statements are dropped.
    """
    statements = []
    current: list[str] = []
    in_dollar_quote = False

    for line in sql_content.splitlines():
        stripped = line.strip()
        if not current and (not stripped or stripped.startswith("--")):
            continue

        current.append(line)
        if stripped.count("$$") % 2 == 1:
            in_dollar_quote = not in_dollar_quote

        if not in_dollar_quote and stripped.endswith(";"):
            statements.append("\n".join(current))
            current = []

    tail = "\n".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def apply_sql_file(conn: psycopg.Connection, filename: str) -> int:
    """Run every statement of ``db/<filename>`` and commit; returns the count."""
    path = DB_DIR / filename
    if not path.exists():
        raise SetupError(f"SQL file not found: {path}")

    statements = split_sql_statements(path.read_text(encoding="utf-8"))
    try:
        for statement in statements:
            conn.execute(statement)
    except psycopg.Error as e:
        conn.rollback()
        raise SetupError(f"{filename}: {type(e).__name__}: {e}") from e
    conn.commit()
    print(f"  Applied {filename} ({len(statements)} statements)")
    return len(statements)


def drop_objects(conn: psycopg.Connection) -> None:
    for table in TABLES:
        conn.execute(f"DROP TABLE IF EXISTS {SCHEMA}.{table} CASCADE")
    for enum_type in ENUM_TYPES:
        conn.execute(f"DROP TYPE IF EXISTS {SCHEMA}.{enum_type} CASCADE")
    conn.commit()
    print(f"  Dropped tables and enum types in {SCHEMA}")


def truncate_tables(conn: psycopg.Connection) -> None:
    qualified = ", ".join(f"{SCHEMA}.{table}" for table in TABLES)
    conn.execute(f"TRUNCATE TABLE {qualified} RESTART IDENTITY CASCADE")
    conn.commit()
    print(f"  Truncated {qualified}")


def check_schema(conn: psycopg.Connection) -> list[str]:
    """Return a list of problems with the installed schema (empty when healthy)."""
    problems: list[str] = []

    rows = conn.execute(
        "SELECT table_name FROM information_schema.tables WHERE table_schema = %s",
        (SCHEMA,),
    ).fetchall()
    present = {row["table_name"] for row in rows}
    missing = [table for table in TABLES if table not in present]
    if missing:
        problems.append(f"missing tables: {', '.join(missing)}")

    for enum_type, expected in ENUM_TYPES.items():
        rows = conn.execute(
            """
            SELECT e.enumlabel
            FROM pg_enum e
            JOIN pg_type t ON e.enumtypid = t.oid
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE n.nspname = %s AND t.typname = %s
            ORDER BY e.enumsortorder
            """,
            (SCHEMA, enum_type),
        ).fetchall()
        labels = [row["enumlabel"] for row in rows]
        if labels != expected:
            problems.append(f"{enum_type} is {labels}, expected {expected}")

    return problems


def run_command(args: argparse.Namespace, admin_url: str) -> None:
    if args.command == "reset" and not args.yes:
        answer = input(f"This destroys data in the {SCHEMA} schema. Continue? [y/N]: ")
        if answer.strip().lower() != "y":
            raise SetupError("Aborted")

    if args.command == "seed" and not args.demo:
        raise SetupError("Nothing to seed; pass --demo")

    with psycopg.connect(admin_url, row_factory=dict_row) as conn:
        if args.command == "init":
            apply_sql_file(conn, SCHEMA_FILE)
            if args.demo:
                apply_sql_file(conn, DEMO_FILE)
        elif args.command == "reset":
            if args.mode == "schema":
                drop_objects(conn)
                apply_sql_file(conn, SCHEMA_FILE)
            else:
                truncate_tables(conn)
        elif args.command == "seed":
            apply_sql_file(conn, DEMO_FILE)
        elif args.command == "verify":
            problems = check_schema(conn)
            if problems:
                raise SetupError("Verification failed: " + "; ".join(problems))
            print(f"  Tables and enum types in {SCHEMA} look correct")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fraud Case Tracker - Database Setup")
    parser.add_argument("--admin-url", help="Admin database URL (overrides env vars)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create schema objects")
    init_parser.add_argument("--demo", action="store_true", help="Also load demo data")

    reset_parser = subparsers.add_parser("reset", help="Drop/recreate or truncate tables")
    reset_parser.add_argument("--mode", choices=["schema", "data"], default="schema")
    reset_parser.add_argument("-y", "--yes", action="store_true", help="Do not prompt")

    seed_parser = subparsers.add_parser("seed", help="Load seed data")
    seed_parser.add_argument("--demo", action="store_true", help="Load demo data")

    subparsers.add_parser("verify", help="Check the installed schema")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    admin_url = args.admin_url or os.getenv("DATABASE_URL_ADMIN") or os.getenv("DATABASE_URL")
    if not admin_url:
        print("ERROR: set DATABASE_URL_ADMIN or pass --admin-url")
        return 2

    print(f"Running {args.command}...")
    try:
        run_command(args, admin_url)
    except SetupError as e:
        print(f"ERROR: {e}")
        return 1
    except psycopg.OperationalError as e:
        print(f"ERROR: could not connect: {e}")
        return 1

    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
