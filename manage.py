#!/usr/bin/env python3
"""
BoxStock management CLI.

Usage:
    python manage.py serve                  Start the API server
    python manage.py migrate                Apply pending migrations
    python manage.py migrate --status       Show migration status
    python manage.py reconcile PRODUCT_ID   Replay one product's ledger
    python manage.py reconcile --all        Replay every product's ledger
"""

import argparse
import asyncio
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server under uvicorn."""
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "boxstock.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")

    print(f"Starting server on {args.host}:{args.port}...")
    try:
        subprocess.run(uvicorn_cmd, cwd=str(ROOT_DIR), check=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply migrations or report their status."""
    from boxstock.infrastructure.storage.sqlite.migrations.migrator import (
        apply_pending,
        migration_status,
    )

    async def run() -> bool:
        if args.status:
            status = await migration_status(args.db_path)
            print(f"Database exists: {status.exists}")
            print(f"Current version: {status.current_version or 'N/A'}")
            print(f"Applied migrations: {status.applied}")
            print(f"Pending migrations: {status.pending}")
            return True

        results = await apply_pending(args.db_path, backup=not args.no_backup)
        if not results:
            print("Database is up to date.")
        for result in results:
            label = "SUCCESS" if result.success else "FAILED"
            print(f"[{label}] v{result.version}: {result.name} ({result.elapsed_ms}ms)")
            if result.error:
                print(f"         Error: {result.error}")
        return all(r.success for r in results)

    if not asyncio.run(run()):
        sys.exit(1)


def cmd_reconcile(args: argparse.Namespace) -> None:
    """Replay ledgers and report products whose stock disagrees."""
    from boxstock.application.use_cases import ReconcileLedgerUseCase
    from boxstock.infrastructure.storage.sqlite import close_pool

    async def run() -> bool:
        use_case = ReconcileLedgerUseCase()
        try:
            if args.all:
                results = await use_case.check_all()
            else:
                results = [await use_case.check(args.product_id)]
        finally:
            await close_pool()

        for result in results:
            report = result.report
            label = "OK" if report.balanced else "MISMATCH"
            print(
                f"[{label}] {report.product_id}: ledger {report.ledger_box} boxes / "
                f"{report.ledger_kg} kg, stock {report.stock_box} boxes / "
                f"{report.stock_kg} kg ({report.movement_count} movements)"
            )
            if result.mutations_halted:
                print("         Mutations halted until resync.")
        return all(r.report.balanced for r in results)

    if not asyncio.run(run()):
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="BoxStock management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply database migrations")
    p_migrate.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_migrate.add_argument("--status", action="store_true", help="Show migration status")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # reconcile
    p_reconcile = sub.add_parser("reconcile", help="Replay ledgers against stored stock")
    target = p_reconcile.add_mutually_exclusive_group(required=True)
    target.add_argument("product_id", nargs="?", help="Product to reconcile")
    target.add_argument("--all", action="store_true", help="Reconcile every product")
    p_reconcile.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
