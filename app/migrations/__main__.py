"""
Migration command line
----------------------
    python -m app.migrations up
    python -m app.migrations status
    python -m app.migrations create <name>
"""

import argparse
import asyncio
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from app.config import settings
from app.database import dispose_engine, engine
from app.exceptions import MigrationError
from app.migrations.runner import MigrationRunner

logger = logging.getLogger("app.migrations")

TEMPLATE = '''"""{title}

Created: {created}
"""

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # e.g. op.add_column("places", sa.Column("region", sa.String(255), nullable=True))
    pass


def downgrade() -> None:
    # e.g. op.drop_column("places", "region")
    pass
'''


def script_filename(name: str, now: Optional[datetime] = None) -> str:
    """`add region` → `20261019T120000_add_region.py`."""
    cleaned = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    if not cleaned:
        raise ValueError(f"Invalid migration name: {name!r}")
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S")
    return f"{stamp}_{cleaned}.py"


def create_script(name: str, versions_dir: Path, now: Optional[datetime] = None) -> Path:
    now = now or datetime.now(timezone.utc)
    path = versions_dir / script_filename(name, now)
    if path.exists():
        raise FileExistsError(f"Migration already exists: {path}")
    versions_dir.mkdir(parents=True, exist_ok=True)
    path.write_text(
        TEMPLATE.format(title=name.replace("_", " ").capitalize(), created=now.isoformat()),
        encoding="utf-8",
    )
    return path


async def run_up(runner: MigrationRunner) -> int:
    try:
        applied = await runner.run()
    except MigrationError as e:
        print(f"[FAIL] {e.message}: {e.context.get('error')}", file=sys.stderr)
        return 1
    finally:
        await dispose_engine()

    for name in applied:
        print(f"[OK] {name}")
    print(f"{len(applied)} migration(s) applied")
    return 0


async def run_status(runner: MigrationRunner) -> int:
    try:
        await runner.ensure_table()
        applied = await runner.applied()
        pending = await runner.pending()
    finally:
        await dispose_engine()

    for name in applied:
        print(f"  applied  {name}")
    for name in pending:
        print(f"  pending  {name}")
    print(f"{len(applied)} applied, {len(pending)} pending")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m app.migrations",
        description="Apply and create database schema migrations",
    )
    parser.add_argument(
        "--dir",
        type=Path,
        default=settings.migrations_dir,
        help=f"migration scripts directory (default: {settings.migrations_dir})",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("up", help="apply all pending migrations")
    commands.add_parser("status", help="list applied and pending migrations")
    create = commands.add_parser("create", help="write a new migration template")
    create.add_argument("name", help="short description, e.g. add_region_column")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    if args.command == "create":
        try:
            path = create_script(args.name, args.dir)
        except (ValueError, FileExistsError) as e:
            print(f"[FAIL] {e}", file=sys.stderr)
            return 1
        print(f"Created {path}")
        return 0

    runner = MigrationRunner(engine, args.dir)
    if args.command == "up":
        return asyncio.run(run_up(runner))
    return asyncio.run(run_status(runner))


if __name__ == "__main__":
    sys.exit(main())
