"""
Skenderaj Places Backend — Migration Runner
============================================

What:  Applies schema scripts from a versions directory exactly once each.
How:   Scripts are Alembic-style modules (`upgrade()` / `downgrade()` using
       `alembic.op`). Applied script names are recorded in the `migrations`
       table; anything not recorded there is pending.

Run Flow:
    ┌──────────────┐   ┌──────────────┐   ┌──────────────────────────────┐
    │ ensure table │──▶│ pending list │──▶│ per script, one transaction: │
    └──────────────┘   └──────────────┘   │   upgrade() + record name    │
                                          └──────────────────────────────┘

    A failing script rolls back its own transaction and stops the run.
    Scripts before it stay applied; scripts after it stay pending.
"""

import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import List, Optional, Union

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import settings
from app.exceptions import MigrationError
from app.models.migration import AppliedMigration

logger = logging.getLogger(__name__)


def load_script(path: Path) -> ModuleType:
    """Import a migration script by file path (version dirs are not packages)."""
    spec = importlib.util.spec_from_file_location(f"places_migration_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load migration script {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    if not callable(getattr(module, "upgrade", None)):
        raise AttributeError(f"{path.name} has no upgrade() function")
    return module


class MigrationRunner:
    """
    Applies pending migration scripts against an async engine.

    Usage:
        runner = MigrationRunner(engine)
        applied = await runner.run()
    """

    def __init__(self, engine: AsyncEngine, versions_dir: Optional[Union[str, Path]] = None):
        self.engine = engine
        self.versions_dir = Path(versions_dir) if versions_dir else settings.migrations_dir

    def discover(self) -> List[str]:
        """Script filenames, sorted; files starting with `_` are skipped."""
        if not self.versions_dir.is_dir():
            logger.warning("Migrations directory not found: %s", self.versions_dir)
            return []
        return sorted(
            path.name
            for path in self.versions_dir.glob("*.py")
            if not path.name.startswith("_")
        )

    async def ensure_table(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(AppliedMigration.__table__.create, checkfirst=True)

    async def applied(self) -> List[str]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                select(AppliedMigration.name).order_by(AppliedMigration.id)
            )
            return list(result.scalars().all())

    async def pending(self) -> List[str]:
        done = set(await self.applied())
        return [name for name in self.discover() if name not in done]

    async def run(self) -> List[str]:
        """
        Apply every pending script in filename order.

        Returns:
            Names applied by this call (empty when already up to date).

        Raises:
            MigrationError: on the first script that fails
        """
        await self.ensure_table()

        pending = await self.pending()
        logger.info(
            "Found %d migration script(s), %d pending",
            len(self.discover()),
            len(pending),
        )

        applied: List[str] = []
        for name in pending:
            logger.info("Applying migration %s", name)
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(self._apply, name)
            except Exception as e:
                logger.error("Migration %s failed: %s", name, e, exc_info=True)
                raise MigrationError(name, context={"error": str(e)}) from e
            applied.append(name)

        if applied:
            logger.info("Applied %d migration(s)", len(applied))
        else:
            logger.info("Database schema is up to date")
        return applied

    def _apply(self, conn: Connection, name: str) -> None:
        module = load_script(self.versions_dir / name)
        context = MigrationContext.configure(connection=conn)
        with Operations.context(context):
            module.upgrade()
        conn.execute(insert(AppliedMigration.__table__).values(name=name))
