"""
Skenderaj Places Backend — Schema Migrations
=============================================

Run pending scripts:      python -m app.migrations up
Show applied / pending:   python -m app.migrations status
New script template:      python -m app.migrations create add_region_column

Migrations never run on server startup; deploys apply them explicitly.
"""

from app.migrations.runner import MigrationRunner, load_script

__all__ = ["MigrationRunner", "load_script"]
