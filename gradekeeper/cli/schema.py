"""Database schema migrations, driven by alembic against the configured database."""

from __future__ import annotations

import alembic.command
import alembic.config

import gradekeeper.lib.cli as click
from gradekeeper.core import di

AlembicConfig = di.Provide["storage.persistent.alembic_config"]


@click.group("schema")
def schema():
    """Inspect and migrate the grading database schema."""
    ...


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def current(verbose: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    """Show the revision the database is at."""
    alembic.command.current(alembic_conf, verbose=verbose)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True, help="diff the tables against the database")
@di.inject
def generate(message: str, autogenerate: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    """Write a new revision script."""
    alembic.command.revision(alembic_conf, message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision", default="head")
@di.inject
def up(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    """Upgrade to REVISION (default: head)."""
    alembic.command.upgrade(alembic_conf, revision)


@schema.command()
@click.argument("revision")
@di.inject
def down(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    """Downgrade to REVISION."""
    alembic.command.downgrade(alembic_conf, revision)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def history(verbose: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    alembic.command.history(alembic_conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    """Mark the database as being at REVISION without running migrations."""
    alembic.command.stamp(alembic_conf, revision)
