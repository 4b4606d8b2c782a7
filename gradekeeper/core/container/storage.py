from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import gradekeeper.lib.json as json
from gradekeeper.lib import NotReady

from ..config.secrets import PostgresqlSecrets, Secrets
from ..config.storage import PersistentSettings
from ..provider import LoggingProvider
from .notification import NotificationContainer


def provide_dsn(config: PersistentSettings, secrets: PostgresqlSecrets) -> DSN:
    if config.sqlite is not None:
        return DSN.create(config.sqlite.driver, database=str(config.sqlite.path))

    assert config.postgresql is not None
    pg = config.postgresql
    return DSN.create(
        pg.driver,
        database=pg.database,
        username=secrets.username.get_secret_value() if secrets.username else None,
        password=secrets.password.get_secret_value() if secrets.password else None,
        port=pg.port,
        host=str(pg.host) if pg.host else None,
    )


def provide_alembic_conf(migration_path: Path, dsn: DSN, root: Path | NotReady) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    escaped_str = dsn.render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def create_engine(dsn: DSN, *, echo: bool = False, busy_timeout: float = 30.0) -> sqlalchemy.Engine:
    """Build an engine for either backend with the connection hooks it needs."""
    if dsn.get_backend_name() == "sqlite":
        engine = sqlalchemy.create_engine(
            dsn,
            echo=echo,
            json_serializer=json.dumps,
            json_deserializer=json.loads,
            connect_args={"check_same_thread": False, "timeout": busy_timeout},
        )
        sqlalchemy.event.listen(engine, "connect", register_sqlite_pragmas)
    else:
        engine = sqlalchemy.create_engine(dsn, echo=echo, json_serializer=json.dumps, json_deserializer=json.loads)
        sqlalchemy.event.listen(engine, "connect", register_timezone)
    return engine


def provide_engine(config: PersistentSettings, dsn: DSN, logging: LoggingProvider) -> sqlalchemy.Engine:
    logger = logging.get_logger()

    busy_timeout = config.sqlite.busy_timeout if config.sqlite else 30.0
    engine = create_engine(dsn, echo=config.echo, busy_timeout=busy_timeout)
    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": dsn.drivername,
            "database": dsn.database,
            "host": dsn.host,
            "port": dsn.port,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it (via di.Manage)."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    dsn: Provider[DSN] = Singleton(
        provide_dsn,
        config=config.as_(PersistentSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
    )
    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        dsn=dsn,
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.as_(PersistentSettings),
        dsn=dsn,
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config = Configuration(strict=True)
    secrets: Provider[Secrets] = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()
    stream_prefix: Provider[str] = Object("gradekeeper:notifications")

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )
    streaming: Provider[NotificationContainer] = Container(
        NotificationContainer, config=config.streaming, secrets=secrets, stream_prefix=stream_prefix
    )


def register_sqlite_pragmas(dbapi_conn: t.Any, _: t.Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set connection timezone to UTC so TIMESTAMPTZ columns come back as UTC."""
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()
