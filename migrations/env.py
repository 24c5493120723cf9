# env.py
import sys
from pathlib import Path
from dotenv import load_dotenv
from alembic import context
from sqlalchemy import create_engine, pool

load_dotenv()

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.config import Settings  # noqa: E402
from app.models import Base  # noqa: E402

target_metadata = Base.metadata

# DATABASE_URL points at the hosted Postgres in deployments, SQLite in tests
url = Settings().database_url

config = context.config
config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))

# SQLite cannot ALTER most constraints in place
render_as_batch = url.startswith("sqlite")


def run_migrations_offline() -> None:
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
