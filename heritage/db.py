import os

from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine, make_url

_DB_URL_ALIASES = (
    "DATABASE_URL",
    "DATABASE_PRIVATE_URL",
    "POSTGRES_URL",
    "POSTGRESQL_URL",
)

PROJECTS_TABLE = "heritage_projects"
DETAILS_TABLE = "project_details"
RUNS_TABLE = "scraper_runs"


def _resolve_database_url() -> str:
    for key in _DB_URL_ALIASES:
        value = os.getenv(key)
        if value:
            return value
    # Local runs keep everything in one SQLite file next to the checkout
    db_path = os.getenv("HERITAGE_DB_PATH", "heritage.db").strip() or "heritage.db"
    return f"sqlite+pysqlite:///{db_path}"


def get_engine() -> Engine:
    db_url = _resolve_database_url()

    url = make_url(db_url)
    # Normalize to psycopg driver for SQLAlchemy (safe even if already present)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg")

    query = dict(url.query)
    sslmode = query.get("sslmode")
    explicit_sslmode = os.getenv("DB_SSLMODE", "").strip()
    require_ssl = os.getenv("REQUIRE_DB_SSL", "0").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    if not sslmode and explicit_sslmode:
        query["sslmode"] = explicit_sslmode
    elif not sslmode and require_ssl and url.drivername.startswith("postgresql"):
        query["sslmode"] = "require"
    if query != dict(url.query):
        url = url.set(query=query)

    return create_engine(url, pool_pre_ping=True, future=True)


def check_db_connectivity(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(sql_text("SELECT 1"))


def _id_column(engine: Engine) -> str:
    if engine.dialect.name.startswith("postgres"):
        return "id BIGSERIAL PRIMARY KEY"
    return "id INTEGER PRIMARY KEY AUTOINCREMENT"


def schema_statements(engine: Engine) -> list[str]:
    id_col = _id_column(engine)
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {PROJECTS_TABLE} (
            {id_col},
            project_name TEXT NOT NULL,
            country TEXT,
            doi TEXT UNIQUE NOT NULL,
            status TEXT,
            collectors TEXT,
            keywords TEXT,
            contributor TEXT,
            project_link TEXT,
            doi_link TEXT,
            collectors_link TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """,
        # doi is a logical reference only: details may land before their stub
        f"""
        CREATE TABLE IF NOT EXISTS {DETAILS_TABLE} (
            {id_col},
            doi TEXT UNIQUE NOT NULL,
            site_description TEXT,
            project_description TEXT,
            external_project_link TEXT,
            additional_information_link TEXT,
            collection_date TEXT,
            publication_date TEXT,
            license TEXT,
            license_url TEXT,
            reuse_score TEXT,
            citation TEXT,
            point_cloud_iframe TEXT,
            bbox_json TEXT,
            center_lat DOUBLE PRECISION,
            center_lng DOUBLE PRECISION,
            data_types_json TEXT,
            downloads_json TEXT,
            contributors_json TEXT,
            collectors_json TEXT,
            funders_json TEXT,
            partners_json TEXT,
            site_authority TEXT,
            datacite_json TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {RUNS_TABLE} (
            run_id TEXT NOT NULL,
            scraper TEXT NOT NULL,
            started_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            finished_at TIMESTAMP,
            status TEXT NOT NULL,
            dry_run BOOLEAN NOT NULL DEFAULT FALSE,
            rows_inserted INTEGER NOT NULL DEFAULT 0,
            rows_updated INTEGER NOT NULL DEFAULT 0,
            fetch_count INTEGER NOT NULL DEFAULT 0,
            last_error TEXT,
            details_json TEXT NOT NULL DEFAULT '{{}}',
            PRIMARY KEY (run_id, scraper)
        )
        """,
    ]


def apply_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for stmt in schema_statements(engine):
            conn.exec_driver_sql(stmt)
