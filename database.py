import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from config import env_bool

logger = logging.getLogger(__name__)

DB_USER = os.environ.get("DB_USER", "root")
DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
DB_HOST = os.environ.get("DB_HOST", "localhost")
DB_PORT = int(os.environ.get("DB_PORT", "3306"))
DB_NAME = os.environ.get("DB_NAME", "blog_db")
DB_SSL = env_bool("DB_SSL", default=True)
DB_SSL_CA = os.environ.get("DB_SSL_CA")
DB_CONNECTION_LIMIT = int(os.environ.get("DB_CONNECTION_LIMIT", "10"))


def build_database_url():
    url = os.environ.get("DATABASE_URL")
    if url:
        return make_url(url)
    return URL.create(
        "mysql+pymysql",
        username=DB_USER,
        password=DB_PASSWORD,
        host=DB_HOST,
        port=DB_PORT,
        database=DB_NAME,
    )


def make_engine(url):
    url = make_url(url)
    if url.get_backend_name() == "sqlite":
        return create_engine(url)

    connect_args = {}
    if url.get_backend_name() == "mysql" and DB_SSL:
        # Without a CA, pymysql encrypts but skips certificate verification
        ssl_args = {"check_hostname": False}
        if DB_SSL_CA:
            ssl_args = {"ca": DB_SSL_CA}
        connect_args["ssl"] = ssl_args

    # Fixed-size pool; callers wait for a free connection with no timeout
    return create_engine(
        url,
        pool_size=DB_CONNECTION_LIMIT,
        max_overflow=0,
        pool_timeout=None,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


DATABASE_URL = build_database_url()

engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database(bind=None) -> bool:
    """Create missing tables and run a trivial query against the database.

    Never raises: an unreachable database at startup is logged and the
    service keeps serving, so it recovers once the database is back.
    """
    bind = bind if bind is not None else engine
    try:
        Base.metadata.create_all(bind=bind)
        with bind.connect() as conn:
            conn.execute(text("SELECT 1 + 1 AS result"))
    except SQLAlchemyError as e:
        logger.error("Database check failed: %s", e)
        return False
    logger.info("Database connection OK")
    return True
