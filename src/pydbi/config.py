"""Environment-variable-based configuration."""

import os


def get_driver() -> str:
    """Return the DBI driver identifier from PYDBI_DRIVER."""
    return os.environ.get("PYDBI_DRIVER", "sqlite3")


def get_dbname() -> str:
    """Return the database name from PYDBI_DBNAME."""
    return os.environ.get("PYDBI_DBNAME", "test.sqlite3")


def get_dbdir() -> str:
    """Return the SQLite database directory from PYDBI_DBDIR."""
    return os.environ.get("PYDBI_DBDIR", ".")


def get_log_level() -> str:
    """Return the logging level from PYDBI_LOG_LEVEL."""
    return os.environ.get("PYDBI_LOG_LEVEL", "WARNING")


def get_connect_options(
    driver: str | None = None, dbname: str | None = None, dbdir: str | None = None
) -> dict[str, str]:
    """Build the option mapping for a driver, falling back to the environment."""
    driver = driver or get_driver()
    options = {"dbname": dbname or get_dbname()}
    if driver.lower() in ("sqlite3", "sqlite"):
        options["sqlite3_dbdir"] = dbdir or get_dbdir()
    return options
