from contextlib import contextmanager
from pathlib import Path

import duckdb

from ..settings import settings


def get_duckdb_path() -> str:
    return str(settings.ddb_path)


@contextmanager
def duckdb_connection(db_path: Path | str | None = None, read_only: bool = False):
    path = str(db_path) if db_path is not None else get_duckdb_path()
    if path != ":memory:" and not read_only:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    con = duckdb.connect(path, read_only=read_only)
    try:
        yield con
    finally:
        con.close()
