"""
DuckDB reference store implementing the ReferenceResolver interface.

Holds localities (postal code → city name), streets (with former names
and district keys) and districts (Ortsteile). Postal codes are stored
and queried without leading zeros.
"""

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

import duckdb
import pandas as pd
from pydantic import BaseModel, ValidationError

from ..utils.errors import ReferenceDataValidationError
from .base import ReferenceResolver
from .models import DistrictRecord, LocalityRecord, StreetRecord, strip_postal_code
from .normalizers import canonical_street_key
from .similarity import sounds_alike

logger = logging.getLogger(__name__)

# Suffixes of compound city names ("Frankfurt am Main", "Weil im Schönbuch")
_RE_CITY_COMPOUND = re.compile(r"\s+(?:am|an|im|auf|bei|in)\s+", re.I)
_RE_NON_LETTERS = re.compile(r"[^a-zA-ZäöüßÄÖÜ]")

# Scores for closest-city candidates of a postal code
_CITY_PREFIX_SCORE = 90
_CITY_SUFFIX_SCORE = 80
_CITY_SUBSTRING_SCORE = 70
_CITY_PHONETIC_SCORE = 60


class DuckDBReferenceResolver(ReferenceResolver):
    """
    Reference lookups backed by a DuckDB database.

    Every query runs on its own cursor, so one resolver can serve several
    worker threads.
    """

    DDL_LOCALITIES = """
    CREATE TABLE IF NOT EXISTS localities (
        postal_code TEXT,
        name TEXT
    );
    """

    DDL_STREETS = """
    CREATE TABLE IF NOT EXISTS streets (
        postal_code TEXT,
        current_name TEXT,
        old_name TEXT,
        version INTEGER,
        district_key TEXT
    );
    """

    DDL_DISTRICTS = """
    CREATE TABLE IF NOT EXISTS districts (
        district_key TEXT,
        postal_code TEXT,
        name TEXT,
        version INTEGER,
        status TEXT
    );
    """

    TABLES: Dict[str, Type[BaseModel]] = {
        "localities": LocalityRecord,
        "streets": StreetRecord,
        "districts": DistrictRecord,
    }

    def __init__(self, con: duckdb.DuckDBPyConnection, create_schema: bool = True):
        """
        Initialize the resolver on an open connection.

        Args:
            con: DuckDB connection (the resolver does not own it)
            create_schema: Create the reference tables if missing
        """
        self.con = con
        if create_schema:
            self.create_schema()

    @classmethod
    def from_path(cls, db_path: Path | str, read_only: bool = True) -> "DuckDBReferenceResolver":
        """Open a database file; read-only connections skip schema creation."""
        con = duckdb.connect(str(db_path), read_only=read_only)
        logger.info(f"Opened reference database: {db_path} (read_only={read_only})")
        return cls(con, create_schema=not read_only)

    def create_schema(self) -> None:
        self.con.execute(self.DDL_LOCALITIES)
        self.con.execute(self.DDL_STREETS)
        self.con.execute(self.DDL_DISTRICTS)

    def close(self) -> None:
        self.con.close()

    @contextmanager
    def _cursor(self):
        cur = self.con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    # --- Loading -------------------------------------------------------------

    def load_frame(self, table: str, df: pd.DataFrame, source: Optional[str] = None) -> int:
        """
        Validate and append reference rows to a table.

        Args:
            table: One of "localities", "streets", "districts"
            df: Rows with columns named like the record model fields
            source: Name used in validation errors (defaults to table)

        Returns:
            Number of rows inserted

        Raises:
            ReferenceDataValidationError: If any row fails validation
        """
        try:
            model = self.TABLES[table]
        except KeyError as e:
            raise ValueError(f"Unknown reference table '{table}'. Known tables: {sorted(self.TABLES)}") from e

        records = self._validate_df_to_models(df, model, source or table)
        if not records:
            return 0

        columns = list(model.model_fields)
        batch = pd.DataFrame([r.model_dump() for r in records], columns=columns)
        self.con.register("reference_batch", batch)
        try:
            self.con.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"SELECT {', '.join(columns)} FROM reference_batch"
            )
        finally:
            self.con.unregister("reference_batch")

        logger.info(f"Loaded {len(records)} rows into '{table}'")
        return len(records)

    def load_csv_dir(self, path: Path | str) -> Dict[str, int]:
        """Load localities.csv, streets.csv and districts.csv from a directory, where present."""
        path = Path(path)
        counts: Dict[str, int] = {}
        for table in self.TABLES:
            csv_path = path / f"{table}.csv"
            if not csv_path.exists():
                logger.warning(f"No {csv_path.name} in {path}, skipping '{table}'")
                continue
            df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
            counts[table] = self.load_frame(table, df, source=str(csv_path))
        return counts

    @staticmethod
    def _validate_df_to_models(df: pd.DataFrame, model: Type[BaseModel], source: str) -> List[BaseModel]:
        """Validate dataframe rows with the given pydantic model; blank cells use model defaults."""
        rows = df.astype(object).where(pd.notna(df), None).to_dict(orient="records")
        records = []
        errors = []
        for i, row in enumerate(rows):
            clean = {k: v for k, v in row.items() if v is not None and str(v).strip() != ""}
            try:
                records.append(model.model_validate(clean, strict=False))
            except ValidationError as e:
                for err in e.errors():
                    errors.append({**err, "loc": (i, *err.get("loc", ()))})
        if errors:
            logger.error(f"Validation of {model.__name__} rows from '{source}' failed ({len(errors)} errors)")
            raise ReferenceDataValidationError(source, errors)
        return records

    # --- Queries -------------------------------------------------------------

    def _query_closest_city(self, city_name: str, postal_code: str) -> Optional[str]:
        with self._cursor() as cur:
            exact = cur.execute(
                "SELECT name FROM localities WHERE name = ? LIMIT 1", [city_name]
            ).fetchone()
            if exact:
                logger.info(f"Exact city match: {exact[0]}")
                return exact[0]

            names = [
                row[0] for row in cur.execute(
                    "SELECT DISTINCT name FROM localities WHERE postal_code = ? ORDER BY name",
                    [strip_postal_code(postal_code)],
                ).fetchall()
            ]
            best = self._rank_city_candidates(city_name, names)
            if best:
                logger.info(f"Similar city for '{city_name}': {best}")
                return best

            normalized = _RE_NON_LETTERS.sub("", city_name)
            if normalized:
                prefix = cur.execute(
                    "SELECT name FROM localities WHERE lower(name) LIKE lower(?) "
                    "ORDER BY length(name), name LIMIT 1",
                    [normalized + "%"],
                ).fetchone()
                if prefix:
                    logger.info(f"City for '{city_name}' found by prefix: {prefix[0]}")
                    return prefix[0]

        logger.warning(f"No similar city found for '{city_name}'")
        return None

    @staticmethod
    def _rank_city_candidates(city_name: str, names: Sequence[str]) -> Optional[str]:
        """Highest scoring name (prefix > suffix > substring > phonetic), shortest first on ties."""
        wanted = city_name.lower()
        scored = []
        for name in names:
            n = name.lower()
            if n.startswith(wanted):
                s = _CITY_PREFIX_SCORE
            elif n.endswith(wanted):
                s = _CITY_SUFFIX_SCORE
            elif wanted in n:
                s = _CITY_SUBSTRING_SCORE
            elif sounds_alike(name, city_name):
                s = _CITY_PHONETIC_SCORE
            else:
                continue
            scored.append((-s, len(name), name))
        if not scored:
            return None
        return min(scored)[2]

    def _query_validate_postal_code(self, postal_code: str, city: str) -> bool:
        base_name = _RE_CITY_COMPOUND.split(city)[0].strip()
        with self._cursor() as cur:
            names = [
                row[0] for row in cur.execute(
                    "SELECT DISTINCT name FROM localities WHERE postal_code = ?",
                    [strip_postal_code(postal_code)],
                ).fetchall()
            ]
        for name in names:
            if name == city or name.lower().startswith(base_name.lower()) or sounds_alike(name, base_name):
                return True
        return False

    def _query_city_district(self, city: str, postal_code: str, street: Optional[str]) -> Optional[str]:
        plz = strip_postal_code(postal_code)
        with self._cursor() as cur:
            if street:
                rows = cur.execute(
                    """
                    SELECT s.current_name, d.name, d.version
                    FROM districts d
                    JOIN streets s
                      ON d.postal_code = s.postal_code
                     AND d.district_key = s.district_key
                    WHERE s.postal_code = ?
                    ORDER BY d.version DESC
                    """,
                    [plz],
                ).fetchall()
                wanted = canonical_street_key(street)
                for street_name, district, _ in rows:
                    if canonical_street_key(street_name) == wanted:
                        return district

            row = cur.execute(
                """
                SELECT name
                FROM districts
                WHERE postal_code = ?
                  AND status = 'A'
                ORDER BY version DESC
                LIMIT 1
                """,
                [plz],
            ).fetchone()
        return row[0] if row else None

    def _query_streets_by_postal_code(self, postal_code: str) -> List[str]:
        with self._cursor() as cur:
            rows = cur.execute(
                "SELECT DISTINCT current_name FROM streets WHERE postal_code = ? ORDER BY current_name",
                [strip_postal_code(postal_code)],
            ).fetchall()
        return [row[0] for row in rows]

    def _query_streets_with_details(self, postal_code: str) -> List[StreetRecord]:
        with self._cursor() as cur:
            rows = cur.execute(
                """
                SELECT postal_code, current_name, old_name, version, district_key
                FROM streets
                WHERE postal_code = ?
                ORDER BY version DESC, current_name
                """,
                [strip_postal_code(postal_code)],
            ).fetchall()
        columns = ("postal_code", "current_name", "old_name", "version", "district_key")
        return [StreetRecord.model_validate(dict(zip(columns, row))) for row in rows]
