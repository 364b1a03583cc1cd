from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


import duckdb  # type: ignore
import pandas as pd  # type: ignore
from address_corrector.correction import DuckDBReferenceResolver, ReferenceResolver


LOCALITIES = [
    {"postal_code": "33100", "name": "Paderborn"},
    {"postal_code": "10115", "name": "Berlin"},
    {"postal_code": "12345", "name": "Musterstadt"},
    {"postal_code": "60311", "name": "Frankfurt am Main"},
    {"postal_code": "01067", "name": "Dresden"},
    {"postal_code": "34117", "name": "Kassel"},
]

STREETS = [
    {"postal_code": "33100", "current_name": "Pielstraße", "old_name": "", "version": "1", "district_key": "001"},
    {"postal_code": "33100", "current_name": "Bahnhofstraße", "old_name": "", "version": "1", "district_key": "002"},
    {"postal_code": "10115", "current_name": "Hauptstraße", "old_name": "", "version": "1", "district_key": "010"},
    {"postal_code": "10115", "current_name": "Invalidenstraße", "old_name": "", "version": "1", "district_key": "010"},
    {"postal_code": "12345", "current_name": "Neue Gasse", "old_name": "Alte Gasse", "version": "2", "district_key": "100"},
    {"postal_code": "60311", "current_name": "Zeil", "old_name": "", "version": "1", "district_key": ""},
    {"postal_code": "01067", "current_name": "Schloßstraße", "old_name": "", "version": "1", "district_key": ""},
    {"postal_code": "34117", "current_name": "Doktor-Bürgermeister-Schmidt-Weg", "old_name": "", "version": "1", "district_key": "200"},
]

DISTRICTS = [
    {"district_key": "001", "postal_code": "33100", "name": "Kernstadt", "version": "2", "status": "A"},
    {"district_key": "002", "postal_code": "33100", "name": "Südstadt", "version": "1", "status": "A"},
    {"district_key": "010", "postal_code": "10115", "name": "Mitte", "version": "1", "status": "A"},
    {"district_key": "100", "postal_code": "12345", "name": "Altstadt", "version": "1", "status": "A"},
    {"district_key": "200", "postal_code": "34117", "name": "Wehlheiden", "version": "1", "status": "A"},
]


def load_reference_data(resolver: DuckDBReferenceResolver) -> None:
    resolver.load_frame("localities", pd.DataFrame(LOCALITIES))
    resolver.load_frame("streets", pd.DataFrame(STREETS))
    resolver.load_frame("districts", pd.DataFrame(DISTRICTS))


@pytest.fixture
def con():
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture
def resolver(con) -> DuckDBReferenceResolver:
    resolver = DuckDBReferenceResolver(con)
    load_reference_data(resolver)
    return resolver


class FailingResolver(ReferenceResolver):
    """Resolver whose backend is unreachable."""

    def _query_closest_city(self, city_name, postal_code):
        raise RuntimeError("reference store unavailable")

    def _query_validate_postal_code(self, postal_code, city):
        raise RuntimeError("reference store unavailable")

    def _query_city_district(self, city, postal_code, street):
        raise RuntimeError("reference store unavailable")

    def _query_streets_by_postal_code(self, postal_code):
        raise RuntimeError("reference store unavailable")

    def _query_streets_with_details(self, postal_code):
        raise RuntimeError("reference store unavailable")


@pytest.fixture
def failing_resolver() -> FailingResolver:
    return FailingResolver()
