# Script that loads reference CSVs (localities, streets, districts) into the DuckDB reference store
from argparse import ArgumentParser
import logging
from pathlib import Path

from address_corrector.correction.resolvers import DuckDBReferenceResolver
from address_corrector.db.db import duckdb_connection
from address_corrector.settings import settings
from address_corrector.utils.errors import ReferenceDataValidationError

if __name__ == '__main__':
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        filename=str(settings.log_file) if settings.log_file else None,
    )

    parser = ArgumentParser(description='Load reference CSV files into the DuckDB reference store.')
    parser.add_argument('csv_dir', type=Path, help='Directory with localities.csv, streets.csv, districts.csv')
    parser.add_argument('--db', '-d', type=Path, default=settings.ddb_path)
    parser.add_argument('--replace', '-r', action='store_true', help='Empty the reference tables first')
    args = parser.parse_args()

    with duckdb_connection(args.db) as con:
        resolver = DuckDBReferenceResolver(con)
        if args.replace:
            for table in resolver.TABLES:
                con.execute(f'DELETE FROM {table};')

        try:
            counts = resolver.load_csv_dir(args.csv_dir)
        except ReferenceDataValidationError as e:
            print(e)
            print(e.summary())
            raise SystemExit(1)

    for table, count in counts.items():
        print(f'{table}: {count} rows')
