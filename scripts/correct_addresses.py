# Script that corrects a CSV of addresses (or a single address line) against the reference store
from argparse import ArgumentParser
import json
import logging
from pathlib import Path

import pandas as pd
from tqdm import tqdm

from address_corrector.correction import AddressCorrector, AddressFields
from address_corrector.settings import settings
from address_corrector.utils.errors import InvalidAddressInput

# Column names of typical order-form exports mapped to address fields
COLUMN_ALIASES = {
    'additional_info': 'address_addition',
    'zip_code': 'postal_code',
    'zip': 'postal_code',
    'plz': 'postal_code',
    'house_number': 'street_number',
}

if __name__ == '__main__':
    parser = ArgumentParser(description='Correct German addresses against the reference store.')
    parser.add_argument('input', type=Path, nargs='?', help='CSV file with address columns')
    parser.add_argument('--output', '-o', type=Path, help='Where to write the corrected CSV')
    parser.add_argument('--line', '-l', type=str, help='Correct a single address line instead of a CSV')
    parser.add_argument('--verbose', '-v', action='store_true', help='Print every pipeline stage')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        filename=str(settings.log_file) if settings.log_file else None,
    )

    corrector = AddressCorrector.from_settings(settings)

    if args.line:
        try:
            result = corrector.correct_address_line(args.line, progress=args.verbose)
        except InvalidAddressInput as e:
            print(e)
            raise SystemExit(2)
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        raise SystemExit(0)

    if args.input is None:
        parser.error('either an input CSV or --line is required')

    df = pd.read_csv(args.input, dtype=str, keep_default_na=False)
    df = df.rename(columns=lambda c: COLUMN_ALIASES.get(c.strip().lower(), c.strip().lower()))
    missing = {'street', 'postal_code'} - set(df.columns)
    if missing:
        parser.error(f'input is missing columns: {sorted(missing)}')

    rows = []
    for record in tqdm(df.to_dict(orient='records'), desc='Correcting addresses'):
        result = corrector.correct_address_components(AddressFields.from_mapping(record))
        rows.append(result.to_dict())

    output = args.output or args.input.with_name(f'{args.input.stem}_corrected.csv')
    pd.DataFrame(rows).to_csv(output, index=False)
    print(f'Wrote {len(rows)} corrected addresses to {output}')
