from address_corrector.correction.additions import (
    extract_additions,
    extract_keyword_addition,
    extract_leading_addition,
)
from address_corrector.correction.models import AddressFields


def test_leading_name_moves_to_addition():
    fields = extract_leading_addition(AddressFields(street="Dieter Strödicke Pielstraße 8"))

    assert fields.street == "Pielstraße 8"
    assert fields.address_addition == "Dieter Strödicke"


def test_leading_name_before_prefixed_street():
    fields = extract_leading_addition(AddressFields(street="Max Mustermann Am Ring 5"))

    assert fields.street == "Am Ring 5"
    assert fields.address_addition == "Max Mustermann"


def test_words_between_street_and_number_move_to_addition():
    fields = extract_leading_addition(AddressFields(street="Pielstraße Hinterhof 8"))

    assert fields.street == "Pielstraße 8"
    assert fields.address_addition == "Hinterhof"


def test_multi_word_street_names_stay_intact():
    for street in ("Am Ring 5", "Alte Gasse 5", "Platz der Republik 3"):
        fields = extract_leading_addition(AddressFields(street=street))
        assert fields.street == street
        assert fields.address_addition is None


def test_leading_extraction_needs_house_number():
    fields = extract_leading_addition(AddressFields(street="Dieter Pielstraße"))

    assert fields.street == "Dieter Pielstraße"
    assert fields.address_addition is None


def test_keyword_moves_venue_to_addition():
    fields = extract_keyword_addition(AddressFields(street="Hauptstr. 5 Hotel Adler"))

    assert fields.street == "Hauptstr. 5"
    assert fields.address_addition == "Hotel Adler"


def test_keyword_decodes_entities_and_strips_quotes():
    fields = extract_keyword_addition(AddressFields(street="Hauptstr. 5 &quot;Pension Sonne&quot;"))

    assert fields.street == "Hauptstr. 5"
    assert fields.address_addition == "Pension Sonne"


def test_keyword_is_case_insensitive_and_appends():
    fields = AddressFields(street="Hauptstr. 5 hotel adler", address_addition="c/o Meier")
    extract_keyword_addition(fields)

    assert fields.street == "Hauptstr. 5"
    assert fields.address_addition == "c/o Meier, Hotel adler"


def test_keyword_matches_whole_words_only():
    fields = extract_keyword_addition(AddressFields(street="Hausener Weg 3"))

    assert fields.street == "Hausener Weg 3"
    assert fields.address_addition is None


def test_extract_additions_runs_both_heuristics():
    fields = extract_additions(AddressFields(street="Familie Schulz Pielstraße 8 Gästehaus Linde"))

    assert fields.street == "Pielstraße 8"
    assert fields.address_addition == "Familie Schulz, Gästehaus Linde"


def test_extraction_without_street_is_a_no_op():
    fields = extract_additions(AddressFields(company="ACME"))

    assert fields.street is None
    assert fields.company == "ACME"


def test_surname_ending_in_street_suffix_is_not_the_street():
    fields = extract_leading_addition(AddressFields(street="Anna Döring Pielstraße 8"))

    assert fields.street == "Pielstraße 8"
    assert fields.address_addition == "Anna Döring"
