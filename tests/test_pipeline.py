import logging

import pytest

from address_corrector.correction import (
    AddressFields,
    CorrectionConfig,
    CorrectionPipeline,
)
from address_corrector.utils.pipeline_mixin import PipelineMixin


@pytest.fixture
def pipeline(resolver):
    return CorrectionPipeline(resolver)


def test_name_in_front_of_street_becomes_addition(pipeline):
    result = pipeline.run({
        "street": "Dieter Strödicke Pielstraße 8",
        "postal_code": "33100",
        "city": "Paderborn",
    })

    f = result.fields
    assert f.street == "Pielstr."
    assert f.street_number == "8"
    assert f.address_addition == "Dieter Strödicke"
    assert f.district == "Kernstadt"
    # "Pielstr. 8" still carries its number at the existence check
    assert result.confidence_score == pytest.approx(0.9)
    assert [e.stage for e in result.events] == ["street_existence", "street_existence"]


def test_street_suffix_and_city_are_normalized(pipeline):
    result = pipeline.run({"street": "Hauptstr 1", "postal_code": "10115", "city": "Berlin-Mitte"})

    f = result.fields
    assert (f.street, f.street_number, f.city, f.district) == ("Hauptstr.", "1", "Berlin", "Mitte")
    assert result.confidence_score == pytest.approx(0.9)


def test_split_canonical_street_passes_existence_check(pipeline):
    result = pipeline.run({"street": "Hauptstraße", "street_number": "1", "postal_code": "10115", "city": "Berlin"})

    assert result.fields.street == "Hauptstr."
    assert result.events == []
    assert result.confidence_score == pytest.approx(1.0)


def test_upper_case_street_gets_canonical_suffix(pipeline):
    result = pipeline.run({"street": "HAUPTSTRASSE 1", "postal_code": "10115", "city": "Berlin"})

    assert result.fields.street == "Hauptstr."
    assert result.fields.street_number == "1"


def test_renamed_street_is_replaced(pipeline):
    result = pipeline.run({"street": "Alte Gasse 5", "postal_code": "12345", "city": "Musterstadt"})

    f = result.fields
    assert f.street == "Neue Gasse"
    assert f.street_number == "5"
    assert f.original_street == "Alte Gasse 5"
    assert f.district == "Altstadt"
    # street-not-found penalty, then the rename bonus
    assert result.confidence_score == pytest.approx(1.0)
    stages = [e.stage for e in result.events]
    assert stages == ["street_existence", "street_correction"]


def test_misspelled_street_recovered_by_best_match(pipeline):
    result = pipeline.run({"street": "Bahnhofsstraße 3", "postal_code": "33100", "city": "Paderborn"})

    f = result.fields
    assert f.street == "Bahnhofstr."
    assert f.street_number == "3"
    assert f.district == "Südstadt"
    assert result.confidence_score == pytest.approx(0.9)


def test_fuzzy_street_correction_penalized_by_similarity(pipeline):
    result = pipeline.run({"street": "Zeill 1234", "postal_code": "60311", "city": "Frankfurt am Main"})

    f = result.fields
    assert f.street == "Zeil"
    assert f.street_number == "1234"
    assert f.district is None
    # not found (-0.1), fuzzy (-(1 - 0.88) * 0.3), no district (-0.1)
    assert result.confidence_score == pytest.approx(0.764)


def test_street_recovered_from_company(pipeline):
    result = pipeline.run({
        "company": "Pielstraße 8",
        "street": "Musterfirma GmbH",
        "postal_code": "33100",
        "city": "Paderborn",
    })

    f = result.fields
    assert f.street == "Pielstr."
    assert f.street_number == "8"
    assert f.company == "Musterfirma GmbH"
    assert result.confidence_score == pytest.approx(0.9)


def test_street_recovered_from_addition(pipeline):
    result = pipeline.run({
        "street": "c/o Müller",
        "address_addition": "Hinterhaus Hauptstraße 1",
        "postal_code": "10115",
        "city": "Berlin",
    })

    f = result.fields
    assert f.street == "Hauptstr."
    assert f.street_number == "1"
    assert f.address_addition == "Hinterhaus, c/o Müller"
    assert result.confidence_score == pytest.approx(0.9)


def test_street_recovered_from_company_when_street_is_a_house_number(pipeline):
    result = pipeline.run({
        "company": "Pielstraße",
        "street": "8",
        "postal_code": "33100",
        "city": "Paderborn",
    })

    f = result.fields
    assert f.street == "Pielstr."
    assert f.street_number == "8"
    assert f.company is None
    assert result.confidence_score == pytest.approx(0.9)


def test_abbreviated_street_recovered_through_expanded_variant(pipeline):
    result = pipeline.run({"street": "Dr.-Bgm.-Schmidt-Weg 4", "postal_code": "34117", "city": "Kassel"})

    f = result.fields
    assert f.street == "Doktor-Bürgermeister-Schmidt-Weg"
    assert f.street_number == "4"
    assert f.district == "Wehlheiden"
    assert result.confidence_score == pytest.approx(0.9)


def test_best_match_at_threshold_is_accepted(resolver):
    pipeline = CorrectionPipeline(resolver, CorrectionConfig(similarity_threshold=1.0))
    result = pipeline.run({
        "street": "Dr.-Bgm.-Schmidt-Weg",
        "street_number": "4",
        "postal_code": "34117",
        "city": "Kassel",
    })

    assert result.fields.street == "Doktor-Bürgermeister-Schmidt-Weg"
    assert result.fields.street_number == "4"


def test_house_number_taken_from_addition(pipeline):
    result = pipeline.run({
        "street": "Zeil",
        "address_addition": "Hinterhaus 3",
        "postal_code": "60311",
        "city": "Frankfurt am Main",
    })

    f = result.fields
    assert f.street == "Zeil"
    assert f.street_number == "3"
    assert f.address_addition == "Hinterhaus"


def test_name_ending_like_a_street_suffix_stays_in_addition(pipeline):
    result = pipeline.run({"street": "Anna Döring Pielstraße 8", "postal_code": "33100", "city": "Paderborn"})

    f = result.fields
    assert (f.street, f.street_number, f.address_addition) == ("Pielstr.", "8", "Anna Döring")


def test_exact_recovery_mode_needs_whole_field(resolver):
    pipeline = CorrectionPipeline(resolver, CorrectionConfig(field_recovery_mode="exact"))
    result = pipeline.run({
        "street": "c/o Müller",
        "address_addition": "Hinterhaus Hauptstraße 1",
        "postal_code": "10115",
        "city": "Berlin",
    })

    assert result.fields.street == "c/o Müller"
    assert result.confidence_score == pytest.approx(0.9)


def test_postal_code_city_mismatch(pipeline):
    result = pipeline.run({"street": "Hauptstraße", "street_number": "1", "postal_code": "10115", "city": "Hamburg"})

    assert result.fields.city == "Hamburg"
    assert result.fields.district == "Mitte"
    assert result.confidence_score == pytest.approx(0.8)


def test_missing_district_costs_confidence(pipeline):
    result = pipeline.run({"street": "Zeil", "street_number": "1", "postal_code": "60311", "city": "Frankfurt am Main"})

    assert result.fields.street == "Zeil"
    assert result.fields.district is None
    assert result.confidence_score == pytest.approx(0.9)


def test_venue_keyword_moves_to_addition(pipeline):
    result = pipeline.run({"street": "Hauptstraße 1 Hotel Adler", "postal_code": "10115", "city": "Berlin"})

    f = result.fields
    assert (f.street, f.street_number, f.address_addition) == ("Hauptstr.", "1", "Hotel Adler")
    assert result.confidence_score == pytest.approx(0.9)


def test_correcting_corrected_output_changes_nothing(pipeline):
    first = pipeline.run({
        "street": "Dieter Strödicke Pielstraße 8",
        "postal_code": "33100",
        "city": "Paderborn",
    })
    second = pipeline.run(first.fields)

    assert second.fields == first.fields
    # the split street passes the existence check on the second run
    assert first.confidence_score == pytest.approx(0.9)
    assert second.confidence_score == pytest.approx(1.0)


def test_input_is_not_modified(pipeline):
    fields = AddressFields(street="Hauptstr 1", postal_code="10115", city="Berlin-Mitte")

    pipeline.run(fields)

    assert fields == AddressFields(street="Hauptstr 1", postal_code="10115", city="Berlin-Mitte")


def test_empty_input_scores_street_penalty_only(pipeline):
    result = pipeline.run({})

    assert result.fields == AddressFields()
    assert result.confidence_score == pytest.approx(0.9)


def test_resolver_failures_degrade_confidence(failing_resolver):
    pipeline = CorrectionPipeline(failing_resolver)
    result = pipeline.run({"street": "Hauptstr 1", "postal_code": "10115", "city": "Berlin"})

    f = result.fields
    assert (f.street, f.street_number, f.city) == ("Hauptstr.", "1", "Berlin")
    assert f.district is None
    # not found (-0.1), validation failed (-0.2), no district (-0.1)
    assert result.confidence_score == pytest.approx(0.6)


def test_confidence_is_not_clamped_by_default(resolver):
    config = CorrectionConfig(rename_bonus=0.5)
    result = CorrectionPipeline(resolver, config).run(
        {"street": "Alte Gasse 5", "postal_code": "12345", "city": "Musterstadt"}
    )

    assert result.confidence_score == pytest.approx(1.4)


def test_confidence_clamp(resolver):
    config = CorrectionConfig(rename_bonus=0.5, clamp_confidence=True)
    result = CorrectionPipeline(resolver, config).run(
        {"street": "Alte Gasse 5", "postal_code": "12345", "city": "Musterstadt"}
    )

    assert result.confidence_score == 1.0


def test_city_correction_is_opt_in(resolver):
    address = {"street": "Pielstraße 8", "postal_code": "33100", "city": "Pader"}

    plain = CorrectionPipeline(resolver).run(address)
    corrected = CorrectionPipeline(resolver, CorrectionConfig(correct_city=True)).run(address)

    assert plain.fields.city == "Pader"
    assert corrected.fields.city == "Paderborn"
    assert corrected.confidence_score < 1.0


def test_progress_prints_each_stage(pipeline, capsys):
    pipeline.run({"street": "Zeil 1", "postal_code": "60311", "city": "Frankfurt am Main"}, progress=True)

    out = capsys.readouterr().out
    assert "Correction -- Addition Extraction" in out
    assert "Correction -- District Resolution" in out
    assert "Complete" in out


def test_stage_failure_is_logged_and_raised(caplog):
    class Broken(PipelineMixin):
        STAGE_LABEL = 'Broken'
        logger = logging.getLogger("test.broken")

        def _load_pipeline(self):
            return [('Explode', self._explode, {})]

        def _explode(self, state):
            raise KeyError("boom")

    with caplog.at_level(logging.ERROR, logger="test.broken"):
        with pytest.raises(KeyError):
            Broken()._execute_pipeline({})

    assert "Broken -- Explode failed" in caplog.text
