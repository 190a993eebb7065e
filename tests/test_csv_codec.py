"""Tests for the topic/prompt CSV codec.

Run:
    pytest tests/test_csv_codec.py -v
"""

import pytest

from aeo_csv.adapters.csv_codec import (
    CsvTableCodec,
    escape_cell,
    parse,
    scan_records,
    serialize,
    tokenize,
)
from aeo_csv.canonical.column import ColumnDef, ColumnSpec
from aeo_csv.canonical.row import TableRow
from aeo_csv.governance.spec_registry import (
    build_onboarding_spec,
    build_settings_spec,
    load_column_spec,
)
from aeo_csv.utils.exceptions import (
    EmptyDocumentError,
    MissingRequiredColumnError,
    NoValidRowsError,
    ValidationError,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings_spec():
    return build_settings_spec()


@pytest.fixture
def onboarding_spec():
    return build_onboarding_spec()


@pytest.fixture
def config_csv() -> str:
    return (
        "topic,prompt,country,locale\n"
        "Pricing,How much does it cost?,US,en-US\n"
        'Features,"Does it support SSO, SCIM and audit logs?",GB,en-GB\n'
        'Quotes,"He said, ""hi""\nbye",DE,de-DE\n'
    )


# =============================================================================
# TOKENIZER
# =============================================================================

class TestTokenizer:

    def test_plain_rows(self):
        assert tokenize("a,b\nc,d") == [["a", "b"], ["c", "d"]]

    def test_crlf_terminators(self):
        assert tokenize("a,b\r\nc,d\r\n") == [["a", "b"], ["c", "d"]]

    def test_quoted_field_keeps_commas_and_newlines(self):
        assert tokenize('a,"b,c\nd"\ne,f') == [["a", "b,c\nd"], ["e", "f"]]

    def test_doubled_quote_is_literal(self):
        assert tokenize('"e""f",g') == [['e"f', "g"]]

    def test_quote_opens_mid_field(self):
        assert tokenize('ab"c,d"e,f') == [["abc,de", "f"]]

    def test_empty_text(self):
        assert tokenize("") == []

    def test_trailing_blank_rows_dropped(self):
        assert tokenize("a,b\n\n  ,  \n\n") == [["a", "b"]]

    def test_interior_blank_rows_kept(self):
        assert tokenize("a\n\nb") == [["a"], [""], ["b"]]

    def test_last_row_flushed_without_newline(self):
        assert tokenize("a,b\nc,") == [["a", "b"], ["c", ""]]

    def test_line_numbers_follow_embedded_newlines(self):
        records = scan_records('h\n"x\ny"\nz')
        assert [line for line, _ in records] == [1, 2, 4]


class TestEscaping:

    @pytest.mark.parametrize("value,expected", [
        ("plain", "plain"),
        ("a,b", '"a,b"'),
        ('say "hi"', '"say ""hi"""'),
        ("line\nbreak", '"line\nbreak"'),
        ("carriage\rreturn", '"carriage\rreturn"'),
        ("", ""),
        (None, ""),
        (5, "5"),
    ])
    def test_escape_cell(self, value, expected):
        assert escape_cell(value) == expected


# =============================================================================
# PARSE
# =============================================================================

class TestParse:

    def test_parses_header_file(self, settings_spec, config_csv):
        rows = parse(config_csv, settings_spec)

        assert [r["topic"] for r in rows] == ["Pricing", "Features", "Quotes"]
        assert rows[1]["prompt"] == "Does it support SSO, SCIM and audit logs?"
        assert rows[2]["prompt"] == 'He said, "hi"\nbye'
        assert rows[2]["country"] == "DE"

    def test_every_column_populated(self, settings_spec):
        rows = parse("topic,prompt\nPricing,How much?", settings_spec)
        assert list(rows[0].keys()) == ["topic", "prompt", "country", "locale"]

    def test_values_are_trimmed(self, settings_spec):
        rows = parse("topic,prompt\n  Pricing  ,  How much?  ", settings_spec)
        assert rows[0]["topic"] == "Pricing"
        assert rows[0]["prompt"] == "How much?"

    def test_values_stay_strings(self, settings_spec):
        rows = parse("topic,prompt\n2024,0042", settings_spec)
        assert rows[0]["topic"] == "2024"
        assert rows[0]["prompt"] == "0042"

    def test_header_alias_resolution_any_order(self, settings_spec):
        text = "Query Text,Topic,Country  Code,LOCALE\nWhat does it cost?,Pricing,ca,fr-CA"
        rows = parse(text, settings_spec)

        assert rows == [TableRow({
            "topic": "Pricing",
            "prompt": "What does it cost?",
            "country": "CA",
            "locale": "fr-CA",
        })]

    def test_alias_priority_prefers_canonical_name(self, settings_spec):
        rows = parse("query,topic,prompt\nold,Pricing,new", settings_spec)
        assert rows[0]["prompt"] == "new"

    def test_onboarding_keeps_country_case(self, onboarding_spec):
        rows = parse("topic,prompt,country\nPricing,How much?,ca", onboarding_spec)
        assert rows[0]["country"] == "ca"

    def test_headerless_fallback_positional(self, settings_spec):
        text = '"Pricing","What does it cost?","US","en-US"\nFeatures,What can it do?'
        codec = CsvTableCodec(settings_spec)
        result = codec.parse_with_summary(text)

        assert result.header_detected is False
        assert [r.to_dict() for r in result.rows] == [
            {"topic": "Pricing", "prompt": "What does it cost?", "country": "US", "locale": "en-US"},
            {"topic": "Features", "prompt": "What can it do?", "country": "US", "locale": "en-US"},
        ]

    def test_header_mode_absent_treats_header_as_data(self, settings_spec):
        spec = settings_spec.with_header_mode("ABSENT")
        rows = parse("topic,prompt\nPricing,How much?", spec)
        assert len(rows) == 2
        assert rows[0]["topic"] == "topic"

    def test_defaults_applied(self, settings_spec):
        rows = parse("topic,prompt,country,locale\nPricing,How much?,,", settings_spec)
        assert rows[0]["country"] == "US"
        assert rows[0]["locale"] == "en-US"

    def test_defaults_applied_when_columns_absent(self, onboarding_spec):
        rows = parse("prompt,topic\nHow much?,Pricing", onboarding_spec)
        assert rows[0].to_dict() == {
            "topic": "Pricing",
            "prompt": "How much?",
            "country": "US",
            "locale": "en-US",
        }

    def test_short_rows_padded(self, settings_spec):
        rows = parse("topic,prompt,country,locale\nPricing", settings_spec)
        assert rows[0].to_dict() == {
            "topic": "Pricing",
            "prompt": "",
            "country": "US",
            "locale": "en-US",
        }

    def test_call_site_default_topic(self, settings_spec):
        spec = settings_spec.with_defaults(topic="Pricing")
        rows = parse("topic,prompt\n,How much?\nFeatures,What can it do?", spec)
        assert [r["topic"] for r in rows] == ["Pricing", "Features"]

    def test_blank_rows_dropped(self, settings_spec):
        text = (
            "topic,prompt,country,locale\n"
            ",,,\n"
            "Pricing,How much?,US,en-US\n"
            "  ,  ,  ,  \n"
            "Features,What can it do?,US,en-US"
        )
        result = CsvTableCodec(settings_spec).parse_with_summary(text)

        assert [r["topic"] for r in result.rows] == ["Pricing", "Features"]
        assert result.dropped_rows == 2
        assert result.dropped_lines == [2, 4]

    def test_settings_keeps_partial_rows(self, settings_spec):
        rows = parse("topic,prompt\nPricing,\n,What can it do?", settings_spec)
        assert len(rows) == 2

    def test_onboarding_drops_incomplete_rows(self, onboarding_spec):
        rows = parse("topic,prompt\nPricing,\n,Orphan prompt\nFeatures,What can it do?", onboarding_spec)
        assert [r["topic"] for r in rows] == ["Features"]

    def test_trailing_blank_lines_tolerated(self, settings_spec, config_csv):
        expected = parse(config_csv, settings_spec)
        assert parse(config_csv + "\n\n\n", settings_spec) == expected
        assert parse(config_csv + "\n  \n,,,\n", settings_spec) == expected

    def test_trailing_blank_crlf_lines_tolerated(self, settings_spec):
        text = "topic,prompt\r\nPricing,How much?\r\nFeatures,What can it do?"
        expected = parse(text, settings_spec)
        assert parse(text + "\r\n\r\n\r\n", settings_spec) == expected
        assert expected[1]["prompt"] == "What can it do?"

    def test_line_numbers_recorded(self, settings_spec):
        rows = parse('topic,prompt\n"Multi\nline",p1\nT2,p2', settings_spec)
        assert [r.line_number for r in rows] == [2, 4]


# =============================================================================
# ERRORS
# =============================================================================

class TestParseErrors:

    def test_empty_text(self, settings_spec):
        with pytest.raises(EmptyDocumentError) as exc:
            parse("", settings_spec)
        assert exc.value.message == "CSV file is empty or missing data rows."

    def test_header_only(self, onboarding_spec):
        with pytest.raises(EmptyDocumentError):
            parse("topic,prompt,country,locale\n", onboarding_spec)

    def test_only_blank_rows_is_no_valid_rows(self, settings_spec):
        with pytest.raises(NoValidRowsError):
            parse("topic,prompt\n , \n,\n", settings_spec)

    def test_all_rows_dropped(self, settings_spec):
        with pytest.raises(NoValidRowsError) as exc:
            parse("topic,prompt,country\n,,CA\n,,DE", settings_spec)
        assert not isinstance(exc.value, EmptyDocumentError)
        assert exc.value.message == "No valid rows found in CSV."

    def test_missing_required_columns(self, onboarding_spec):
        with pytest.raises(MissingRequiredColumnError) as exc:
            parse("name,description\nPricing,How much?", onboarding_spec)
        assert exc.value.missing_columns == ["topic", "prompt"]
        assert exc.value.message == "CSV must contain 'topic' and 'prompt' columns"

    def test_missing_single_required_column(self, settings_spec):
        with pytest.raises(MissingRequiredColumnError) as exc:
            parse("topic,country\nPricing,US", settings_spec)
        assert exc.value.missing_columns == ["prompt"]
        assert "'prompt'" in exc.value.message

    def test_unrecognized_header_is_data_in_auto_mode(self, settings_spec):
        rows = parse("name,description\nPricing,How much?", settings_spec)
        assert rows[0]["topic"] == "name"

    def test_all_errors_are_validation_errors(self):
        assert issubclass(EmptyDocumentError, ValidationError)
        assert issubclass(MissingRequiredColumnError, ValidationError)
        assert issubclass(NoValidRowsError, ValidationError)


# =============================================================================
# SERIALIZE
# =============================================================================

class TestSerialize:

    def test_header_and_rows(self, settings_spec):
        text = serialize([
            {"topic": "Pricing", "prompt": "How much?", "country": "US", "locale": "en-US"},
        ], settings_spec)
        assert text == "topic,prompt,country,locale\nPricing,How much?,US,en-US"

    def test_quoting(self, settings_spec):
        row = TableRow({
            "topic": "Quotes",
            "prompt": 'He said, "hi"\nbye',
            "country": "US",
            "locale": "en-US",
        })
        text = serialize([row], settings_spec)

        assert text.split("\n", 1)[1] == 'Quotes,"He said, ""hi""\nbye",US,en-US'
        assert parse(text, settings_spec)[0]["prompt"] == 'He said, "hi"\nbye'

    def test_missing_and_none_values_blank(self, settings_spec):
        text = serialize([{"topic": "Pricing", "prompt": None}], settings_spec)
        assert text.endswith("\nPricing,,,")

    def test_no_rows_emits_header_only(self, settings_spec):
        assert serialize([], settings_spec) == "topic,prompt,country,locale"

    def test_no_trailing_newline(self, settings_spec, config_csv):
        rows = parse(config_csv, settings_spec)
        assert not serialize(rows, settings_spec).endswith("\n")


class TestRoundTrip:

    def test_parse_serialize_parse(self, settings_spec, config_csv):
        rows = parse(config_csv, settings_spec)
        assert parse(serialize(rows, settings_spec), settings_spec) == rows

    def test_round_trip_from_aliases_and_headerless(self, settings_spec):
        for text in (
            "Query Text,Topic\nHow much?,Pricing",
            "Pricing,How much?,gb",
        ):
            rows = parse(text, settings_spec)
            assert parse(serialize(rows, settings_spec), settings_spec) == rows

    def test_defaulted_fields_are_fixed_points(self, onboarding_spec):
        rows = parse("topic,prompt\nPricing,How much?", onboarding_spec)
        again = parse(serialize(rows, onboarding_spec), onboarding_spec)
        assert again == rows
        assert again[0]["country"] == "US"

    def test_call_site_default_is_cleaned(self):
        spec = build_settings_spec().with_defaults(country="ca")
        rows = parse("topic,prompt,country\nPricing,How much?,", spec)

        assert rows[0]["country"] == "CA"
        assert parse(serialize(rows, spec), spec) == rows

    def test_yaml_default_is_trimmed(self, tmp_path):
        path = tmp_path / "padded_defaults.yaml"
        path.write_text(
            "columns:\n"
            "  - topic\n"
            "  - prompt\n"
            "  - name: country\n"
            "    default: \" US \"\n",
            encoding="utf-8",
        )
        spec = load_column_spec(str(path))
        rows = parse("topic,prompt,country\nPricing,How much?,", spec)

        assert rows[0]["country"] == "US"
        assert parse(serialize(rows, spec), spec) == rows


# =============================================================================
# ROUND TRIP MATRIX
# =============================================================================

CELL_VALUES = [
    "How much?",
    "line one\r\nline two",
    "bare\rreturn",
    '"Quoted" start',
    "a, b and c",
    'He said ""hi""',
    "  padded  ",
    "lower case",
]


def _yaml_spec(tmp_path):
    path = tmp_path / "market_prompts.yaml"
    path.write_text(
        "columns:\n"
        "  - name: topic\n"
        "  - name: prompt\n"
        "    aliases: [query]\n"
        "  - name: market\n"
        "    default: \" de \"\n"
        "    uppercase: true\n"
        "  - name: locale\n"
        "    default: \" en-US \"\n",
        encoding="utf-8",
    )
    return load_column_spec(str(path))


def _comma_column_spec(tmp_path):
    return ColumnSpec(
        name="LABELLED",
        columns=[
            ColumnDef("topic, label"),
            ColumnDef("prompt"),
            ColumnDef("country", default="us", uppercase=True),
        ],
    )


SPEC_BUILDERS = {
    "settings": lambda tmp_path: build_settings_spec(),
    "onboarding": lambda tmp_path: build_onboarding_spec(),
    "settings_country_default": lambda tmp_path: build_settings_spec().with_defaults(country="ca"),
    "settings_topic_default": lambda tmp_path: build_settings_spec().with_defaults(topic=" Pricing "),
    "onboarding_locale_default": lambda tmp_path: build_onboarding_spec().with_defaults(locale=" en-GB "),
    "yaml_uppercase_default": _yaml_spec,
    "comma_in_column_name": _comma_column_spec,
}


@pytest.fixture(params=sorted(SPEC_BUILDERS))
def round_trip_spec(request, tmp_path):
    return SPEC_BUILDERS[request.param](tmp_path)


def _source_rows(spec):
    """
    One row per sample value; optional columns are left blank on
    alternating cells so their defaults are exercised.
    """
    rows = []
    for i in range(len(CELL_VALUES)):
        row = {}
        for j, col in enumerate(spec.columns):
            if not col.required and (i + j) % 2:
                row[col.name] = ""
            else:
                row[col.name] = CELL_VALUES[(i + j) % len(CELL_VALUES)]
        rows.append(row)
    return rows


class TestRoundTripMatrix:

    def test_parse_serialize_parse(self, round_trip_spec):
        source = _source_rows(round_trip_spec)
        rows = parse(serialize(source, round_trip_spec), round_trip_spec)

        assert len(rows) == len(source)
        assert parse(serialize(rows, round_trip_spec), round_trip_spec) == rows

    def test_defaulted_cells_are_fixed_points(self, round_trip_spec):
        source = [{name: "" for name in round_trip_spec.column_names}]
        for col in round_trip_spec.required_columns:
            source[0][col.name] = "Filled"

        rows = parse(serialize(source, round_trip_spec), round_trip_spec)
        for col in round_trip_spec.columns:
            if col.default is not None:
                assert rows[0][col.name] == col.default
        assert parse(serialize(rows, round_trip_spec), round_trip_spec) == rows

    @pytest.mark.parametrize("value", CELL_VALUES[:6])
    def test_cell_value_preserved(self, settings_spec, value):
        text = serialize([{"topic": "Pricing", "prompt": value}], settings_spec)
        assert parse(text, settings_spec)[0]["prompt"] == value
