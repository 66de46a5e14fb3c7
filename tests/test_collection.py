"""where() filtering tests, including the string-ordering behaviour."""

import pytest

from countrydata.collection import CountryCollection, Operator, resolve, where
from countrydata.models import Country


@pytest.fixture
def records(us_attributes, gb_attributes):
    return [Country(us_attributes), Country(gb_attributes)]


class TestOperator:
    """Operator parsing and evaluation."""

    @pytest.mark.parametrize(
        ("symbol", "expected"),
        [
            ("==", Operator.EQ),
            ("=", Operator.EQ),
            ("!=", Operator.NE),
            ("<>", Operator.NE),
            (" < ", Operator.LT),
            (">", Operator.GT),
            ("<=", Operator.LE),
            (">=", Operator.GE),
            (Operator.GT, Operator.GT),
        ],
    )
    def test_parse(self, symbol, expected):
        assert Operator.parse(symbol) is expected

    @pytest.mark.parametrize("symbol", ["~", "like", "", None])
    def test_unknown_operator_rejected(self, symbol):
        with pytest.raises(ValueError):
            Operator.parse(symbol)

    def test_ordering_compares_text(self):
        assert Operator.GT.evaluate("840", "800")
        assert Operator.GT.evaluate("9", "840")
        assert Operator.LT.evaluate(10, 9)
        assert Operator.GE.evaluate("826", "826")

    def test_equality_is_strict(self):
        assert not Operator.EQ.evaluate("840", 840)
        assert Operator.NE.evaluate("840", 840)


class TestWhere:
    """Filtering sequences of records."""

    def test_region_equality(self, records):
        assert [c.iso_alpha2 for c in where(records, "region", "==", "Europe")] == ["GB"]
        assert [c.iso_alpha2 for c in where(records, "region", "!=", "Europe")] == ["US"]

    def test_two_argument_form_means_equality(self, records):
        assert [c.iso_alpha2 for c in where(records, "geo.region", "Americas")] == ["US"]

    def test_numeric_codes_compare_as_strings(self, records):
        matches = where(records, "iso_numeric", ">", "800")

        assert [c.iso_alpha2 for c in matches] == ["US", "GB"]

    def test_variable_width_numbers_are_not_numeric(self, records):
        # "840" < "9" as text, although 840 > 9 as numbers.
        assert [c.iso_alpha2 for c in where(records, "iso_numeric", "<", "9")] == ["US", "GB"]
        assert where(records, "iso_numeric", ">", "9") == []
        assert [c.iso_alpha2 for c in where(records, "iso_numeric", ">", 800)] == ["US", "GB"]

    def test_strict_equality_does_not_coerce(self, records):
        assert where(records, "iso_numeric", "==", 840) == []

    def test_unresolved_paths_are_excluded(self, records):
        assert where(records, "geo.world_region", "!=", "EMEA") == records[:1]
        assert where(records, "does.not.exist", "!=", "x") == []

    def test_raw_tree_paths(self, records):
        matches = where(records, "dialling.calling_code.0", "44")

        assert [c.iso_alpha2 for c in matches] == ["GB"]

    def test_derived_paths(self, records):
        assert [c.iso_alpha2 for c in where(records, "currency_code", "GBP")] == ["GB"]
        assert [c.iso_alpha2 for c in where(records, "name.native.eng.common", "United States")] == ["US"]
        assert [c.iso_alpha2 for c in where(records, "calling_code", "1")] == ["US"]

    def test_input_is_not_mutated(self, records):
        before = list(records)

        result = where(records, "region", "Europe")

        assert records == before
        assert result is not records

    def test_raw_mappings(self, us_attributes, gb_attributes):
        raw = [us_attributes, gb_attributes]

        assert where(raw, "geo.region", "Europe") == [gb_attributes]
        assert where(raw, "iso_3166_1_numeric", ">=", "826") == raw

    def test_invalid_operator(self, records):
        with pytest.raises(ValueError):
            where(records, "region", "~", "Europe")

    def test_operator_without_value(self, records):
        with pytest.raises(ValueError, match="needs a value"):
            where(records, "region", Operator.GT)


class TestResolve:
    """Path resolution used by where()."""

    def test_country_shortcut_and_fallback(self, us_attributes):
        country = Country(us_attributes)

        assert resolve(country, "iso_alpha2") == "US"
        assert resolve(country, "geo.subregion") == "Northern America"
        assert resolve(us_attributes, "iso_alpha2") is None


class TestCountryCollection:
    """Chainable collection wrapper."""

    def test_chaining(self, records, ie_attributes):
        collection = CountryCollection(records + [Country(ie_attributes)])

        europe = collection.where("region", "Europe")

        assert isinstance(europe, CountryCollection)
        assert europe.codes() == ["GB", "IE"]
        assert europe.where("iso_numeric", "<", "500").codes() == ["IE"]
        assert europe.first().iso_alpha2 == "GB"
        assert collection.where("region", "Africa").first() is None

    def test_sequence_protocol(self, records):
        collection = CountryCollection(records)

        assert len(collection) == 2
        assert collection[0].iso_alpha2 == "US"
        assert collection[-1:].codes() == ["GB"]
        assert [c.iso_alpha2 for c in collection] == ["US", "GB"]
        assert repr(collection) == "CountryCollection(['US', 'GB'])"
