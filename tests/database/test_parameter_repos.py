"""ParameterRepository tests.

Covers get/set round trips, default fallback, upsert semantics,
value type inference, range validation, listing/search and defaults.
"""
import pytest

from database.parameter_repos import (
    ParameterRepository, infer_value_type, is_numeric, validate_range
)
from database.types import ParameterRecord, ValueType


@pytest.fixture
def params(temp_db):
    """ParameterRepository for a component whose core tables exist."""
    temp_db.component_config("widgets").create_core_tables()
    return temp_db.parameters("widgets")


class TestMissingTable:
    """Behaviour before the component's tables exist."""

    def test_get_returns_default(self, temp_db):
        repo = temp_db.parameters("widgets")
        assert repo.get_parameter("Queue", "batch_size", "50") == "50"

    def test_get_returns_none_without_default(self, temp_db):
        assert temp_db.parameters("widgets").get_parameter("A", "b") is None

    def test_set_returns_false(self, temp_db):
        assert temp_db.parameters("widgets").set_parameter("A", "b", "c") is False

    def test_list_is_empty(self, temp_db):
        repo = temp_db.parameters("widgets")
        assert repo.list_parameters() == []
        assert repo.get_sections() == []


class TestGetSetParameter:
    """Test get_parameter / set_parameter."""

    def test_round_trip(self, params):
        assert params.set_parameter("Display", "color", "blue") is True
        assert params.get_parameter("Display", "color", "red") == "blue"

    def test_default_for_missing_row(self, params):
        assert params.get_parameter("Queue", "batch_size", "50") == "50"

    def test_values_stored_as_text(self, params):
        params.set_parameter("Queue", "batch_size", 50)
        assert params.get_parameter("Queue", "batch_size") == "50"

    def test_none_stored_as_empty_string(self, params):
        params.set_parameter("Display", "title", None)
        assert params.get_parameter("Display", "title", "x") == ""

    def test_upsert_overwrites_value(self, params):
        params.set_parameter("Display", "color", "blue")
        params.set_parameter("Display", "color", "green")
        assert params.get_parameter("Display", "color") == "green"
        assert len(params.list_parameters()) == 1

    def test_same_name_in_different_sections(self, params):
        params.set_parameter("Display", "size", "10")
        params.set_parameter("Queue", "size", "20")
        assert params.get_parameter("Display", "size") == "10"
        assert params.get_parameter("Queue", "size") == "20"

    def test_update_keeps_unspecified_fields(self, params):
        params.set_parameter("Queue", "batch_size", "50",
                             description="Rows per batch",
                             min_range=1, max_range=500)
        params.set_parameter("Queue", "batch_size", "75")

        record = params.get_record("Queue", "batch_size")
        assert record.value == "75"
        assert record.description == "Rows per batch"
        assert record.min_range == 1
        assert record.max_range == 500
        assert record.value_type == ValueType.NUMBER

    def test_explicit_value_type(self, params):
        params.set_parameter("Display", "code", "123",
                             value_type=ValueType.TEXT)
        assert params.get_record("Display", "code").value_type == ValueType.TEXT

    def test_value_type_accepts_string(self, params):
        params.set_parameter("Display", "flag", "on", value_type="boolean")
        assert params.get_record("Display", "flag").value_type == ValueType.BOOLEAN

    def test_value_type_fixed_on_first_write(self, params):
        params.set_parameter("Queue", "batch_size", "50")
        params.set_parameter("Queue", "batch_size", "lots")
        record = params.get_record("Queue", "batch_size")
        assert record.value_type == ValueType.NUMBER

    def test_get_record_missing(self, params):
        assert params.get_record("Display", "nothing") is None


class TestInferValueType:
    """Test infer_value_type() naming conventions."""

    @pytest.mark.parametrize("name,value,expected", [
        ("notifications_enabled", "1", ValueType.BOOLEAN),
        ("require_login", "", ValueType.BOOLEAN),
        ("show_banner", "yes", ValueType.BOOLEAN),
        ("show_banner", "No", ValueType.BOOLEAN),
        ("batch_size", "50", ValueType.NUMBER),
        ("ratio", "0.75", ValueType.NUMBER),
        ("offset", "-3", ValueType.NUMBER),
        ("color", "blue", ValueType.TEXT),
        ("color", "", ValueType.TEXT),
    ])
    def test_inference(self, name, value, expected):
        assert infer_value_type(name, value) == expected

    def test_is_numeric(self):
        assert is_numeric("1e3") is True
        assert is_numeric(" 42 ") is True
        assert is_numeric("4 2") is False
        assert is_numeric(None) is False


class TestValidateRange:
    """Test validate_range()."""

    def _record(self, min_range=None, max_range=None):
        return ParameterRecord(id=1, section="Queue",
                               parameter_name="batch_size", value="50",
                               min_range=min_range, max_range=max_range)

    def test_no_range_accepts_anything(self):
        assert validate_range(self._record(), "anything") is None

    def test_within_range(self):
        assert validate_range(self._record(1, 100), "50") is None

    def test_below_minimum(self):
        assert validate_range(self._record(1, 100), "0") == (
            "batch_size: Value must be at least 1"
        )

    def test_above_maximum(self):
        assert validate_range(self._record(1, 100), "101") == (
            "batch_size: Value must be at most 100"
        )

    def test_not_a_number(self):
        assert validate_range(self._record(1, 100), "abc") == (
            "batch_size: Value must be a number"
        )


class TestListParameters:
    """Test list_parameters / get_sections / delete_parameter."""

    def test_ordered_by_section_then_name(self, params):
        params.set_parameter("Queue", "retries", "3")
        params.set_parameter("Display", "color", "blue")
        params.set_parameter("Queue", "batch_size", "50")

        keys = [(r.section, r.parameter_name) for r in params.list_parameters()]
        assert keys == [
            ("Display", "color"),
            ("Queue", "batch_size"),
            ("Queue", "retries"),
        ]

    def test_filter_by_section(self, params):
        params.set_parameter("Queue", "retries", "3")
        params.set_parameter("Display", "color", "blue")
        records = params.list_parameters(section="Queue")
        assert [r.parameter_name for r in records] == ["retries"]

    def test_search_name_and_description(self, params):
        params.set_parameter("Display", "color", "blue")
        params.set_parameter("Display", "font", "serif",
                             description="Heading colour scheme")
        params.set_parameter("Queue", "retries", "3")

        names = [r.parameter_name for r in params.list_parameters(search="col")]
        assert names == ["color", "font"]

    def test_search_treats_wildcards_literally(self, params):
        params.set_parameter("Display", "a_b", "1")
        params.set_parameter("Display", "axb", "2")
        names = [r.parameter_name for r in params.list_parameters(search="a_b")]
        assert names == ["a_b"]

    def test_get_sections(self, params):
        params.set_parameter("Queue", "retries", "3")
        params.set_parameter("Display", "color", "blue")
        params.set_parameter("Queue", "batch_size", "50")
        assert params.get_sections() == ["Display", "Queue"]

    def test_delete_parameter(self, params):
        params.set_parameter("Display", "color", "blue")
        assert params.delete_parameter("Display", "color") is True
        assert params.delete_parameter("Display", "color") is False
        assert params.get_parameter("Display", "color", "red") == "red"


class TestInsertDefaults:
    """Test insert_defaults()."""

    def test_inserts_all(self, params):
        result = params.insert_defaults([
            {"section": "Queue", "parameter_name": "batch_size",
             "value": "50", "description": "Rows per batch",
             "min_range": 1, "max_range": 500},
            {"section": "Queue", "parameter_name": "worker_enabled",
             "value": "yes"},
        ])
        assert result.success is True
        assert result.inserted == 2
        assert result.errors == []

        record = params.get_record("Queue", "batch_size")
        assert record.max_range == 500
        assert params.get_record(
            "Queue", "worker_enabled"
        ).value_type == ValueType.BOOLEAN

    def test_defaults_overwrite_existing_values(self, params):
        params.set_parameter("Queue", "batch_size", "10")
        params.insert_defaults([
            {"section": "Queue", "parameter_name": "batch_size", "value": "50"},
        ])
        assert params.get_parameter("Queue", "batch_size") == "50"

    def test_malformed_rows_are_collected(self, params):
        """Bad rows become errors and never stop the remaining rows."""
        result = params.insert_defaults([
            {"parameter_name": "no_section", "value": "1"},
            {"section": "Display", "parameter_name": "color",
             "value": "blue", "value_type": "colour"},
            {"section": "Queue", "parameter_name": "batch_size",
             "value": "50"},
        ])
        assert result.success is False
        assert result.inserted == 1
        assert len(result.errors) == 2
        assert result.errors[0] == (
            "Error inserting parameter no_section: missing key 'section'"
        )
        assert result.errors[1].startswith("Error inserting parameter color:")
        assert "colour" in result.errors[1]
        assert params.get_parameter("Queue", "batch_size") == "50"
        assert params.get_record("Display", "color") is None

    def test_missing_table_reports_errors(self, temp_db):
        repo = ParameterRepository(temp_db.conn, "widgets")
        result = repo.insert_defaults([
            {"section": "Queue", "parameter_name": "batch_size", "value": "50"},
        ])
        assert result.success is False
        assert result.inserted == 0
        assert result.errors == ["Failed to insert parameter: batch_size"]
