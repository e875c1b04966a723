"""Tests for custom scalar handlers and the marshal/unmarshal walkers."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from gql_artifacts.core.errors import ScalarConfigurationError
from gql_artifacts.core.ir import InputDescriptor, SelectionField, selection_from_dict
from gql_artifacts.core.pipeline import run_pipeline
from gql_artifacts.core.scalars import (
    DEFAULT_SCALARS,
    ScalarFunctions,
    ScalarHandler,
    ScalarRegistry,
    marshal_inputs,
    marshal_selection,
    unmarshal_selection,
)


@pytest.fixture
def registry():
    return ScalarRegistry()


@pytest.fixture
def birthday_artifact(config, make_documents):
    """Compile a query selecting DateTime fields at several depths."""
    documents = make_documents(
        """
        query Birthdays {
            user {
                id
                birthday
                friends {
                    birthday
                }
            }
        }
        """
    )
    return run_pipeline(config, documents)[0]


class TestDefaultScalars:
    """Tests for DEFAULT_SCALARS."""

    @pytest.mark.parametrize(
        "scalar, python_value, wire_value",
        [
            ("DateTime", datetime(2024, 1, 15, 10, 30), "2024-01-15T10:30:00"),
            ("Date", date(2024, 1, 15), "2024-01-15"),
            ("UUID", UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
            ("JSON", {"key": "value", "number": 42}, {"key": "value", "number": 42}),
            ("JSONObject", [1, 2, 3], [1, 2, 3]),
        ],
    )
    def test_conversions(self, scalar, python_value, wire_value):
        handler = DEFAULT_SCALARS[scalar]

        assert handler.marshal(python_value) == wire_value
        assert handler.unmarshal(wire_value) == python_value

    def test_datetime_accepts_utc_suffix(self):
        result = DEFAULT_SCALARS["DateTime"].unmarshal("2024-01-15T10:30:00Z")

        assert result.replace(tzinfo=None) == datetime(2024, 1, 15, 10, 30)
        assert result.utcoffset().total_seconds() == 0


class TestScalarRegistry:
    """Tests for ScalarRegistry."""

    def test_starts_with_defaults(self, registry):
        assert all(registry.has(name) for name in DEFAULT_SCALARS)
        assert registry.get("NonExistent") is None

    def test_without_defaults(self):
        registry = ScalarRegistry(defaults=False)
        assert not registry.has("DateTime")

    def test_configured_scalars_override_defaults(self):
        money = ScalarFunctions(marshal=str, unmarshal=Decimal)
        registry = ScalarRegistry({"Money": money, "UUID": money})

        assert registry.get("Money") is money
        assert registry.get("UUID") is money
        assert registry.get("Money").unmarshal("9.99") == Decimal("9.99")

    def test_register_and_unregister(self, registry):
        registry.register("Money", ScalarFunctions(unmarshal=Decimal))
        registry.unregister("JSON")

        assert registry.has("Money")
        assert not registry.has("JSON")

    def test_registries_do_not_share_handlers(self):
        first = ScalarRegistry()
        first.unregister("DateTime")

        assert ScalarRegistry().has("DateTime")
        assert "DateTime" in DEFAULT_SCALARS

    @pytest.mark.parametrize(
        "handler",
        [
            *DEFAULT_SCALARS.values(),
            ScalarFunctions(marshal=str, unmarshal=str),
        ],
    )
    def test_handlers_follow_protocol(self, handler):
        assert isinstance(handler, ScalarHandler)

    def test_handler_missing_a_function_does_not_follow_protocol(self):
        assert not isinstance(ScalarFunctions(unmarshal=Decimal), ScalarHandler)


class TestSelectionWalkers:
    """Tests for marshal_selection and unmarshal_selection."""

    RESPONSE = {
        "user": {
            "id": "1",
            "birthday": "2024-01-15T10:30:00",
            "friends": [
                {"birthday": "2000-02-29T00:00:00"},
                {"birthday": None},
            ],
        }
    }

    def test_unmarshal(self, registry, birthday_artifact):
        data = unmarshal_selection(registry, birthday_artifact.selection, self.RESPONSE)

        user = data["user"]
        assert user["id"] == "1"
        assert user["birthday"] == datetime(2024, 1, 15, 10, 30)
        assert user["friends"][0]["birthday"] == datetime(2000, 2, 29)
        assert user["friends"][1]["birthday"] is None

    def test_round_trip(self, registry, birthday_artifact):
        selection = birthday_artifact.selection
        data = unmarshal_selection(registry, selection, self.RESPONSE)

        assert marshal_selection(registry, selection, data) == self.RESPONSE

    def test_persisted_selection(self, registry, birthday_artifact):
        selection = selection_from_dict(birthday_artifact.to_dict()["selection"])
        data = unmarshal_selection(registry, selection, self.RESPONSE)

        assert data["user"]["birthday"] == datetime(2024, 1, 15, 10, 30)

    def test_null_and_unknown_fields_pass_through(self, registry, birthday_artifact):
        selection = birthday_artifact.selection

        assert unmarshal_selection(registry, selection, None) is None
        assert unmarshal_selection(registry, selection, {"user": None}) == {"user": None}
        assert unmarshal_selection(registry, selection, {"extra": "2024-01-15"}) == {"extra": "2024-01-15"}

    def test_scalar_lists(self, registry):
        selection = {"dates": SelectionField(type="Date", key_raw="dates")}
        data = unmarshal_selection(registry, selection, {"dates": ["2024-01-15", "2024-01-16"]})

        assert data == {"dates": [date(2024, 1, 15), date(2024, 1, 16)]}

    def test_missing_function_is_reported_when_used(self, registry, birthday_artifact):
        registry.register("DateTime", ScalarFunctions(unmarshal=datetime.fromisoformat))
        selection = birthday_artifact.selection

        data = unmarshal_selection(registry, selection, self.RESPONSE)
        with pytest.raises(ScalarConfigurationError, match="marshal"):
            marshal_selection(registry, selection, data)

    def test_unused_scalars_are_not_checked(self, registry, birthday_artifact):
        registry.register("Money", ScalarFunctions())

        data = unmarshal_selection(registry, birthday_artifact.selection, self.RESPONSE)
        assert data["user"]["id"] == "1"


class TestMarshalInputs:
    """Tests for marshal_inputs."""

    DESCRIPTOR = InputDescriptor(
        fields={"filter": "UserFilter", "birthday": "DateTime", "ids": "ID"},
        types={
            "NestedFilter": {"createdAt": "DateTime", "tags": "String"},
            "UserFilter": {
                "name": "String",
                "since": "DateTime",
                "nested": "NestedFilter",
                "recursive": "UserFilter",
            },
        },
    )

    def test_nested_inputs(self, registry):
        variables = {
            "filter": {
                "name": "Bruce",
                "since": datetime(2024, 1, 15),
                "nested": {"createdAt": datetime(2024, 1, 16), "tags": ["a"]},
                "recursive": {"since": datetime(2024, 1, 17)},
            },
            "birthday": None,
            "ids": ["1", "2"],
        }

        assert marshal_inputs(registry, self.DESCRIPTOR, variables) == {
            "filter": {
                "name": "Bruce",
                "since": "2024-01-15T00:00:00",
                "nested": {"createdAt": "2024-01-16T00:00:00", "tags": ["a"]},
                "recursive": {"since": "2024-01-17T00:00:00"},
            },
            "birthday": None,
            "ids": ["1", "2"],
        }

    def test_lists_of_input_objects(self, registry):
        descriptor = InputDescriptor(
            fields={"filters": "NestedFilter"},
            types={"NestedFilter": {"createdAt": "DateTime"}},
        )
        variables = {"filters": [{"createdAt": datetime(2024, 1, 15)}, {"createdAt": None}]}

        assert marshal_inputs(registry, descriptor, variables) == {
            "filters": [{"createdAt": "2024-01-15T00:00:00"}, {"createdAt": None}],
        }

    def test_without_descriptor(self, registry):
        variables = {"birthday": datetime(2024, 1, 15)}
        assert marshal_inputs(registry, None, variables) is variables

    def test_compiled_descriptor(self, registry, config, make_documents):
        documents = make_documents(
            """
            mutation UpdateUser($filter: UserFilter, $birthday: DateTime) {
                updateUser(filter: $filter, birthday: $birthday) {
                    id
                }
            }
            """
        )
        artifact = run_pipeline(config, documents)[0]

        result = marshal_inputs(
            registry,
            artifact.input,
            {"birthday": datetime(2024, 1, 15), "filter": {"recursive": {"since": datetime(2024, 1, 16)}}},
        )
        assert result == {
            "birthday": "2024-01-15T00:00:00",
            "filter": {"recursive": {"since": "2024-01-16T00:00:00"}},
        }
