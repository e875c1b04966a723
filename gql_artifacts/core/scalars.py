"""Custom scalar conversion at runtime.

A compiled selection tells the runtime which GraphQL type every response
field has; the walkers in this module use it to turn wire values of
custom scalars into Python values (unmarshal) and back (marshal). The
input descriptor of an operation does the same job for its variables.

Example usage:
    from gql_artifacts.core.scalars import ScalarRegistry, ScalarFunctions

    registry = ScalarRegistry({"Money": ScalarFunctions(marshal=str, unmarshal=Decimal)})

    data = unmarshal_selection(registry, artifact.selection, response["data"])
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Protocol, runtime_checkable
from uuid import UUID

from .errors import ScalarConfigurationError
from .ir import InputDescriptor, SelectionField

ROOT_INPUT = "@root"


@runtime_checkable
class ScalarHandler(Protocol):
    """Anything with a ``marshal`` and an ``unmarshal`` callable."""

    def marshal(self, value: Any) -> Any:
        ...

    def unmarshal(self, value: Any) -> Any:
        ...


@dataclass(frozen=True)
class ScalarFunctions:
    """A scalar handler assembled from plain functions.

    Either function may be left out; the walkers only complain when the
    missing direction is actually needed.
    """
    marshal: Callable[[Any], Any] | None = None
    unmarshal: Callable[[Any], Any] | None = None


def _identity(value: Any) -> Any:
    return value


def _parse_datetime(value: str) -> datetime:
    # fromisoformat only accepts a trailing Z from Python 3.11 on
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


DEFAULT_SCALARS: dict[str, ScalarFunctions] = {
    "DateTime": ScalarFunctions(marshal=datetime.isoformat, unmarshal=_parse_datetime),
    "Date": ScalarFunctions(marshal=date.isoformat, unmarshal=date.fromisoformat),
    "UUID": ScalarFunctions(marshal=str, unmarshal=UUID),
    "JSON": ScalarFunctions(marshal=_identity, unmarshal=_identity),
    "JSONObject": ScalarFunctions(marshal=_identity, unmarshal=_identity),
}


class ScalarRegistry:
    """Maps GraphQL scalar names to the handlers that convert them.

    The registry starts out with ``DEFAULT_SCALARS``; entries in
    ``scalars`` are added on top of them and win on a name clash.

    Example:
        registry = ScalarRegistry({"Money": ScalarFunctions(str, Decimal)})
        registry.get("Money").unmarshal("9.99")  # Decimal("9.99")
    """

    def __init__(self, scalars: dict[str, ScalarHandler] | None = None, defaults: bool = True):
        self._handlers: dict[str, ScalarHandler] = dict(DEFAULT_SCALARS) if defaults else {}
        self._handlers.update(scalars or {})

    def register(self, scalar_name: str, handler: ScalarHandler):
        self._handlers[scalar_name] = handler

    def unregister(self, scalar_name: str):
        self._handlers.pop(scalar_name, None)

    def get(self, scalar_name: str) -> ScalarHandler | None:
        """Get the handler for a scalar type, or None if not registered."""
        return self._handlers.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        return scalar_name in self._handlers


def _converter(handler: Any, direction: str, scalar_name: str) -> Callable[[Any], Any]:
    function = getattr(handler, direction, None)
    if not callable(function):
        raise ScalarConfigurationError(
            f"Scalar type {scalar_name} is missing a `{direction}` function"
        )
    return function


def _convert_scalar(registry: ScalarRegistry, scalar_name: str, direction: str, value: Any) -> Any:
    handler = registry.get(scalar_name)
    if handler is None or value is None:
        return value
    function = _converter(handler, direction, scalar_name)
    if isinstance(value, list):
        return [None if item is None else function(item) for item in value]
    return function(value)


def _walk_selection(
    registry: ScalarRegistry,
    selection: dict[str, SelectionField],
    data: Any,
    direction: str,
) -> Any:
    if data is None:
        return None
    if isinstance(data, list):
        return [_walk_selection(registry, selection, item, direction) for item in data]

    result = {}
    for key, value in data.items():
        entry = selection.get(key)
        if entry is None or entry.type is None:
            result[key] = value
        elif entry.fields is not None:
            result[key] = _walk_selection(registry, entry.fields, value, direction)
        else:
            result[key] = _convert_scalar(registry, entry.type, direction, value)
    return result


def marshal_selection(registry: ScalarRegistry, selection: dict[str, SelectionField], data: Any) -> Any:
    """Convert the custom scalars of ``data`` to their wire format."""
    return _walk_selection(registry, selection, data, "marshal")


def unmarshal_selection(registry: ScalarRegistry, selection: dict[str, SelectionField], data: Any) -> Any:
    """Convert the custom scalars of a response to Python values."""
    return _walk_selection(registry, selection, data, "unmarshal")


def marshal_inputs(
    registry: ScalarRegistry,
    descriptor: InputDescriptor | None,
    data: Any,
    root_type: str = ROOT_INPUT,
) -> Any:
    """Convert the custom scalars in a set of variables to their wire format.

    ``root_type`` names the input object ``data`` is an instance of; the
    default refers to the operation's variables themselves.
    """
    if data is None or descriptor is None:
        return data
    if isinstance(data, list):
        return [marshal_inputs(registry, descriptor, item, root_type) for item in data]

    fields = descriptor.fields if root_type == ROOT_INPUT else descriptor.types.get(root_type, {})

    result = {}
    for key, value in data.items():
        type_name = fields.get(key)
        if type_name is None:
            result[key] = value
        elif registry.has(type_name):
            result[key] = _convert_scalar(registry, type_name, "marshal", value)
        elif type_name in descriptor.types:
            result[key] = marshal_inputs(registry, descriptor, value, type_name)
        else:
            result[key] = value
    return result
