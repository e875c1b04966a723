"""Input descriptors for operation variables.

The runtime uses the descriptor to find the custom scalars buried inside
the variables of a request, including inside nested input objects.
"""

from graphql import (
    GraphQLSchema,
    OperationDefinitionNode,
    get_named_type,
    is_input_object_type,
)

from .documents import named_type_name
from .ir import InputDescriptor


def build_input_descriptor(
    schema: GraphQLSchema, operation: OperationDefinitionNode
) -> InputDescriptor | None:
    """Describe the variables of ``operation``, or None when it declares none."""
    if not operation.variable_definitions:
        return None

    descriptor = InputDescriptor()
    seen: set[str] = set()
    for definition in operation.variable_definitions:
        type_name = named_type_name(definition.type)
        descriptor.fields[definition.variable.name.value] = type_name
        _add_input_type(schema, type_name, descriptor, seen)
    return descriptor


def _add_input_type(schema: GraphQLSchema, type_name: str, descriptor: InputDescriptor, seen: set[str]):
    # nested input objects are recorded before the type that refers to them
    if type_name in seen:
        return
    input_type = schema.get_type(type_name)
    if not is_input_object_type(input_type):
        return
    seen.add(type_name)

    shape: dict[str, str] = {}
    for field_name, input_field in input_type.fields.items():
        nested = get_named_type(input_field.type).name
        shape[field_name] = nested
        _add_input_type(schema, nested, descriptor, seen)
    descriptor.types[type_name] = shape
