import pytest

from podlens.core.exceptions import DuplicateToolError, RegistryClosedError, UnknownToolError
from podlens.core.types import ParameterKind, ParameterSpec, ToolSpec
from podlens.mcp.registry import ToolRegistry
from podlens.mcp.tools import register_all
from podlens.mcp.tools.hello import HELLO_TOOL, hello_world


def test_register_and_lookup():
    registry = ToolRegistry()
    registry.register(HELLO_TOOL, hello_world)

    assert registry.lookup("hello_world") is hello_world
    assert "hello_world" in registry
    assert len(registry) == 1


def test_duplicate_name_is_rejected():
    registry = ToolRegistry()
    registry.register(HELLO_TOOL, hello_world)

    with pytest.raises(DuplicateToolError):
        registry.register(ToolSpec(name="hello_world", description="again"), hello_world)


def test_unknown_name_raises():
    with pytest.raises(UnknownToolError):
        ToolRegistry().lookup("nope")


def test_sealed_registry_rejects_registration():
    registry = ToolRegistry()
    registry.seal()

    with pytest.raises(RegistryClosedError):
        registry.register(HELLO_TOOL, hello_world)
    assert registry.sealed


def test_specs_keep_registration_order(fake_provider):
    registry = register_all(ToolRegistry(), fake_provider())

    assert [spec.name for spec in registry.specs()] == ["hello_world", "pod_inspect"]


def test_tools_schema_lists_required_parameters(fake_provider):
    registry = register_all(ToolRegistry(), fake_provider())

    schema = {entry["function"]["name"]: entry for entry in registry.tools_schema()}

    pod_params = schema["pod_inspect"]["function"]["parameters"]
    assert pod_params["type"] == "object"
    assert pod_params["required"] == ["name", "namespace"]
    assert pod_params["properties"]["namespace"]["type"] == "string"


def test_optional_parameters_are_not_required():
    spec = ToolSpec(
        name="t",
        description="",
        parameters=(ParameterSpec("flag", ParameterKind.BOOLEAN),),
    )

    assert spec.input_schema() == {
        "type": "object",
        "properties": {"flag": {"type": "boolean", "description": ""}},
    }
