import pytest

from rpc_toolbox.dispatch import ConfigurationError
from rpc_toolbox.handlers import (
    JsonFaultRenderer,
    JsonQueryArgumentsExtractor,
    JsonResultRenderer,
    SessionTargetResolver,
    SingletonTargetResolver,
)
from rpc_toolbox.server.config import import_object, load_registry, registry_from_mapping
from rpc_toolbox.services import examples
from conftest import SERVICES_CONFIG, Calculator


def test_sample_configuration():
    registry = load_registry(str(SERVICES_CONFIG))
    assert list(registry.names()) == ["test", "random", "chat"]

    test = registry.lookup("test")
    assert test.service_type is examples.TestService
    assert isinstance(test.target_resolvers[0], SessionTargetResolver)
    assert test.is_filtered("rpc_description")

    chat = registry.lookup("chat")
    assert isinstance(chat.target_resolvers[0], SingletonTargetResolver)
    assert chat.argument_extractors[1].param == "a"
    assert chat.is_filtered("valid_username")


def test_configuration_path_from_environment(monkeypatch):
    monkeypatch.setenv("RPC_SERVICES_CONFIG", str(SERVICES_CONFIG))
    assert len(load_registry()) == 3


def test_explicit_handler_lists(tmp_path):
    config = tmp_path / "services.yaml"
    config.write_text(
        "services:\n"
        "  calc:\n"
        "    class: conftest:Calculator\n"
        "    argument_extractors: [rpc_toolbox.handlers.json_types:JsonQueryArgumentsExtractor]\n"
        "    target_resolvers: [rpc_toolbox.handlers.targets:SingletonTargetResolver]\n"
        "    result_renderers: [rpc_toolbox.handlers.json_types:JsonResultRenderer]\n"
        "    fault_renderers: [rpc_toolbox.handlers.json_types:JsonFaultRenderer]\n"
        "    filtered_methods: [reset]\n"
    )
    calc = load_registry(str(config)).lookup("calc")
    assert calc.service_type is Calculator
    assert isinstance(calc.argument_extractors[0], JsonQueryArgumentsExtractor)
    assert isinstance(calc.result_renderers[0], JsonResultRenderer)
    assert isinstance(calc.fault_renderers[0], JsonFaultRenderer)
    assert calc.filtered_methods == frozenset({"reset"})


def test_plain_class_without_handlers():
    registry = registry_from_mapping({"services": {"calc": "conftest:Calculator"}})
    assert registry.lookup("calc").argument_extractors == ()


@pytest.mark.parametrize("data", [
    None,
    [],
    {"services": []},
    {"services": {"calc": 3}},
    {"services": {"calc": {"no_class": "x"}}},
    {"services": {"calc": "no.such.module:Thing"}},
    {"services": {"calc": "conftest:Missing"}},
    {"services": {"calc": {"class": "conftest:Calculator", "target_resolvers": "not a list"}}},
    {"services": {"calc": {"class": "conftest:Calculator", "target_resolvers": [42]}}},
    {"services": {"a/b": "conftest:Calculator"}},
])
def test_invalid_configuration(data):
    with pytest.raises(ConfigurationError):
        registry_from_mapping(data)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_registry(str(tmp_path / "absent.yaml"))


def test_invalid_yaml(tmp_path):
    config = tmp_path / "broken.yaml"
    config.write_text("services: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_registry(str(config))


def test_import_object():
    assert import_object("conftest:Calculator") is Calculator
    with pytest.raises(ConfigurationError):
        import_object("conftest")
