import pytest

from ollama_api_proxy.model_name import (
    DEFAULT_HOST,
    DEFAULT_NAMESPACE,
    DEFAULT_TAG,
    MISSING_PART,
    Name,
    UnqualifiedNameError,
    default_name,
    is_valid_namespace,
    merge,
    parse_name,
    parse_name_bare,
    parse_name_from_filepath,
    unqualified,
)


def test_default_name():
    assert default_name() == Name(DEFAULT_HOST, DEFAULT_NAMESPACE, "", DEFAULT_TAG)


def test_parse_name_fills_defaults():
    assert parse_name("mistral") == Name(DEFAULT_HOST, DEFAULT_NAMESPACE, "mistral", DEFAULT_TAG)
    assert parse_name("mistral").is_valid()


def test_parse_name_bare_parts():
    name = parse_name_bare("example.com/ns/model:tag")
    assert name == Name("example.com", "ns", "model", "tag")


def test_parse_name_bare_drops_scheme():
    assert parse_name_bare("https://example.com/ns/model").host == "example.com"


def test_parse_name_bare_partial():
    assert parse_name_bare("ns/model") == Name(namespace="ns", model="model")
    assert parse_name_bare("model:tag") == Name(model="model", tag="tag")


def test_host_with_port():
    name = parse_name("localhost:5000/ns/model:tag")
    assert name.host == "localhost:5000"
    assert name.tag == "tag"
    assert name.is_fully_qualified()


def test_promised_but_missing_parts():
    name = parse_name_bare("model:")
    assert name.tag == MISSING_PART
    assert not parse_name("model:").is_valid()
    assert parse_name_bare("/model").namespace == MISSING_PART


@pytest.mark.parametrize(
    "text",
    ["mistral", "ns/model:tag", "example.com/ns/model:tag", "localhost:5000/ns/m.v2:q4_0"],
)
def test_string_round_trip(text):
    name = parse_name(text)
    assert parse_name(str(name)) == name


def test_display_shortest_default_host():
    assert parse_name("mistral").display_shortest() == "mistral:latest"


def test_display_shortest_other_host():
    assert parse_name("example.com/ns/model:tag").display_shortest() == "example.com/ns/model:tag"


def test_display_shortest_other_namespace():
    assert parse_name("ns/model:tag").display_shortest() == "ns/model:tag"


def test_is_valid_namespace():
    assert is_valid_namespace(DEFAULT_NAMESPACE)
    assert not is_valid_namespace("a.b")
    assert not is_valid_namespace("")
    assert not is_valid_namespace("-abc")
    assert not is_valid_namespace("x" * 81)
    assert is_valid_namespace("x" * 80)


def test_host_length_limit():
    assert Name("h" * 350, "ns", "model", "tag").is_fully_qualified()
    assert not Name("h" * 351, "ns", "model", "tag").is_fully_qualified()


def test_colon_only_allowed_in_host():
    assert not Name("host", "ns", "mo:del", "tag").is_fully_qualified()
    assert Name("ho:st", "ns", "model", "tag").is_fully_qualified()


def test_filepath_round_trip():
    name = parse_name("example.com/ns/model:tag")
    assert parse_name_from_filepath(name.filepath()) == name


def test_filepath_of_invalid_name_raises():
    with pytest.raises(ValueError):
        Name(model="model").filepath()


def test_parse_name_from_filepath_wrong_shape():
    assert parse_name_from_filepath("a") == Name()


def test_merge_prefers_first():
    a = Name(host="example.com", model="model")
    merged = merge(a, default_name())
    assert merged == Name("example.com", DEFAULT_NAMESPACE, "model", DEFAULT_TAG)


def test_equal_fold():
    assert parse_name("NS/Model:TAG").equal_fold(parse_name("ns/model:tag"))
    assert not parse_name("ns/model:a").equal_fold(parse_name("ns/model:b"))


def test_unqualified():
    error = unqualified(Name(model="model"))
    assert isinstance(error, UnqualifiedNameError)
    assert str(error).endswith("model")
    with pytest.raises(ValueError):
        raise error