import json

import pytest

from ollama_api_proxy.capability import Capability


def test_str_is_value():
    assert str(Capability("tools")) == "tools"
    assert str(Capability("thinking")) == "thinking"
    assert Capability.TOOLS.__str__() == "tools"


def test_lookup_by_value():
    assert Capability("vision") is Capability.VISION
    assert Capability("embedding") is Capability.EMBEDDING


def test_unknown_value_rejected():
    with pytest.raises(ValueError):
        Capability("teleport")


@pytest.mark.parametrize("capability", list(Capability))
def test_round_trip_through_string(capability):
    assert Capability(str(capability)) is capability


def test_serialises_as_plain_string():
    values = [Capability("completion"), Capability("insert")]
    assert json.dumps(values) == '["completion", "insert"]'