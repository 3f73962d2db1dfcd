from pathlib import Path

import pytest

from midnight.exceptions import ConfigValidationError, DuplicateArtifactError, MidnightError
from midnight.models import (
    ArtifactRequest,
    GeneralConfig,
    MidnightSpec,
    PlatformType,
    find_duplicates,
)

SPEC = {
    "general": {
        "port": 25565,
        "jar-source-order": ["local", "modrinth"],
        "data-dir": "run/data",
        "max-concurrent": 3,
    },
    "server": {
        "proxy": {
            "type": "velocity",
            "version": "3.2.0",
            "children": ["survival"],
            "plugins": {"luckperms": "*"},
        },
        "survival": {
            "type": "fabric",
            "version": "0.14.21:1.20.1",
            "mods": {"sodium": "*", "lithium": "0.11.2"},
        },
        "lobby": {"type": "paper", "version": "1.20.1", "data-dir": "elsewhere"},
        "plain": {"type": "vanilla", "version": "1.20.1"},
    },
}


def test_spec_from_dict():
    spec = MidnightSpec.from_dict(SPEC)

    assert spec.general.jar_source_order == ["local", "modrinth"]
    assert spec.general.max_concurrent == 3
    assert spec.general.max_retries == 2
    assert spec.root_server.name == "proxy"

    proxy = spec.servers["proxy"]
    assert proxy.type is PlatformType.VELOCITY
    assert proxy.minecraft_version is None
    assert proxy.software_version == "3.2.0"
    assert proxy.jars == {"luckperms": "*"}
    assert proxy.jar_dir == Path("run/data/proxy/plugins")

    survival = spec.servers["survival"]
    assert survival.minecraft_version == "1.20.1"
    assert survival.software_version == "0.14.21"
    assert survival.jar_dir == Path("run/data/survival/mods")

    lobby = spec.servers["lobby"]
    assert lobby.minecraft_version == "1.20.1"
    assert lobby.jars == {}
    assert lobby.jar_dir == Path("elsewhere/plugins")

    assert spec.servers["plain"].jar_dir is None


def test_general_defaults():
    general = GeneralConfig.from_dict({})
    assert general.jar_source_order == ["modrinth", "github", "direct", "local"]
    assert general.timeout == 3600.0


@pytest.mark.parametrize(
    "data",
    [
        {"server": {}},
        {"server": {"s": {"type": "sponge", "version": "1"}}},
        {"server": {"s": {"version": "1"}}},
        {"general": {"max-concurrent": 0}, "server": {"s": {"type": "paper", "version": "1"}}},
    ],
)
def test_invalid_spec(data):
    with pytest.raises(ConfigValidationError):
        MidnightSpec.from_dict(data)


def test_modded_version_needs_game_version():
    spec = MidnightSpec.from_dict({"server": {"s": {"type": "forge", "version": "47.1.0"}}})

    with pytest.raises(ConfigValidationError):
        spec.servers["s"].minecraft_version


def test_unknown_server():
    spec = MidnightSpec.from_dict(SPEC)
    with pytest.raises(ConfigValidationError):
        spec.get_server("creative")


def test_artifact_requests_from_mapping():
    assert ArtifactRequest.from_mapping({"sodium": "*", "lithium": "0.11.2"}) == [
        ArtifactRequest("sodium", "*"),
        ArtifactRequest("lithium", "0.11.2"),
    ]


def test_find_duplicates():
    assert find_duplicates({"sodium": "*"}, ["lithium", "sodium"]) == ["sodium"]
    assert find_duplicates([], ["a", "b", "a", "a"]) == ["a"]
    assert find_duplicates([], ["a", "b"]) == []


def test_error_serialization():
    error = DuplicateArtifactError(["sodium"], "survival")

    assert isinstance(error, MidnightError)
    assert str(error).startswith("[E602]")
    assert error.to_dict()["context"]["identifiers"] == ["sodium"]
    assert error.to_dict()["type"] == "DuplicateArtifactError"
