import pytest

from midnight.models import PlatformType, ServerContext
from midnight.sources import DirectURLSource, GithubSource, LocalPathSource, ModrinthSource
from midnight.sources.github import select_asset, split_version
from midnight.models import AssetInfo
from midnight.sources.patterns import GITHUB_REPO, GITHUB_USER, MODRINTH_SLUG

CONTEXT = ServerContext(PlatformType.PAPER, "1.20.1")


@pytest.mark.parametrize(
    "slug, expected",
    [
        ("sodium", True),
        ("fabric-api", True),
        ("Mod.Name_2", True),
        ("ab", False),
        ("a" * 64, True),
        ("a" * 65, False),
        ("PaperMC/Paper", False),
        ("has space", False),
        ("sodium\n", False),
        ("модуль", False),
        ("模组名称", False),
    ],
)
def test_modrinth_slug(slug, expected):
    assert (MODRINTH_SLUG.fullmatch(slug) is not None) is expected


@pytest.mark.parametrize(
    "user, expected",
    [
        ("PaperMC", True),
        ("a", True),
        ("a-b", True),
        ("-ab", False),
        ("ab-", False),
        ("a--b", False),
        ("a" * 39, True),
        ("a" * 40, False),
        ("a_b", False),
        ("owner\n", False),
        ("ówner", False),
    ],
)
def test_github_user(user, expected):
    assert (GITHUB_USER.fullmatch(user) is not None) is expected


@pytest.mark.parametrize(
    "repo, expected",
    [
        ("Paper", True),
        ("my_repo.v2", True),
        ("re-po", True),
        ("a/b", False),
        ("", False),
        ("repo\n", False),
        ("репо", False),
    ],
)
def test_github_repo(repo, expected):
    assert (GITHUB_REPO.fullmatch(repo) is not None) is expected


def test_github_source_matches_owner_repo_only():
    source = GithubSource(client=None)
    assert source.matches("PaperMC/Paper", "*", CONTEXT)
    assert not source.matches("sodium", "*", CONTEXT)
    assert not source.matches("a/b/c", "*", CONTEXT)
    assert not source.matches("-bad/repo", "*", CONTEXT)


def test_modrinth_source_rejects_slash():
    source = ModrinthSource(client=None)
    assert source.matches("sodium", "*", CONTEXT)
    assert not source.matches("PaperMC/Paper", "*", CONTEXT)


@pytest.mark.parametrize(
    "expr, expected",
    [
        ("https://example.com/mod.jar", True),
        ("http://example.com/mod.jar", True),
        ("file:///tmp/mod.jar", True),
        ("*", False),
        ("1.2.3", False),
        ("./local/custom.jar", False),
        ("https://", False),
        ("ftp://example.com/mod.jar", False),
    ],
)
def test_direct_source_matches(expr, expected):
    assert DirectURLSource().matches("mod", expr, CONTEXT) is expected


def test_local_source_matches_existing_paths(tmp_path):
    jar = tmp_path / "custom.jar"
    jar.write_bytes(b"jar")
    source = LocalPathSource()
    assert source.matches("custom", str(jar), CONTEXT)
    assert not source.matches("custom", str(tmp_path / "missing.jar"), CONTEXT)
    assert not source.matches("custom", "", CONTEXT)


@pytest.mark.parametrize(
    "expr, tag, file",
    [
        ("*", "*", None),
        ("v1.2", "v1.2", None),
        ("v1.2/Mod-1.2.jar", "v1.2", "Mod-1.2.jar"),
        ("v1/dir/Mod.jar", "v1", "dir/Mod.jar"),
    ],
)
def test_split_version(expr, tag, file):
    assert split_version(expr) == (tag, file)


def test_select_asset():
    assets = [
        AssetInfo("sources.zip", "u1"),
        AssetInfo("Mod-1.2-dev.jar", "u2"),
        AssetInfo("Mod-1.2.jar", "u3"),
    ]
    assert select_asset(assets, None).url == "u2"
    assert select_asset(assets, "Mod-1.2.jar").url == "u3"
    assert select_asset(assets, "missing.jar") is None
    assert select_asset([AssetInfo("readme.txt", "u")], None) is None


@pytest.mark.parametrize("identifier", ["sodium\n", "модуль", "模组名称"])
def test_modrinth_source_rejects_trailing_newline_and_non_ascii(identifier):
    assert not ModrinthSource(client=None).matches(identifier, "*", CONTEXT)


@pytest.mark.parametrize("identifier", ["owner/repo\n", "owner\n/repo", "владелец/repo"])
def test_github_source_rejects_trailing_newline_and_non_ascii(identifier):
    assert not GithubSource(client=None).matches(identifier, "*", CONTEXT)


def test_jar_asset_requires_jar_suffix():
    assert select_asset([AssetInfo("Mod.jar\n", "u1"), AssetInfo("Mod.jar", "u2")], None).url == "u2"
