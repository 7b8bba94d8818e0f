import pytest

from imageeraser.groupversion import GROUP, V1, V1ALPHA1, GroupVersion


def test_v1_api_version():
    assert V1.api_version() == "eraser.sh/v1"


def test_v1alpha1_group_and_version():
    parsed = GroupVersion.parse(V1ALPHA1.api_version())
    assert parsed.group == "eraser.sh"
    assert parsed.version == "v1alpha1"
    assert V1ALPHA1.api_version() == "eraser.sh/v1alpha1"


def test_parse_group_and_version():
    assert GroupVersion.parse("eraser.sh/v1") == V1


def test_parse_core_version():
    parsed = GroupVersion.parse("v1")
    assert parsed.group == ""
    assert parsed.version == "v1"
    assert parsed.api_version() == "v1"


def test_parse_empty():
    assert GroupVersion.parse("") == GroupVersion("", "")


def test_parse_too_many_slashes():
    with pytest.raises(ValueError):
        GroupVersion.parse("a/b/c")


@pytest.mark.parametrize("gv", [V1, V1ALPHA1, GroupVersion("", "v2")])
def test_round_trip(gv):
    assert GroupVersion.parse(gv.api_version()) == gv


def test_str_matches_api_version():
    assert str(V1ALPHA1) == V1ALPHA1.api_version()
    assert V1ALPHA1.api_version().startswith(GROUP + "/")