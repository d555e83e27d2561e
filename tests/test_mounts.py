import re

import pytest

from ctrkit.mounts import check_image_volume, image_volume_mounts


@pytest.mark.parametrize("path", ["/", "/dev", "/sys/", "//", "proc", "/dev/../dev"])
def test_forbidden_volumes(path):
    with pytest.raises(ValueError, match="invalid VOLUME"):
        check_image_volume(path)


def test_volume_path_is_cleaned():
    assert check_image_volume("/foo//bar/") == "/foo/bar"


def test_creates_anonymous_volume():
    created = []

    def create(name):
        created.append(name)
        return "/volumes/" + name

    mounts, names = image_volume_mounts(["/foo"], [], create)
    assert names == created
    assert len(names) == 1
    assert re.fullmatch(r"[0-9a-f]{64}", names[0])
    assert mounts == [
        {
            "type": "none",
            "source": "/volumes/" + names[0],
            "destination": "/foo",
            "options": ["rbind"],
        }
    ]


def test_already_mounted_is_skipped():
    created = []

    def create(name):
        created.append(name)
        return "/v"

    mounts, names = image_volume_mounts(["/foo/", "/bar"], ["/foo"], create)
    assert [m["destination"] for m in mounts] == ["/bar"]
    assert names == created
    assert len(names) == 1


def test_names_are_unique():
    _, names = image_volume_mounts(["/a", "/b", "/c"], [], lambda n: "/v/" + n)
    assert len(set(names)) == 3


def test_invalid_volume_stops_before_creating():
    created = []
    with pytest.raises(ValueError):
        image_volume_mounts(["/"], [], lambda n: created.append(n) or "/v")
    assert created == []