import copy

import pytest

from imageeraser.groupversion import V1, V1ALPHA1
from imageeraser.imagelist import ImageList, ImageListList, ImageListSpec, ImageListStatus

SAMPLE = {
    "apiVersion": "eraser.sh/v1",
    "kind": "ImageList",
    "metadata": {"name": "imagelist"},
    "spec": {"images": ["docker.io/library/alpine:3.7.3", "nginx"]},
    "status": {"timestamp": "2023-01-02T03:04:05Z", "success": 3, "failed": 1, "skipped": 0},
}


def test_from_dict_reads_fields():
    image_list = ImageList.from_dict(SAMPLE)
    assert image_list.metadata == {"name": "imagelist"}
    assert image_list.spec.images == ["docker.io/library/alpine:3.7.3", "nginx"]
    assert image_list.status.success == 3
    assert image_list.status.failed == 1
    assert image_list.status.timestamp.year == 2023


def test_round_trip_is_exact():
    assert ImageList.from_dict(SAMPLE).to_dict() == SAMPLE


def test_empty_spec_and_status_serialise_all_fields():
    assert ImageListSpec().to_dict() == {"images": []}
    status = ImageListStatus().to_dict()
    assert status["timestamp"] is None
    assert ImageListStatus.from_dict(status) == ImageListStatus()


def test_timestamp_is_normalised_to_utc_seconds():
    status = ImageListStatus.from_dict({"timestamp": "2023-01-02T05:04:05.123+02:00"})
    assert status.to_dict()["timestamp"] == "2023-01-02T03:04:05Z"


def test_default_api_version_is_storage_version():
    assert ImageList().to_dict()["apiVersion"] == V1.api_version()


def test_convert_to_alpha_keeps_content_and_copies():
    original = ImageList.from_dict(SAMPLE)
    snapshot = copy.deepcopy(original)
    converted = original.convert_to("eraser.sh/v1alpha1")
    assert converted.api_version == "eraser.sh/v1alpha1"
    assert converted.spec == original.spec
    assert converted.status == original.status
    converted.spec.images.append("redis")
    assert original == snapshot


def test_convert_to_accepts_group_version_object():
    converted = ImageList.from_dict(SAMPLE).convert_to(V1ALPHA1)
    assert converted.api_version == V1ALPHA1.api_version()
    assert converted.convert_to(V1).to_dict() == SAMPLE


def test_convert_to_unknown_version_raises():
    with pytest.raises(ValueError):
        ImageList().convert_to("example.com/v2")


def test_wrong_kind_raises():
    with pytest.raises(ValueError):
        ImageList.from_dict({**SAMPLE, "kind": "ImageJob"})


@pytest.mark.parametrize(
    "status",
    [{"success": "three"}, {"failed": True}, {"timestamp": 5}, {"timestamp": "not a time"}],
)
def test_bad_status_fields_raise(status):
    with pytest.raises(ValueError):
        ImageListStatus.from_dict(status)


def test_images_must_be_strings():
    with pytest.raises(ValueError):
        ImageListSpec.from_dict({"images": "nginx"})
    with pytest.raises(ValueError):
        ImageListSpec.from_dict({"images": [1, 2]})


def test_list_round_trip():
    data = {
        "apiVersion": "eraser.sh/v1",
        "kind": "ImageListList",
        "metadata": {"resourceVersion": "7"},
        "items": [SAMPLE, {**SAMPLE, "metadata": {"name": "second"}}],
    }
    parsed = ImageListList.from_dict(data)
    assert [item.metadata["name"] for item in parsed.items] == ["imagelist", "second"]
    assert parsed.to_dict() == data


def test_list_items_must_be_a_list():
    with pytest.raises(ValueError):
        ImageListList.from_dict({"items": {"a": 1}})