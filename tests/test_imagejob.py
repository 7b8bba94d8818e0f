from datetime import datetime, timedelta, timezone

import pytest

from imageeraser.groupversion import V1, V1ALPHA1, GroupVersion
from imageeraser.imagejob import (
    Image,
    ImageJob,
    ImageJobList,
    ImageJobStatus,
    JobPhase,
)


def test_image_omits_empty_lists():
    assert Image("sha256:abc").to_dict() == {"image_id": "sha256:abc"}


def test_image_round_trip():
    image = Image("sha256:abc", names=["alpine:3.7.3"], digests=["sha256:def"])
    assert Image.from_dict(image.to_dict()) == image


def test_image_rejects_bad_names():
    with pytest.raises(ValueError):
        Image.from_dict({"image_id": "x", "names": [1]})


def test_job_phase_values():
    assert JobPhase.RUNNING.value == "Running"
    assert JobPhase("Completed") is JobPhase.COMPLETED
    assert JobPhase("Failed") is JobPhase.FAILED


def test_status_defaults_serialize_empty_phase():
    data = ImageJobStatus().to_dict()
    assert data["phase"] == ""
    assert "deleteAfter" not in data
    assert ImageJobStatus.from_dict(data) == ImageJobStatus()


def test_status_delete_after_format():
    moment = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    data = ImageJobStatus(delete_after=moment).to_dict()
    assert data["deleteAfter"] == "2023-01-02T03:04:05Z"


def test_status_round_trip():
    status = ImageJobStatus(
        failed=1,
        succeeded=2,
        desired=3,
        skipped=4,
        phase=JobPhase.RUNNING,
        delete_after=datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )
    assert ImageJobStatus.from_dict(status.to_dict()) == status


def test_status_parses_offset_time_as_utc():
    status = ImageJobStatus.from_dict({"deleteAfter": "2023-01-02T05:04:05.5+02:00"})
    expected = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc) + timedelta(
        milliseconds=500
    )
    assert status.delete_after == expected


def test_status_unknown_phase():
    with pytest.raises(ValueError):
        ImageJobStatus.from_dict({"phase": "Pending"})


def test_status_rejects_non_integer_counts():
    with pytest.raises(ValueError):
        ImageJobStatus.from_dict({"failed": "1"})


def test_status_rejects_bad_time():
    with pytest.raises(ValueError):
        ImageJobStatus.from_dict({"deleteAfter": "yesterday"})


def test_image_job_defaults_to_storage_version():
    data = ImageJob(metadata={"name": "job"}).to_dict()
    assert data["apiVersion"] == V1.api_version()
    assert data["kind"] == "ImageJob"
    assert data["metadata"] == {"name": "job"}


def test_image_job_round_trip():
    job = ImageJob(
        metadata={"name": "job", "labels": {"a": "b"}},
        status=ImageJobStatus(desired=3, phase=JobPhase.COMPLETED),
    )
    assert ImageJob.from_dict(job.to_dict()) == job


def test_image_job_wrong_kind():
    with pytest.raises(ValueError):
        ImageJob.from_dict({"kind": "ImageList"})


def test_convert_to_v1alpha1_leaves_original():
    job = ImageJob(metadata={"name": "job"}, status=ImageJobStatus(failed=1))
    converted = job.convert_to(V1ALPHA1)
    assert converted.api_version == V1ALPHA1.api_version()
    assert converted.status == job.status
    assert job.api_version == V1.api_version()
    converted.metadata["name"] = "other"
    assert job.metadata["name"] == "job"


def test_convert_to_accepts_string():
    job = ImageJob().convert_to(V1ALPHA1.api_version())
    assert GroupVersion.parse(job.api_version) == V1ALPHA1


def test_convert_to_unsupported_version():
    with pytest.raises(ValueError):
        ImageJob().convert_to(GroupVersion("eraser.sh", "v9"))


def test_list_round_trip():
    jobs = ImageJobList(
        items=[
            ImageJob(metadata={"name": "a"}),
            ImageJob(metadata={"name": "b"}, status=ImageJobStatus(succeeded=2)),
        ],
        metadata={"resourceVersion": "7"},
    )
    data = jobs.to_dict()
    assert data["kind"] == "ImageJobList"
    assert [item["metadata"]["name"] for item in data["items"]] == ["a", "b"]
    assert ImageJobList.from_dict(data) == jobs


def test_empty_list_serializes_items():
    assert ImageJobList().to_dict()["items"] == []


def test_list_wrong_kind():
    with pytest.raises(ValueError):
        ImageJobList.from_dict({"kind": "ImageJob", "items": []})