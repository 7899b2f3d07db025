"""Tests for provider build normalization."""

import json

import pytest

from build_mirror.ci_providers import CIProvider, ProviderConfig, get_ci_provider
from build_mirror.ci_providers.drone import RESULT_TO_STATUS
from build_mirror.exceptions import MalformedUpstreamResponse
from tests.conftest import bamboo_build, drone_build


@pytest.fixture
def bamboo():
    return get_ci_provider(CIProvider.BAMBOO, ProviderConfig(provider=CIProvider.BAMBOO))


@pytest.fixture
def drone():
    return get_ci_provider(CIProvider.DRONE, ProviderConfig(provider=CIProvider.DRONE))


class TestBambooNormalizer:
    def test_maps_result_fields(self, bamboo):
        record = bamboo.normalize_build(bamboo_build(7))

        assert record.to_json_dict() == {
            "id": 7,
            "uuid": "98007",
            "createdOn": 1553088954000,
            "duration": 42,
            "result": "SUCCESSFUL",
            "refType": "not available",
            "refName": "master",
        }

    @pytest.mark.parametrize(
        "state, expected",
        [("Successful", "SUCCESSFUL"), ("failed", "FAILED"), ("Unknown", "UNKNOWN")],
    )
    def test_build_state_is_uppercased(self, bamboo, state, expected):
        assert bamboo.normalize_build(bamboo_build(1, state=state)).result == expected

    def test_missing_state_is_stopped(self, bamboo):
        raw = bamboo_build(1)
        del raw["buildState"]
        assert bamboo.normalize_build(raw).result == "STOPPED"

    def test_non_string_state_is_coerced(self, bamboo):
        assert bamboo.normalize_build(bamboo_build(1, state=123)).result == "123"

    def test_duration_from_timestamps_when_seconds_missing(self, bamboo):
        raw = bamboo_build(1)
        del raw["buildDurationInSeconds"]
        assert bamboo.normalize_build(raw).duration == 42

    def test_numeric_start_time_is_taken_as_millis(self, bamboo):
        raw = bamboo_build(1)
        raw["buildStartedTime"] = 1553088954000
        assert bamboo.normalize_build(raw).created_on == 1553088954000

    def test_default_ref_name_comes_from_config(self):
        provider = get_ci_provider(
            CIProvider.BAMBOO,
            ProviderConfig(provider=CIProvider.BAMBOO, extra={"default_ref_name": "develop"}),
        )
        assert provider.normalize_build(bamboo_build(1)).ref_name == "develop"

    def test_missing_build_number_is_malformed(self, bamboo):
        raw = bamboo_build(1)
        del raw["buildNumber"]
        with pytest.raises(MalformedUpstreamResponse):
            bamboo.normalize_build(raw)

    def test_bad_timestamp_is_malformed(self, bamboo):
        raw = bamboo_build(1)
        raw["buildStartedTime"] = "yesterday"
        with pytest.raises(MalformedUpstreamResponse):
            bamboo.normalize_build(raw)


class TestDroneNormalizer:
    def test_maps_build_fields(self, drone):
        record = drone.normalize_build(drone_build(3))

        assert record.to_json_dict() == {
            "id": 3,
            "uuid": "5003",
            "createdOn": 1013000,
            "duration": 60,
            "result": "SUCCESSFUL",
            "refType": "push",
            "refName": "main",
        }

    @pytest.mark.parametrize("status", sorted(RESULT_TO_STATUS))
    def test_status_table(self, drone, status):
        assert drone.normalize_status(status) == RESULT_TO_STATUS[status]

    @pytest.mark.parametrize("status", ["killed", "running", "pending", "declined", None])
    def test_unmapped_status_is_stopped(self, drone, status):
        assert drone.normalize_status(status) == "STOPPED"

    def test_error_build_that_never_started_uses_created(self, drone):
        raw = {"number": 9, "status": "error", "started": "0", "created": 100, "finished": 150}

        record = drone.normalize_build(raw)

        assert record.result == "FAILED"
        assert record.created_on == 100000
        assert record.duration == 50

    def test_unfinished_build_has_zero_duration(self, drone):
        record = drone.normalize_build(drone_build(1, status="running", finished=0))
        assert record.duration == 0
        assert record.result == "STOPPED"

    def test_missing_event_and_source_use_defaults(self, drone):
        raw = drone_build(1)
        del raw["event"]
        del raw["source"]

        record = drone.normalize_build(raw)

        assert record.ref_type == "not available"
        assert record.ref_name == "master"

    def test_normalizing_twice_is_byte_identical(self, drone):
        raw = drone_build(4, status="failed")
        first = json.dumps(drone.normalize_build(raw).to_json_dict())
        second = json.dumps(drone.normalize_build(raw).to_json_dict())
        assert first == second

    def test_non_numeric_timestamp_is_malformed(self, drone):
        with pytest.raises(MalformedUpstreamResponse):
            drone.normalize_build(drone_build(1, finished="soon"))

    def test_no_start_information_is_malformed(self, drone):
        with pytest.raises(MalformedUpstreamResponse):
            drone.normalize_build({"number": 1, "status": "success", "started": 0})
