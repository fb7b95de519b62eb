"""
Tests for the session compiler and the close-session policy.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import pytest
from pydantic import ValidationError

from pumpwatch.services.compiler import close_session, compile_session
from tests.factories import DEVICE_ID, make_sample


class TestCompileSession:
    """compile_session summarises an ordered run of samples."""

    def test_two_sample_run(self) -> None:
        samples = [make_sample("10:00:00", 2.0), make_sample("10:00:30", 2.2)]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=1.5)

        assert event.device_id == DEVICE_ID
        assert event.date == "2025-04-11"
        assert event.start_time == "2025-04-11 10:00:00"
        assert event.end_time == "2025-04-11 10:00:30"
        assert event.duration == 30
        assert event.average_value == 2.1
        assert event.discharge_volume == 45.0
        assert event.sample_count == 2

    def test_average_rounded_to_two_decimals(self) -> None:
        samples = [
            make_sample("10:00:00", 1.0),
            make_sample("10:00:10", 1.0),
            make_sample("10:00:20", 2.0),
        ]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)

        assert event.average_value == 1.33

    def test_average_halves_round_up(self) -> None:
        samples = [make_sample("10:00:00", 2.0), make_sample("10:00:30", 2.25)]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)

        assert event.average_value == 2.13

    def test_discharge_halves_round_up(self) -> None:
        samples = [make_sample("10:00:00"), make_sample("10:00:05")]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=0.125)

        assert event.discharge_volume == 0.63

    def test_discharge_rounded_to_two_decimals(self) -> None:
        samples = [make_sample("10:00:00"), make_sample("10:00:07")]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=0.333)

        assert event.discharge_volume == 2.33

    def test_date_is_first_sample_date_across_midnight(self) -> None:
        samples = [
            make_sample("23:59:50", day="2025-04-11"),
            make_sample("00:00:20", day="2025-04-12"),
        ]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)

        assert event.date == "2025-04-11"
        assert event.duration == 30

    def test_colliding_timestamps_give_zero_duration(self) -> None:
        samples = [make_sample("10:00:00", 1.0), make_sample("10:00:00", 3.0)]

        event = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)

        assert event.duration == 0
        assert event.discharge_volume == 0.0
        assert event.average_value == 2.0

    def test_deterministic(self) -> None:
        samples = [make_sample("10:00:00", 2.0), make_sample("10:00:30", 2.2)]

        first = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)
        second = compile_session(DEVICE_ID, samples, discharge_coefficient=1.0)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(ValueError):
            compile_session(DEVICE_ID, [], discharge_coefficient=1.0)

    def test_event_is_frozen(self) -> None:
        event = compile_session(
            DEVICE_ID,
            [make_sample("10:00:00"), make_sample("10:00:30")],
            discharge_coefficient=1.0,
        )
        with pytest.raises(ValidationError):
            event.duration = 99  # type: ignore[misc]


class TestCloseSession:
    """close_session applies the lone-sample and zero-duration policies."""

    def test_lone_sample_is_discarded(self) -> None:
        assert (
            close_session(DEVICE_ID, [make_sample("10:00:00")], discharge_coefficient=1.0)
            is None
        )

    def test_run_is_compiled(self) -> None:
        event = close_session(
            DEVICE_ID,
            [make_sample("10:00:00"), make_sample("10:00:30")],
            discharge_coefficient=1.0,
        )
        assert event is not None
        assert event.duration == 30

    def test_zero_duration_kept_by_default(self) -> None:
        event = close_session(
            DEVICE_ID,
            [make_sample("10:00:00"), make_sample("10:00:00")],
            discharge_coefficient=1.0,
        )
        assert event is not None
        assert event.duration == 0

    def test_zero_duration_discarded_when_configured(self) -> None:
        event = close_session(
            DEVICE_ID,
            [make_sample("10:00:00"), make_sample("10:00:00")],
            discharge_coefficient=1.0,
            discard_zero_duration=True,
        )
        assert event is None

    def test_negative_duration_discarded_when_configured(self) -> None:
        event = close_session(
            DEVICE_ID,
            [make_sample("10:00:30"), make_sample("10:00:00")],
            discharge_coefficient=1.0,
            discard_zero_duration=True,
        )
        assert event is None
