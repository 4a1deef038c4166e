"""
Tests for acp_times. Expected values checked by hand against
https://rusa.org/octime_acp.html and the official ACP limits.
"""
import arrow
import pytest

import acp_times

START = "2026-06-06T06:00"  # a Saturday


def clock(when):
    return when.format("YYYY-MM-DD HH:mm")


def test_classify():
    assert acp_times.classify(0) == 200
    assert acp_times.classify(200) == 200
    assert acp_times.classify(201) == 300
    assert acp_times.classify(300) == 300
    assert acp_times.classify(407) == 600
    assert acp_times.classify(1000) == 1000
    assert acp_times.classify(1200) == 1200
    assert acp_times.classify(1300) == 1300


def test_classify_clamps_long_routes():
    assert acp_times.classify(1301) == 1300
    assert acp_times.classify(2000) == 1300


def test_classify_rejects_negative():
    with pytest.raises(ValueError):
        acp_times.classify(-1)


def test_opening_hours_bands():
    assert acp_times.opening_hours(0) == 0
    assert acp_times.opening_hours(200) == pytest.approx(200 / 34)
    assert acp_times.opening_hours(300) == pytest.approx(200 / 34 + 100 / 32)
    assert acp_times.opening_hours(1300) == pytest.approx(
        200 / 34 + 200 / 32 + 200 / 30 + 400 / 28 + 300 / 26)


def test_opening_hours_past_last_band():
    extra = acp_times.opening_hours(1400) - acp_times.opening_hours(1300)
    assert extra == pytest.approx(100 / 26)


def test_closing_hours_start():
    assert acp_times.closing_hours(0) == 1.0


def test_closing_hours_bands():
    assert acp_times.closing_hours(20) == pytest.approx(2.0)
    assert acp_times.closing_hours(60) == pytest.approx(4.0)
    assert acp_times.closing_hours(600) == pytest.approx(40.0)
    assert acp_times.closing_hours(1000) == pytest.approx(40 + 400 / 11.428)
    assert acp_times.closing_hours(1300) == pytest.approx(
        40 + 400 / 11.428 + 300 / 13.333)


def test_closing_never_decreases():
    previous = acp_times.closing_hours(0)
    for km in range(1, 1301):
        hours = acp_times.closing_hours(km)
        assert hours >= previous, km
        previous = hours


def test_control_never_closes_before_it_opens():
    for km in range(0, 1301):
        assert acp_times.opening_hours(km) <= acp_times.closing_hours(km), km


def test_to_minutes_rounds_half_up():
    assert acp_times.to_minutes(0.375) == 23  # 22.5 minutes
    assert acp_times.to_minutes(100 / 34) == 176
    assert acp_times.to_minutes(0) == 0


def test_intermediate_control():
    times = acp_times.compute_control_times(START, 100, 200, 203)
    assert times.open_min == 176
    assert times.close_min == 400
    assert clock(times.open_at) == "2026-06-06 08:56"
    assert clock(times.close_at) == "2026-06-06 12:40"


def test_start_control():
    times = acp_times.compute_control_times(START, 0, 200, 203)
    assert times.open_min == 0
    assert times.close_min == 60
    assert clock(times.close_at) == "2026-06-06 07:00"


def test_finish_uses_fixed_limit():
    # Banded closing for 203 km would be 812 minutes
    assert acp_times.to_minutes(acp_times.closing_hours(203)) == 812
    times = acp_times.compute_control_times(START, 203, 200, 203)
    assert times.close_min == 810
    assert clock(times.close_at) == "2026-06-06 19:30"


def test_finish_opening_is_not_overridden():
    times = acp_times.compute_control_times(START, 203, 200, 203)
    assert times.open_min == acp_times.to_minutes(
        acp_times.opening_hours(203))
    assert times.open_min == 359


def test_finish_limits_per_class():
    for nominal, limit in acp_times.FINISH_LIMITS.items():
        times = acp_times.compute_control_times(START, nominal, nominal)
        assert times.close_min == limit
    assert acp_times.FINISH_LIMITS[1300] == 93 * 60


def test_finish_detection():
    assert acp_times.is_finish(203, 203)
    assert acp_times.is_finish(205, 203)
    assert not acp_times.is_finish(202, 203)
    assert not acp_times.is_finish(202.999, 203)


def test_route_defaults_to_nominal():
    times = acp_times.compute_control_times(START, 200, 200)
    assert times.close_min == 810


def test_truncation():
    truncated = acp_times.compute_control_times(START, 100.9, 200, 203)
    assert truncated.open_min == 176
    exact = acp_times.compute_control_times(START, 100.9, 200, 203,
                                            truncate=False)
    assert exact.open_min == 178


def test_truncated_route_still_finds_finish():
    times = acp_times.compute_control_times(START, 203.2, 200, 203.7)
    assert times.close_min == 810


def test_multi_day_rollover():
    times = acp_times.compute_control_times("2026-01-30T22:00", 1300, 1300)
    assert times.close_min == 5580
    assert clock(times.close_at) == "2026-02-03 19:00"


def test_invalid_input_rejected():
    with pytest.raises(ValueError):
        acp_times.compute_control_times(START, -5, 200)
    with pytest.raises(ValueError):
        acp_times.compute_control_times(START, 100, 250)
    with pytest.raises(ValueError):
        acp_times.compute_control_times(START, 100, 200, -1)


def test_open_close_iso():
    assert acp_times.open_time(100, 200, START, 203).startswith(
        "2026-06-06T08:56:00")
    assert acp_times.close_time(100, 200, START, 203).startswith(
        "2026-06-06T12:40:00")
    assert acp_times.close_time(200, 200, START).startswith(
        "2026-06-06T19:30:00")


def test_total_allowable_time():
    assert acp_times.total_allowable_time(START, 200, 203) == (13, 30)
    assert acp_times.total_allowable_time(START, 1200) == (90, 0)
    assert acp_times.total_allowable_time(START, 300, 310) == (20, 0)


def test_format_control_time():
    times = acp_times.compute_control_times(START, 1000, 1000)
    assert acp_times.format_control_time(times.open_at) == "Sun 15h05"
    assert acp_times.format_control_time(times.close_at) == "Tue 09h00"


def test_format_zero_minutes_is_start():
    begin = arrow.get(START)
    assert acp_times.format_control_time(begin.shift(minutes=0)) == \
        acp_times.format_control_time(begin) == "Sat 06h00"


def test_format_card_date():
    assert acp_times.format_card_date("2026-01-08T06:00") == "Jan 08 2026"


def test_format_hm():
    assert acp_times.format_hm(810) == "13:30"
    assert acp_times.format_hm(5580) == "93:00"
    assert acp_times.format_hm(5) == "00:05"


def test_same_input_same_output():
    first = acp_times.compute_control_times(START, 617.4, 1000, 1010)
    second = acp_times.compute_control_times(START, 617.4, 1000, 1010)
    assert first == second
    assert acp_times.format_control_time(first.close_at) == \
        acp_times.format_control_time(second.close_at)


def test_non_finite_distances_rejected():
    for bad in (float("nan"), float("inf"), float("-inf")):
        with pytest.raises(ValueError):
            acp_times.classify(bad)
        with pytest.raises(ValueError):
            acp_times.opening_hours(bad)
        with pytest.raises(ValueError):
            acp_times.closing_hours(bad)
        with pytest.raises(ValueError):
            acp_times.compute_control_times(START, bad, 200)
        with pytest.raises(ValueError):
            acp_times.compute_control_times(START, bad, 200, truncate=False)
        with pytest.raises(ValueError):
            acp_times.compute_control_times(START, 100, 200, bad)
