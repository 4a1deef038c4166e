"""
Open and close time calculations
for ACP-sanctioned brevets (BRM), 200 km through 1300 km,
following rules described at https://rusa.org/octime_alg.html
and https://rusa.org/pages/rulesForRiders

Every function here is pure: same inputs, same outputs, no I/O.
Start times are taken as already local; no time zone conversion
is ever done.
"""
import math
from collections import namedtuple
from types import MappingProxyType

import arrow

NOMINAL_DISTANCES = (200, 300, 400, 600, 1000, 1200, 1300)

# Official overall limits, in minutes, used only for the finish control
FINISH_LIMITS = MappingProxyType({
    200: 13 * 60 + 30,
    300: 20 * 60,
    400: 27 * 60,
    600: 40 * 60,
    1000: 75 * 60,
    1200: 90 * 60,
    1300: 93 * 60,
})

# (distance ceiling km, maximum speed km/h)
OPEN_CHART = ((200, 34), (400, 32), (600, 30), (1000, 28), (1300, 26))

# The first 60 km close at 1h + d/20; the chart picks up from there.
CLOSE_GRACE_KM = 60
CLOSE_GRACE_RATE = 20
# (distance ceiling km, minimum speed km/h)
CLOSE_CHART = ((600, 15), (1000, 11.428), (1300, 13.333))

FINISH_EPSILON_KM = 1e-4

ControlTimes = namedtuple("ControlTimes",
                          ["open_at", "close_at", "open_min", "close_min"])


def _check_distance(distance_km, what="distance"):
    if not math.isfinite(distance_km) or distance_km < 0:
        raise ValueError("{} must be a non-negative number, got {}".format(
            what, distance_km))


def _check_nominal(nominal_km):
    if nominal_km not in FINISH_LIMITS:
        raise ValueError("{} km is not an ACP brevet distance".format(
            nominal_km))


def classify(distance_km):
    """
    Nominal brevet class for an actual route length: the smallest
    class that is not shorter than the route. Routes longer than
    1300 km are held to the 1300 km class.
    """
    _check_distance(distance_km)
    for nominal in NOMINAL_DISTANCES:
        if distance_km <= nominal:
            return nominal
    return NOMINAL_DISTANCES[-1]


def _walk_chart(chart, distance_km, floor_km=0):
    """Hours to cover distance_km past floor_km at the chart's rates."""
    hours = 0
    remaining = distance_km
    for ceiling, speed in chart:
        span = min(remaining, ceiling - floor_km)
        if span > 0:
            hours += span / speed
            remaining -= span
        floor_km = ceiling
        if remaining <= 0:
            return hours
    # Past the last ceiling the last rate keeps applying
    return hours + remaining / chart[-1][1]


def opening_hours(control_dist_km):
    """
    Args:
       control_dist_km: number, distance of the control from the start
    Returns:
       Elapsed hours before the control may open. The start opens at 0.
    """
    _check_distance(control_dist_km)
    if control_dist_km <= 0:
        return 0
    return _walk_chart(OPEN_CHART, control_dist_km)


def closing_hours(control_dist_km):
    """
    Args:
       control_dist_km: number, distance of the control from the start
    Returns:
       Elapsed hours by which the control must have been passed.
       The start control closes one hour after the start.
    """
    _check_distance(control_dist_km)
    if control_dist_km <= 0:
        return 1.0
    grace = min(control_dist_km, CLOSE_GRACE_KM)
    hours = 1 + grace / CLOSE_GRACE_RATE
    remaining = control_dist_km - grace
    if remaining <= 0:
        return hours
    return hours + _walk_chart(CLOSE_CHART, remaining, CLOSE_GRACE_KM)


def to_minutes(hours):
    """Hours to whole minutes, halves rounded up."""
    return int(math.floor(hours * 60 + 0.5))


def truncate_km(distance_km):
    """Drop partial kilometres; they are never credited to the rider."""
    return math.trunc(distance_km)


def is_finish(control_dist_km, route_km):
    return control_dist_km >= route_km - FINISH_EPSILON_KM


def compute_control_times(start, control_dist_km, nominal_km,
                          route_km=None, truncate=True):
    """
    Open/close window for one control.

    Args:
       start: the brevet start, anything arrow.get() accepts
           (ISO 8601 string, datetime, Arrow), already in local time
       control_dist_km: number, control distance from the start in km
       nominal_km: the event's ACP class, one of NOMINAL_DISTANCES
       route_km: actual route length; defaults to nominal_km. Used only
           to tell whether this control is the finish.
       truncate: truncate distances to whole km first (default True)
    Returns:
       ControlTimes(open_at, close_at, open_min, close_min)

    The finish control closes at the fixed limit for nominal_km rather
    than the banded closing time. Its opening time is computed as for
    any other control.
    """
    _check_nominal(nominal_km)
    _check_distance(control_dist_km, "control distance")
    if route_km is None:
        route_km = nominal_km
    else:
        _check_distance(route_km, "route length")
        if truncate:
            route_km = truncate_km(route_km)
    if truncate:
        control_dist_km = truncate_km(control_dist_km)

    begin = arrow.get(start)
    open_min = to_minutes(opening_hours(control_dist_km))
    if is_finish(control_dist_km, route_km):
        close_min = FINISH_LIMITS[nominal_km]
    else:
        close_min = to_minutes(closing_hours(control_dist_km))

    return ControlTimes(begin.shift(minutes=open_min),
                        begin.shift(minutes=close_min),
                        open_min, close_min)


def open_time(control_dist_km, brevet_dist_km, brevet_start_time,
              route_km=None):
    """
    Args:
       control_dist_km:  number, the control distance in kilometers
       brevet_dist_km: number, the nominal distance of the brevet
           in kilometers, one of NOMINAL_DISTANCES
       brevet_start_time:  An ISO 8601 format date-time string indicating
           the official start time of the brevet
       route_km: optional actual length of the route
    Returns:
       An ISO 8601 format date string indicating the control open time,
       in the same time zone as the brevet start time.
    """
    times = compute_control_times(brevet_start_time, control_dist_km,
                                  brevet_dist_km, route_km)
    return times.open_at.isoformat()


def close_time(control_dist_km, brevet_dist_km, brevet_start_time,
               route_km=None):
    """
    Same arguments as open_time.
    Returns:
       An ISO 8601 format date string indicating the control close time,
       in the same time zone as the brevet start time.
    """
    times = compute_control_times(brevet_start_time, control_dist_km,
                                  brevet_dist_km, route_km)
    return times.close_at.isoformat()


def total_allowable_time(start, nominal_km, route_km=None, truncate=True):
    """(hours, minutes) a rider has from the start to close of the finish."""
    if route_km is None:
        route_km = nominal_km
    times = compute_control_times(start, route_km, nominal_km, route_km,
                                  truncate)
    return divmod(times.close_min, 60)


def format_control_time(when):
    """Card format for a control time, e.g. 'Thu 04h30'."""
    return arrow.get(when).format("ddd HH[h]mm", locale="en_us")


def format_card_date(when):
    """Card header date, e.g. 'Jan 08 2026'."""
    return arrow.get(when).format("MMM DD YYYY", locale="en_us")


def format_hm(minutes):
    """Elapsed minutes as HH:MM, e.g. 810 -> '13:30'."""
    hours, mins = divmod(int(minutes), 60)
    return "{:02d}:{:02d}".format(hours, mins)
