"""
Control card data: the control times for each named checkpoint
of an event, plus the rider and organizer details printed with them.

Checkpoint and rider lists arrive as small JSON arrays in URL
parameters. Bad input there gives an empty list, never an error,
so a card can always be produced.
"""
import json
import logging
import math
from collections import namedtuple

import arrow

import acp_times

log = logging.getLogger(__name__)

DEFAULT_START_TIME = "06:00"
DEFAULT_CHAPTER = "Randonneurs Ontario"

Checkpoint = namedtuple("Checkpoint", ["name", "distance"])
Rider = namedtuple("Rider", ["first_name", "last_name"])


def _decode_list(raw, what):
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as err:
        log.warning("Ignoring malformed {} list: {}".format(what, err))
        return []
    if not isinstance(items, list):
        log.warning("Ignoring {} value that is not a list".format(what))
        return []
    return items


def parse_controls(raw):
    """
    Checkpoints from a JSON array like
    '[{"name": "Start", "distance": 0}, {"name": "Finish", "distance": 203}]'
    Entries without a usable, non-negative distance are dropped.
    Controls come back in order of distance.
    """
    controls = []
    for item in _decode_list(raw, "controls"):
        if not isinstance(item, dict):
            log.warning("Skipping control entry {!r}".format(item))
            continue
        distance = item.get("distance")
        if isinstance(distance, bool):
            distance = None
        try:
            distance = float(distance)
        except (TypeError, ValueError):
            log.warning("Skipping control without distance: {!r}".format(
                item))
            continue
        if not math.isfinite(distance) or distance < 0:
            log.warning("Skipping control with bad distance: {!r}"
                        .format(item))
            continue
        controls.append(Checkpoint(str(item.get("name", "")), distance))
    return sorted(controls, key=lambda control: control.distance)


def parse_riders(raw):
    """Riders from a JSON array of {"firstName", "lastName"} objects."""
    riders = []
    for item in _decode_list(raw, "riders"):
        if not isinstance(item, dict):
            log.warning("Skipping rider entry {!r}".format(item))
            continue
        riders.append(Rider(str(item.get("firstName", "")),
                            str(item.get("lastName", ""))))
    return riders


def start_datetime(event_date, start_time=None):
    """
    Local start of the event from 'YYYY-MM-DD' and 'HH:MM'.
    No time zone is applied; the clock reading is taken as given.
    """
    start_time = start_time or DEFAULT_START_TIME
    # Database times may carry seconds ("06:00:00")
    hour, minute = start_time.split(":")[:2]
    return arrow.get(event_date, "YYYY-MM-DD").replace(hour=int(hour),
                                                       minute=int(minute))


def build_control_card(name, start, distance_km, controls, organizer=None,
                       riders=(), route_name=None, start_location="",
                       chapter=None, nominal_km=None, truncate=True):
    """
    Args:
       name: event name
       start: local start time (anything arrow.get() accepts)
       distance_km: actual route length in km
       controls: list of Checkpoint
       organizer: dict with name, phone and email (all optional)
       riders: list of Rider
       nominal_km: ACP class; classified from distance_km when omitted
    Returns:
       dict ready to be serialized as JSON
    """
    begin = arrow.get(start)
    nominal = nominal_km or acp_times.classify(distance_km)
    organizer = organizer or {}

    card_controls = []
    for index, control in enumerate(controls):
        times = acp_times.compute_control_times(
            begin, control.distance, nominal, distance_km, truncate)
        card_controls.append({
            "id": "control-{}".format(index),
            "name": control.name,
            "distance": control.distance,
            "openTime": acp_times.format_control_time(times.open_at),
            "closeTime": acp_times.format_control_time(times.close_at),
        })

    hours, minutes = acp_times.total_allowable_time(
        begin, nominal, distance_km, truncate)
    log.debug("Card for {}: {} controls, {} riders, {}h{:02d} allowed".format(
        name, len(card_controls), len(riders), hours, minutes))

    return {
        "event": {
            "name": name,
            "routeName": route_name or name,
            "distance": distance_km,
            "nominalDistance": nominal,
            "date": acp_times.format_card_date(begin),
            "startTime": begin.format("HH:mm"),
            "startLocation": start_location or "",
            "chapter": chapter or DEFAULT_CHAPTER,
        },
        "organizer": {
            "name": organizer.get("name") or "",
            "phone": organizer.get("phone") or "",
            "email": organizer.get("email") or "",
        },
        "controls": card_controls,
        "riders": [{"firstName": rider.first_name,
                    "lastName": rider.last_name} for rider in riders],
        "totalAllowableTime": {"hours": hours, "minutes": minutes},
    }
