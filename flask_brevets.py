"""
ACP brevet control time service
(see https://rusa.org/octime_acp.html)

AJAX handlers only; they return JSON rather than rendering pages.
"""

import flask
from flask import request

import acp_times  # Brevet time calculations
import config
import control_card

import logging

###
# Globals
###

app = flask.Flask(__name__)
CONFIG = config.configuration(proxied=(__name__ != "__main__"))

DEFAULT_START_TIME = getattr(CONFIG, "DEFAULT_START_TIME",
                             control_card.DEFAULT_START_TIME)
TRUNCATE_KM = getattr(CONFIG, "TRUNCATE_KM", True)
PORT = getattr(CONFIG, "PORT", 5000)


def _bad_request(message):
    app.logger.debug("Rejected request: {}".format(message))
    return flask.jsonify(result={"message": message}), 400


@app.errorhandler(404)
def page_not_found(error):
    app.logger.debug("Page not found")
    return flask.jsonify(result={"message": "404: Not found"}), 404


###############
#
# AJAX request handlers
#
###############
@app.route("/_calc_times")
def _calc_times():
    """
    Calculates open/close times for one control, using rules
    described at https://rusa.org/octime_alg.html.
    Arguments: km (control distance), brevet (event distance,
    actual or nominal), route (optional actual route length),
    beginDate and beginTime.
    """
    app.logger.debug("Got a JSON request")
    app.logger.debug("request.args: {}".format(request.args))
    km = request.args.get('km', 0, type=float)
    brevet = request.args.get('brevet', 200, type=float)
    route = request.args.get('route', None, type=float)
    beginDate = request.args.get('beginDate', "2017-01-01", type=str)
    beginTime = request.args.get('beginTime', DEFAULT_START_TIME, type=str)

    try:
        nominal = acp_times.classify(brevet)
        start = control_card.start_datetime(beginDate, beginTime)
        if route is None:
            route = brevet
        times = acp_times.compute_control_times(start, km, nominal, route,
                                                TRUNCATE_KM)
    except ValueError as err:
        return _bad_request(str(err))

    notes = ""
    if km > route:
        if route * 1.2 < km:
            notes = "Distance much longer than brevet - an accident?"
        else:
            notes = "Distance a bit longer than brevet, treated as finish"
    elif 0 < km < 15:
        notes = "Distance a bit small - might cause weirdness"

    app.logger.debug("km={} nominal={} open_min={} close_min={}".format(
        km, nominal, times.open_min, times.close_min))
    result = {"open": times.open_at.isoformat(),
              "close": times.close_at.isoformat(),
              "notes": notes}
    return flask.jsonify(result=result)


@app.route("/_control_card")
def _control_card():
    """
    Control card data for an event. Arguments: name, date, startTime,
    distance (actual route km), nominal (optional ACP class), route,
    location, chapter, controls and riders (JSON arrays),
    organizerName, organizerPhone, organizerEmail.
    """
    app.logger.debug("request.args: {}".format(request.args))
    name = request.args.get('name', "", type=str)
    eventDate = request.args.get('date', "", type=str)
    startTime = request.args.get('startTime', DEFAULT_START_TIME, type=str)
    distance = request.args.get('distance', None, type=float)
    if distance is None:
        return _bad_request("distance is required")

    controls = control_card.parse_controls(request.args.get('controls'))
    riders = control_card.parse_riders(request.args.get('riders'))
    organizer = {
        "name": request.args.get('organizerName', "", type=str),
        "phone": request.args.get('organizerPhone', "", type=str),
        "email": request.args.get('organizerEmail', "", type=str),
    }

    try:
        start = control_card.start_datetime(eventDate, startTime)
        card = control_card.build_control_card(
            name, start, distance, controls, organizer, riders,
            route_name=request.args.get('route', None, type=str),
            start_location=request.args.get('location', "", type=str),
            chapter=request.args.get('chapter', None, type=str),
            nominal_km=request.args.get('nominal', None, type=int),
            truncate=TRUNCATE_KM)
    except ValueError as err:
        return _bad_request(str(err))
    return flask.jsonify(result=card)

#############

app.debug = getattr(CONFIG, "DEBUG", False)
if app.debug:
    app.logger.setLevel(logging.DEBUG)

if __name__ == "__main__":
    print("Opening for global access on port {}".format(PORT))
    app.run(port=PORT, host="0.0.0.0")
