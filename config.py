"""
Configure from
   app.ini (shipped defaults)
   credentials.ini (optional, local overrides)
   and command line  (in that order of precedence, last wins)

configuration() returns an argparse.Namespace whose attributes
are the upper-case setting names, e.g. CONFIG.PORT.
"""
import argparse
import configparser
import logging
import os

logging.basicConfig(format='%(levelname)s:%(message)s',
                    level=logging.INFO)
log = logging.getLogger(__name__)

HERE = os.path.dirname(__file__)

CONFIG_FILES = ["app.ini", "credentials.ini"]


def command_line_args():
    """Returns namespace with settings from command line"""
    parser = argparse.ArgumentParser(
        description="ACP brevet control times")
    parser.add_argument("-D", "--debug", dest="DEBUG",
                        action="store_const", const=True,
                        help="Turn on debugging and verbose logging")
    parser.add_argument("-P", "--port", type=int, dest="PORT",
                        help="Port for Flask built-in server (only)")
    parser.add_argument("-C", "--config", type=str,
                        help="Alternate configuration file")
    cli_args = parser.parse_args()
    log.debug("Command line arguments: {}".format(cli_args))
    return cli_args


def fake_cli_args():
    """When we're running under a WSGI server or a test harness
    the command line belongs to someone else, so use an empty one.
    """
    return argparse.Namespace(DEBUG=None, PORT=None, config=None)


def config_file_args(config_file_paths):
    """Returns dict of values from the configuration files,
    later files overriding earlier ones. Missing files are skipped.
    """
    config = configparser.ConfigParser()
    for path in config_file_paths:
        relative = os.path.join(HERE, path)
        if os.path.exists(path):
            log.info("Configuring from {}".format(path))
            config.read(path)
        elif os.path.exists(relative):
            log.info("Configuring from {}".format(relative))
            config.read(relative)
        else:
            log.debug("No configuration file {}; skipping".format(path))
    section = config["DEFAULT"]
    return {key.upper(): value for key, value in section.items()}


def imply_types(value):
    """Convert a configuration string to int or bool where it looks
    like one; anything else stays a string.
    """
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        return int(value)
    except ValueError:
        return value


def configuration(proxied=False):
    """
    Returns namespace with settings from configuration file(s)
    and command line. Command line wins where both are given.
    """
    if proxied:
        cli = fake_cli_args()
    else:
        cli = command_line_args()
    cli_vars = vars(cli)

    config_file_paths = list(CONFIG_FILES)
    if cli_vars.get("config"):
        config_file_paths.append(cli_vars["config"])

    settings = {key: imply_types(value)
                for key, value in config_file_args(config_file_paths).items()}
    for var, value in cli_vars.items():
        if var == "config" or value is None:
            continue
        settings[var] = value
    log.debug("Settings: {}".format(settings))
    return argparse.Namespace(**settings)
