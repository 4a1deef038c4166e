"""
Tests for config: ini defaults and type conversion.
"""
import config


def test_imply_types():
    assert config.imply_types("5000") == 5000
    assert config.imply_types("true") is True
    assert config.imply_types("Off") is False
    assert config.imply_types("06:00") == "06:00"


def test_proxied_configuration_reads_app_ini():
    CONFIG = config.configuration(proxied=True)
    assert CONFIG.PORT == 5000
    assert CONFIG.DEBUG is False
    assert CONFIG.TRUNCATE_KM is True
    assert CONFIG.DEFAULT_START_TIME == "06:00"
