"""
INI configuration for the viewer.

    [settings]
    manifest_url = https://example.org/reading/current.txt
    poll_interval_ms = 2000
    fetch_timeout_ms = 1500
"""
import configparser
import logging
import os

from manifest_viewer.scheduler import DEFAULT_FETCH_TIMEOUT_MS, DEFAULT_POLL_INTERVAL_MS, validate_timing

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = os.environ.get('MANIFEST_VIEWER_CONFIG', '/etc/manifest_viewer.conf')
SECTION = 'settings'

DEFAULTS = {
    'manifest_url': '',
    'poll_interval_ms': DEFAULT_POLL_INTERVAL_MS,
    'fetch_timeout_ms': DEFAULT_FETCH_TIMEOUT_MS,
    'image_timeout_s': 15.0,
    'max_image_width': 1920,
    'max_image_height': 1080,
    'window_width': 1280,
    'window_height': 720,
    'config_check_interval_s': 1.0,
    'log_file': None,
}

INT_KEYS = ('poll_interval_ms', 'fetch_timeout_ms', 'max_image_width', 'max_image_height',
            'window_width', 'window_height')
FLOAT_KEYS = ('image_timeout_s', 'config_check_interval_s')


class ConfigError(Exception):
    pass


def read_parser(config_path):
    """Parses config_path; returns None if the file does not exist."""
    if not os.path.exists(config_path):
        return None
    config = configparser.ConfigParser()
    try:
        config.read(config_path, encoding='utf-8')
    except (configparser.Error, UnicodeDecodeError) as e:
        raise ConfigError(f"Error parsing configuration file {config_path}: {e}") from e
    if SECTION not in config:
        raise ConfigError(f"Missing [{SECTION}] section in configuration file: {config_path}")
    return config


def read_manifest_url(config_path):
    """Re-reads only the manifest URL; used when the file changes under a running viewer."""
    config = read_parser(config_path)
    if config is None:
        return ''
    return config[SECTION].get('manifest_url', '').strip()


def load_settings(config_path=CONFIG_FILE_PATH):
    """
    Loads settings from config_path on top of DEFAULTS.

    A missing file is not an error: the viewer starts with defaults and waits
    for a URL. Anything unreadable or inconsistent raises ConfigError.
    """
    settings = dict(DEFAULTS)
    config = read_parser(config_path)
    if config is None:
        logger.info(f"Configuration file not found: {config_path}, using defaults")
        return settings

    section = config[SECTION]
    settings['manifest_url'] = section.get('manifest_url', '').strip()
    settings['log_file'] = section.get('log_file', '').strip() or None
    for key in INT_KEYS:
        try:
            settings[key] = section.getint(key, fallback=DEFAULTS[key])
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key} in {config_path}: {e}") from e
    for key in FLOAT_KEYS:
        try:
            settings[key] = section.getfloat(key, fallback=DEFAULTS[key])
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key} in {config_path}: {e}") from e

    check_settings(settings)
    logger.info(f"Successfully loaded configuration from {config_path}")
    return settings


def check_settings(settings):
    try:
        validate_timing(settings['poll_interval_ms'], settings['fetch_timeout_ms'])
    except ValueError as e:
        raise ConfigError(str(e)) from e
    for key in ('max_image_width', 'max_image_height', 'window_width', 'window_height'):
        if settings[key] <= 0:
            raise ConfigError(f"{key} must be positive, got {settings[key]}")
    for key in FLOAT_KEYS:
        if settings[key] <= 0:
            raise ConfigError(f"{key} must be positive, got {settings[key]}")
