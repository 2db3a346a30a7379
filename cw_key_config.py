#!/usr/bin/env python3
"""
Configuration for the straight key decoder

Config file locations (in order of precedence):
  1. ~/.cw_key_decoder.ini (user home)
  2. ./cw_key_decoder.ini (script directory)
"""

import configparser
import os

DEFAULTS = {
    'time_unit_upper_limit_ms': 100,
    'debounce_interval_ms': 20,
    'finished_typing_ms': 1500,
    'max_samples': 512,
    'max_decoded_chars': 128,
    'serial_port': None,
    'audio': True,
    'sidetone_freq': 600,
    'debug': False,
}


def config_paths():
    return [
        os.path.expanduser('~/.cw_key_decoder.ini'),  # User home (highest priority)
        os.path.join(os.path.dirname(os.path.abspath(__file__)), 'cw_key_decoder.ini'),  # Script directory
    ]


def load_config(paths=None):
    """
    Load configuration from the first config file found

    Args:
        paths: list of candidate files (default: user home, then script dir)

    Returns: (ConfigParser, path of the loaded file or None)
    """
    config = configparser.ConfigParser()

    if paths is None:
        paths = config_paths()

    config_loaded = None
    for path in paths:
        if os.path.exists(path):
            config.read(path)
            config_loaded = path
            break

    return config, config_loaded


def get_defaults(config):
    """Extract settings from a loaded config, falling back to DEFAULTS"""
    defaults = dict(DEFAULTS)

    if config.has_section('decoder'):
        for key in ('time_unit_upper_limit_ms', 'debounce_interval_ms', 'finished_typing_ms',
                    'max_samples', 'max_decoded_chars'):
            defaults[key] = config.getint('decoder', key, fallback=DEFAULTS[key])

    if config.has_section('serial'):
        defaults['serial_port'] = config.get('serial', 'port', fallback=None)
        if not defaults['serial_port']:  # Empty string in config
            defaults['serial_port'] = None

    if config.has_section('audio'):
        defaults['audio'] = config.getboolean('audio', 'enabled', fallback=True)
        defaults['sidetone_freq'] = config.getint('audio', 'frequency', fallback=DEFAULTS['sidetone_freq'])

    if config.has_section('debug'):
        defaults['debug'] = config.getboolean('debug', 'verbose', fallback=False)

    return defaults


def apply_config(decoder, settings):
    """Push timing thresholds from a settings dict into a MorseKeyDecoder"""
    decoder.set_time_unit_upper_limit_ms(settings['time_unit_upper_limit_ms'])
    decoder.set_debounce_interval_ms(settings['debounce_interval_ms'])
    decoder.set_finished_typing_ms(settings['finished_typing_ms'])
    return decoder
