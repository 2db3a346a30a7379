#!/usr/bin/env python3
"""
Test the key decoder command line without hardware
"""

import contextlib
import io

from cw_key_config import DEFAULTS
from cw_usb_key_decoder import build_parser, main, run_simulation


def capture(func, *args, **kwargs):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        result = func(*args, **kwargs)
    return result, out.getvalue()


def test_parser_defaults():
    args = build_parser(DEFAULTS).parse_args([])
    assert args.debounce == 20
    assert args.finished_typing == 1500
    assert args.time_unit_limit == 100
    assert args.serial_port is None
    assert not args.no_audio
    assert args.simulate is None


def test_parser_overrides():
    args = build_parser(DEFAULTS).parse_args(
        ['--serial-port', '/dev/ttyUSB1', '--debounce', '10', '--no-audio', '--simulate', 'SOS'])
    assert args.serial_port == '/dev/ttyUSB1'
    assert args.debounce == 10
    assert args.no_audio
    assert args.simulate == 'SOS'


def test_run_simulation():
    result, output = capture(run_simulation, dict(DEFAULTS), 'SOS', 20)
    assert result == 0
    assert '[RX] SOS' in output


def test_run_simulation_nothing_keyed():
    result, output = capture(run_simulation, dict(DEFAULTS), '', 20)
    assert result == 1
    assert 'No message decoded' in output


def test_main_simulate():
    result, output = capture(main, ['--simulate', 'CQ DE TEST', '--wpm', '15'])
    assert result == 0
    assert '[RX] CQ DE TEST' in output


if __name__ == '__main__':
    for name, func in list(globals().items()):
        if name.startswith('test_') and callable(func):
            func()
            print(f"✓ {name}")
