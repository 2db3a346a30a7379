#!/usr/bin/env python3
"""
USB Key Decoder - Read a straight key via USB serial adapter and print text

Wiring:
  CTS (pin 8) -> Key tip
  GND (pin 5) -> Key ring

Usage:
    python3 cw_usb_key_decoder.py [options]

Examples:
    # Auto-detect serial port
    python3 cw_usb_key_decoder.py

    # Slow operator, longer pause before decoding
    python3 cw_usb_key_decoder.py --serial-port /dev/ttyUSB0 --finished-typing 2500

    # No hardware: decode synthetic keying
    python3 cw_usb_key_decoder.py --simulate "CQ CQ DE N0CALL" --wpm 15
"""

import argparse
import sys
import time
import serial
import serial.tools.list_ports

from cw_key_config import load_config, get_defaults, apply_config
from cw_key_decoder import MorseKeyDecoder
from cw_key_simulator import text_to_events, feed_events
from cw_sidetone import SidetoneGenerator


def now_ms():
    """Monotonic clock in milliseconds"""
    return int(time.monotonic() * 1000)


class USBKeyDecoder:
    """Poll a straight key on the CTS line and decode messages"""

    def __init__(self, settings, serial_port=None, no_audio=False, debug=False):
        self.settings = settings
        self.serial_port = serial_port
        self.debug = debug
        self.running = False
        self.ser = None
        self.messages = 0

        self.decoder = apply_config(
            MorseKeyDecoder(settings['max_samples'], settings['max_decoded_chars'], debug=debug),
            settings
        )

        # Audio sidetone
        self.sidetone = None
        if not no_audio:
            try:
                self.sidetone = SidetoneGenerator(settings['sidetone_freq']).open()
            except Exception as e:
                print(f"[AUDIO] Could not initialize sidetone: {e}")
                self.sidetone = None

        self.last_key_down = False

    def find_serial_port(self):
        """Auto-detect USB serial adapter"""
        ports = list(serial.tools.list_ports.comports())

        print("\n[SERIAL] Available ports:")
        for i, port in enumerate(ports):
            print(f"  {i}: {port.device} - {port.description}")

        if not ports:
            print("[ERROR] No serial ports found!")
            return None

        if len(ports) == 1:
            print(f"\n[SERIAL] Auto-selected: {ports[0].device}")
            return ports[0].device

        # Ask user to select
        try:
            choice = int(input(f"\nSelect port (0-{len(ports)-1}): "))
            if 0 <= choice < len(ports):
                return ports[choice].device
        except (ValueError, KeyboardInterrupt):
            pass

        return None

    def connect_serial(self):
        """Connect to USB serial adapter"""
        if self.serial_port is None:
            self.serial_port = self.find_serial_port()

        if self.serial_port is None:
            return False

        try:
            self.ser = serial.Serial(self.serial_port, baudrate=9600, timeout=0)
            time.sleep(0.1)  # Let port settle
            print(f"[SERIAL] Connected to {self.serial_port}")

            if self.debug:
                print(f"[DEBUG] Initial CTS (key): {self.ser.cts}")

            if self.ser.cts:
                print("[WARNING] CTS pin is HIGH - key may appear pressed!")
                print("[WARNING] Check wiring: Key should connect CTS to GND")

            return True
        except Exception as e:
            print(f"[ERROR] Could not open serial port: {e}")
            return False

    def read_key_state(self):
        """Key state from the CTS line"""
        return bool(self.ser.cts)

    def on_message(self, text):
        self.messages += 1
        print(f"\n[RX] {text}")

    def run_straight_key(self):
        """Sample the key every millisecond and print each decoded message"""
        print("\n[MODE] Straight key")
        print(f"[INFO] Message is decoded after {self.decoder.config.finished_typing_ms}ms without keying")
        print("[INFO] Press Ctrl+C to quit\n")

        while self.running:
            key_down = self.read_key_state()

            if key_down != self.last_key_down:
                if self.sidetone:
                    self.sidetone.set_key(key_down)
                if key_down and not self.debug:
                    print("▪", end='', flush=True)
                self.last_key_down = key_down

            if self.decoder.tick(key_down, now_ms()):
                self.on_message(self.decoder.get_decoded_message())
                self.decoder.acknowledge()

            time.sleep(0.0005)  # Sample at least once per millisecond

    def run(self):
        """Main run loop"""
        print("=" * 60)
        print("USB CW Key Decoder")
        print("=" * 60)

        if not self.connect_serial():
            self.cleanup()
            return 1

        self.running = True

        try:
            self.run_straight_key()
        except KeyboardInterrupt:
            print("\n\n[INFO] Interrupted by user")
        except serial.SerialException as e:
            print(f"\n[ERROR] Serial port lost: {e}")
            return 1
        finally:
            self.running = False
            self.cleanup()

        return 0

    def cleanup(self):
        """Cleanup resources"""
        if self.sidetone:
            self.sidetone.close()
            self.sidetone = None

        if self.ser:
            self.ser.close()
            self.ser = None

        print(f"[INFO] {self.messages} message(s) decoded. 73!")


def run_simulation(settings, text, wpm, debug=False):
    """Decode synthetic keying of `text` and print the result"""
    decoder = apply_config(
        MorseKeyDecoder(settings['max_samples'], settings['max_decoded_chars'], debug=debug),
        settings
    )
    dit_ms = int(1200 / wpm)
    events = text_to_events(text, dit_ms)

    print(f"[SIM] Keying '{text}' at {wpm} WPM (dit={dit_ms}ms, {len(events)} events)")
    result = feed_events(decoder, events)
    if result is None:
        print("[SIM] No message decoded")
        return 1

    print(f"[RX] {result}")
    return 0


def list_serial_ports():
    """List available serial ports"""
    ports = serial.tools.list_ports.comports()
    if not ports:
        print("No serial ports found!")
        return

    print("\nAvailable serial ports:")
    for i, port in enumerate(ports):
        print(f"  [{i}] {port.device}")
        print(f"      {port.description}")
        if port.hwid:
            print(f"      {port.hwid}")


def build_parser(defaults):
    parser = argparse.ArgumentParser(
        description='USB CW Key Decoder - adaptive straight key to text',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 cw_usb_key_decoder.py
  python3 cw_usb_key_decoder.py --serial-port /dev/ttyUSB0 --no-audio
  python3 cw_usb_key_decoder.py --simulate "SOS" --wpm 20

Config file locations (in order of precedence):
  1. ~/.cw_key_decoder.ini (user home)
  2. ./cw_key_decoder.ini (script directory)
        """
    )

    parser.add_argument('--serial-port', default=defaults['serial_port'],
                        help='Serial port device (auto-detect if not specified)')
    parser.add_argument('--list-ports', action='store_true',
                        help='List serial ports and exit')
    parser.add_argument('--time-unit-limit', type=int, default=defaults['time_unit_upper_limit_ms'],
                        help=f"Dit/dah limit for only-dit or only-dah messages in ms "
                             f"(default: {defaults['time_unit_upper_limit_ms']})")
    parser.add_argument('--debounce', type=int, default=defaults['debounce_interval_ms'],
                        help=f"Contact bounce filter in ms (default: {defaults['debounce_interval_ms']})")
    parser.add_argument('--finished-typing', type=int, default=defaults['finished_typing_ms'],
                        help=f"Pause before decoding in ms (default: {defaults['finished_typing_ms']})")
    parser.add_argument('--max-samples', type=int, default=defaults['max_samples'],
                        help=f"Holds + releases per message (default: {defaults['max_samples']})")
    parser.add_argument('--max-chars', type=int, default=defaults['max_decoded_chars'],
                        help=f"Decoded message size (default: {defaults['max_decoded_chars']})")
    parser.add_argument('--sidetone-freq', type=int, default=defaults['sidetone_freq'],
                        help=f"Sidetone frequency in Hz (default: {defaults['sidetone_freq']})")
    parser.add_argument('--no-audio', action='store_true', default=not defaults['audio'],
                        help='Disable audio sidetone')
    parser.add_argument('--simulate', metavar='TEXT',
                        help='Decode synthetic keying of TEXT instead of reading a key')
    parser.add_argument('--wpm', type=int, default=20,
                        help='Speed for --simulate (default: 20)')
    parser.add_argument('--debug', action='store_true', default=defaults['debug'],
                        help='Enable debug output')

    return parser


def main(argv=None):
    # Load config file first
    config, config_path = load_config()
    defaults = get_defaults(config)

    args = build_parser(defaults).parse_args(argv)

    if config_path:
        print(f"✓ Loaded config from: {config_path}")

    if args.list_ports:
        list_serial_ports()
        return 0

    settings = dict(defaults)
    settings.update({
        'time_unit_upper_limit_ms': args.time_unit_limit,
        'debounce_interval_ms': args.debounce,
        'finished_typing_ms': args.finished_typing,
        'max_samples': args.max_samples,
        'max_decoded_chars': args.max_chars,
        'sidetone_freq': args.sidetone_freq,
    })

    if args.debug:
        print(f"[DEBUG] Settings: {settings}")

    if args.simulate is not None:
        return run_simulation(settings, args.simulate, args.wpm, debug=args.debug)

    key_decoder = USBKeyDecoder(
        settings,
        serial_port=args.serial_port,
        no_audio=args.no_audio,
        debug=args.debug
    )
    return key_decoder.run()


if __name__ == '__main__':
    sys.exit(main())
