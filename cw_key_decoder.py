#!/usr/bin/env python3
"""
Straight Key Decoder - Turn telegraph key timing into text

Call tick(key_down, now_ms) at least once per millisecond. Hold and release
durations are collected until the key has been up for finished_typing_ms,
then the whole message is decoded in one pass and tick() returns True until
acknowledge() is called.

There is no fixed speed: the shortest hold of the message is taken as one
time unit.
  Hold  > 2x shortest hold      -> dah, otherwise dit
  Gap   > 2x shortest release   -> end of character
  Gap   > 6x shortest release   -> end of word (space)

If a message contains only dits or only dahs there is nothing to compare
against. When even the shortest hold reaches time_unit_upper_limit_ms and
all holds are within 2x of each other, every element is taken as a dah.
"""

from cw_alphabet import MORSE_LOOKUP, FIRST_BIT, LAST_BIT, fill_code, unpack_code
from cw_timing import (HOLD, RELEASE, DecoderConfig, SampleBuffer, TimingState)


def decode_samples(samples, lowest_hold_ms, highest_hold_ms, lowest_release_ms,
                   time_unit_upper_limit_ms, capacity, lookup=MORSE_LOOKUP, debug=False):
    """
    Decode a complete message

    Args:
        samples: sequence of DurationSample (hold/release)
        lowest_hold_ms: shortest hold of the message
        highest_hold_ms: longest hold of the message
        lowest_release_ms: shortest release of the message
        time_unit_upper_limit_ms: dit/dah limit for all-dit or all-dah messages
        capacity: output size including the terminator slot
        lookup: 64-entry code -> character table
        debug: print each resolved code

    Returns: decoded text (at most capacity - 1 characters)
    """
    # Holds too close together to contain both dits and dahs
    if lowest_hold_ms >= time_unit_upper_limit_ms and (
            lowest_hold_ms == highest_hold_ms or lowest_hold_ms * 2 >= highest_hold_ms):
        if debug:
            print(f"[DEBUG] Uniform holds ({lowest_hold_ms}-{highest_hold_ms}ms), decoding all as dahs")
        lowest_hold_ms = 0

    dah_threshold = lowest_hold_ms * 2
    char_threshold = lowest_release_ms * 2
    word_threshold = lowest_release_ms * 6

    decoded = []
    code = 0
    bit = FIRST_BIT
    count = len(samples)

    def finish_character(last_bit):
        char_code = fill_code(code, last_bit)
        decoded.append(lookup[char_code])
        if debug:
            print(f"[DEBUG] Code 0b{char_code:06b} ({unpack_code(char_code)}) -> {lookup[char_code]!r}")

    for i in range(count):
        if len(decoded) >= capacity:
            break

        sample = samples[i]
        if sample.kind != HOLD:
            continue

        if sample.ms > dah_threshold:
            code |= 1 << bit

        last = i == count - 1
        gap = 0
        if not last and samples[i + 1].kind == RELEASE:
            gap = samples[i + 1].ms

        if last or gap > char_threshold or bit == LAST_BIT:
            finish_character(bit)
            code = 0
            bit = FIRST_BIT

            if not last and len(decoded) < capacity and gap > word_threshold:
                decoded.append(' ')
        else:
            bit -= 1

    # Sequence cut short by a full sample buffer
    if bit != FIRST_BIT and len(decoded) < capacity:
        finish_character(bit + 1)

    # Keep the last slot for the terminator
    if decoded and len(decoded) >= capacity:
        decoded.pop()

    return ''.join(decoded)


class DecodedMessage:
    """Bounded output buffer with ready/acknowledged state"""

    def __init__(self, capacity):
        self.capacity = capacity
        self.text = ''
        self.ready = False

    @property
    def size(self):
        return len(self.text)

    def store(self, text):
        self.text = text[:max(self.capacity - 1, 0)]
        self.ready = True

    def acknowledge(self):
        self.ready = False


class MorseKeyDecoder:
    """Sample a straight key and decode each message after inactivity"""

    def __init__(self, max_samples, max_decoded_chars, lookup=MORSE_LOOKUP, debug=False):
        """
        Args:
            max_samples: maximum number of holds + releases per message
            max_decoded_chars: decoded message size, terminator slot included
            lookup: 64-entry code -> character table
            debug: print samples and decoded codes
        """
        self.debug = debug
        self.lookup = lookup

        self.config = DecoderConfig()
        self.samples = SampleBuffer(max_samples)
        self.timing = TimingState(debug=debug)
        self.message = DecodedMessage(max_decoded_chars)

        self.last_tick_ms = None
        self.listening = False

    def set_time_unit_upper_limit_ms(self, time_unit_upper_limit_ms):
        """Dit/dah limit used when a message has only dits or only dahs (default 100)"""
        self.config.time_unit_upper_limit_ms = time_unit_upper_limit_ms

    def set_debounce_interval_ms(self, debounce_interval_ms):
        """Runs equal to or below this are rejected as contact bounce (default 20)"""
        self.config.debounce_interval_ms = debounce_interval_ms

    def set_finished_typing_ms(self, finished_typing_ms):
        """Inactivity before the message is decoded (default 1500)"""
        self.config.finished_typing_ms = finished_typing_ms

    def tick(self, key_down, now_ms):
        """
        Feed the current key state

        Repeated calls with the same timestamp are ignored.

        Args:
            key_down: True while the key is pressed
            now_ms: monotonic time in milliseconds

        Returns:
            bool - True if a decoded message is ready
        """
        if now_ms != self.last_tick_ms:
            if self.timing.step(key_down, now_ms, self.samples, self.config):
                self._decode()
            self.last_tick_ms = now_ms

        return self.message.ready

    def _decode(self):
        timing = self.timing

        if self.debug:
            print(f"\n[DEBUG] Decoding {len(self.samples)} samples: hold {timing.lowest_hold_ms}-"
                  f"{timing.highest_hold_ms}ms, shortest release {timing.lowest_release_ms}ms")

        text = decode_samples(
            self.samples,
            timing.lowest_hold_ms,
            timing.highest_hold_ms,
            timing.lowest_release_ms,
            self.config.time_unit_upper_limit_ms,
            self.message.capacity,
            lookup=self.lookup,
            debug=self.debug
        )
        self.message.store(text)

        if self.debug:
            print(f"[DEBUG] Decoded {self.message.size} chars: {text!r}")

        timing.reset_message()

    def acknowledge(self):
        """Mark the message as read and start collecting a new one"""
        self.message.acknowledge()
        self.samples.clear()

    def get_decoded_message(self):
        return self.message.text

    def get_decoded_message_size(self):
        """Size of the decoded message (terminator not included)"""
        return self.message.size

    def get_user_input_size(self):
        """Number of committed holds and releases"""
        return len(self.samples)

    def get_listening_status(self):
        """
        Whether the circuit has been closed for finished_typing_ms

        Declared for the two-station key setup; nothing sets it yet.
        """
        return self.listening
