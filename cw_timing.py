#!/usr/bin/env python3
"""
CW Timing - Key sampling state machine for the straight key decoder

The key is sampled once per millisecond. Every tick adds one millisecond to
the current hold (key down) or release (key up) run. A run is committed as a
DurationSample when the key changes state, but only if it lasted longer than
the debounce interval. Shorter runs are not reset: they keep counting into
the next run of the same phase, so contact bounce is absorbed.

Phases:
  IDLE      - waiting for the first key press of a message
  KEY_DOWN  - key held
  KEY_UP    - key released, still inside the finished-typing window
  INACTIVE  - window elapsed, message waiting to be decoded
"""

from collections import namedtuple

# Sample kinds
HOLD = 'hold'
RELEASE = 'release'

# Phases
IDLE = 0
KEY_DOWN = 1
KEY_UP = 2
INACTIVE = 3

PHASE_NAMES = {
    IDLE: 'IDLE',
    KEY_DOWN: 'KEY_DOWN',
    KEY_UP: 'KEY_UP',
    INACTIVE: 'INACTIVE',
}

# Durations are 16-bit; also the "nothing seen yet" value for minimums
MAX_DURATION_MS = 0xFFFF

DurationSample = namedtuple('DurationSample', ['kind', 'ms'])


class DecoderConfig:
    """Caller-tunable timing thresholds (not validated)"""

    def __init__(self, time_unit_upper_limit_ms=100, debounce_interval_ms=20,
                 finished_typing_ms=1500):
        self.time_unit_upper_limit_ms = time_unit_upper_limit_ms
        self.debounce_interval_ms = debounce_interval_ms
        self.finished_typing_ms = finished_typing_ms

    def __repr__(self):
        return (f"DecoderConfig(time_unit_upper_limit_ms={self.time_unit_upper_limit_ms}, "
                f"debounce_interval_ms={self.debounce_interval_ms}, "
                f"finished_typing_ms={self.finished_typing_ms})")


class SampleBuffer:
    """Fixed-capacity, ordered store of committed samples"""

    def __init__(self, capacity):
        self.capacity = capacity
        self._samples = []

    def append(self, kind, ms):
        """
        Commit a sample

        Returns: True if stored, False if the buffer is full (sample dropped)
        """
        if len(self._samples) >= self.capacity:
            return False
        self._samples.append(DurationSample(kind, min(ms, MAX_DURATION_MS)))
        return True

    def clear(self):
        self._samples = []

    @property
    def full(self):
        return len(self._samples) >= self.capacity

    def __len__(self):
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    def __getitem__(self, index):
        return self._samples[index]

    def __repr__(self):
        return f"SampleBuffer({len(self._samples)}/{self.capacity})"


class TimingState:
    """Per-message counters driven by one transition function"""

    def __init__(self, debug=False):
        self.debug = debug
        self.last_activity_ms = None  # No key press seen yet
        self.reset_message()

    def reset_message(self):
        """Clear counters and trackers after a message was decoded"""
        self.hold_ms = 0
        self.release_ms = 0
        self.lowest_hold_ms = MAX_DURATION_MS
        self.highest_hold_ms = 0
        self.lowest_release_ms = MAX_DURATION_MS
        self.message_decoded = True
        self.phase = IDLE

    def currently_typing(self, now_ms, config):
        """True while the key was active within the finished-typing window"""
        if self.last_activity_ms is None:
            return False
        return now_ms - self.last_activity_ms <= config.finished_typing_ms

    def step(self, key_down, now_ms, samples, config):
        """
        Advance by one millisecond tick

        Args:
            key_down: current key state
            now_ms: tick timestamp in milliseconds
            samples: SampleBuffer receiving committed runs
            config: DecoderConfig

        Returns:
            bool - True when the message is finished and must be decoded
        """
        typing = self.currently_typing(now_ms, config)

        if key_down:
            self.last_activity_ms = now_ms
            self.message_decoded = False

            # Key pressed again: the release run before it is complete
            if self.release_ms > config.debounce_interval_ms and samples.append(RELEASE, self.release_ms):
                if self.release_ms < self.lowest_release_ms:
                    self.lowest_release_ms = self.release_ms
                if self.debug:
                    print(f"[DEBUG] Release {self.release_ms}ms (sample {len(samples)})")
                self.release_ms = 0

            self.hold_ms += 1
            self.phase = KEY_DOWN

        elif typing:
            # Key released: the hold run before it is complete
            if self.hold_ms > config.debounce_interval_ms and samples.append(HOLD, self.hold_ms):
                if self.hold_ms > self.highest_hold_ms:
                    self.highest_hold_ms = min(self.hold_ms, MAX_DURATION_MS)
                if self.hold_ms < self.lowest_hold_ms:
                    self.lowest_hold_ms = self.hold_ms
                if self.debug:
                    print(f"[DEBUG] Hold {self.hold_ms}ms (sample {len(samples)})")
                self.hold_ms = 0

            self.release_ms += 1
            self.phase = KEY_UP

        elif not self.message_decoded:
            self.message_decoded = True
            self.phase = INACTIVE
            return True

        else:
            self.phase = IDLE

        return False

    def __repr__(self):
        return (f"TimingState({PHASE_NAMES[self.phase]}, hold={self.hold_ms}ms, "
                f"release={self.release_ms}ms, lowest_hold={self.lowest_hold_ms}ms, "
                f"highest_hold={self.highest_hold_ms}ms, lowest_release={self.lowest_release_ms}ms)")
