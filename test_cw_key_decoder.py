#!/usr/bin/env python3
"""
Test the adaptive decoder, both on prepared duration samples and
end-to-end through simulated millisecond key sampling
"""

from cw_key_decoder import MorseKeyDecoder, decode_samples
from cw_key_simulator import events_to_levels, feed_events, feed_text, text_to_events
from cw_timing import HOLD, RELEASE, MAX_DURATION_MS, DurationSample


def alternating(*durations):
    """Hold, release, hold, ... samples from a list of durations"""
    return [DurationSample(HOLD if i % 2 == 0 else RELEASE, ms) for i, ms in enumerate(durations)]


def decode(samples, upper_limit=100, capacity=64):
    """Decode with the extremes the sampler would have tracked"""
    holds = [s.ms for s in samples if s.kind == HOLD]
    releases = [s.ms for s in samples if s.kind == RELEASE]
    return decode_samples(
        samples,
        min(holds, default=MAX_DURATION_MS),
        max(holds, default=0),
        min(releases, default=MAX_DURATION_MS),
        upper_limit,
        capacity
    )


# S = dit dit dit, O = dah dah dah at 20 WPM (60ms dit)
SOS = alternating(60, 60, 60, 60, 60, 180,
                  180, 60, 180, 60, 180, 180,
                  60, 60, 60, 60, 60)


# ---------- decode_samples ----------

def test_decode_sos_without_word_space():
    assert decode(SOS) == 'SOS'


def test_decode_word_space():
    samples = list(SOS)
    samples[11] = DurationSample(RELEASE, 420)  # 7 dits between O and S
    assert decode(samples) == 'SO S'


def test_decode_uniform_long_holds_as_dahs():
    samples = alternating(150, 150, 150, 150, 150, 150, 150, 150, 150)
    assert decode(samples) == '0'


def test_decode_long_holds_within_double_as_dahs():
    assert decode(alternating(150, 150, 250)) == 'M'


def test_decode_long_holds_beyond_double_mixed():
    assert decode(alternating(150, 150, 450)) == 'A'


def test_decode_uniform_short_holds_as_dits():
    assert decode(alternating(50, 50, 50, 50, 50)) == 'S'


def test_decode_upper_limit_controls_uniform_holds():
    samples = alternating(150, 150, 150, 150, 150, 150, 150, 150, 150)
    assert decode(samples, upper_limit=200) == '5'


def test_decode_closes_character_after_five_elements():
    samples = alternating(50, 50, 50, 50, 50, 50, 50, 50, 50, 50, 50)
    assert decode(samples) == '5E'


def test_decode_consecutive_holds_stay_in_character():
    samples = [DurationSample(HOLD, 60), DurationSample(HOLD, 180)]
    assert decode(samples) == 'A'


def test_decode_skips_leading_release():
    samples = [DurationSample(RELEASE, 500), DurationSample(HOLD, 60)]
    assert decode(samples) == 'E'


def test_decode_finishes_character_cut_by_full_buffer():
    # Last hold of the message was never stored
    samples = alternating(60, 60, 180, 60)
    assert decode(samples) == 'A'


def test_decode_truncates_to_capacity():
    # I I I I I
    samples = alternating(60, 60, 60, 180, 60, 60, 60, 180, 60, 60,
                          60, 180, 60, 60, 60, 180, 60, 60, 60)
    assert decode(samples) == 'IIIII'
    assert decode(samples, capacity=3) == 'II'
    assert decode(samples, capacity=1) == ''


def test_decode_empty():
    assert decode([]) == ''


# ---------- MorseKeyDecoder ----------

def test_single_dit_is_e():
    decoder = MorseKeyDecoder(64, 16)
    levels = events_to_levels(text_to_events('E')) + [False] * 1502

    ready = False
    for now_ms, key_down in enumerate(levels):
        ready = decoder.tick(key_down, now_ms)

    assert ready
    assert decoder.get_decoded_message() == 'E'
    assert decoder.get_decoded_message_size() == 1
    assert decoder.get_user_input_size() == 1

    # Stays ready until acknowledged
    assert decoder.tick(False, len(levels))
    decoder.acknowledge()
    assert not decoder.tick(False, len(levels) + 1)
    assert decoder.get_user_input_size() == 0


def test_not_ready_before_inactivity_window():
    decoder = MorseKeyDecoder(64, 16)
    assert feed_events(decoder, text_to_events('E'), tail_ms=1400) is None


def test_sos():
    assert feed_text(MorseKeyDecoder(256, 64), 'SOS') == 'SOS'


def test_word_space_inserted_once():
    assert feed_text(MorseKeyDecoder(256, 64), 'SO S') == 'SO S'


def test_paris():
    assert feed_text(MorseKeyDecoder(256, 64), 'PARIS') == 'PARIS'


def test_slow_operator():
    decoder = MorseKeyDecoder(512, 64)
    assert feed_text(decoder, 'CQ CQ DE N0CALL', dit_ms=80) == 'CQ CQ DE N0CALL'


def test_only_dahs():
    decoder = MorseKeyDecoder(64, 16)
    events = [(True, 150), (False, 150)] * 4 + [(True, 150)]
    assert feed_events(decoder, events) == '0'


def test_upper_limit_setter():
    decoder = MorseKeyDecoder(64, 16)
    decoder.set_time_unit_upper_limit_ms(200)
    events = [(True, 150), (False, 150)] * 4 + [(True, 150)]
    assert feed_events(decoder, events) == '5'


def test_contact_bounce_filtered():
    decoder = MorseKeyDecoder(64, 16)
    # 10ms blip, 5ms bounce, then the real 50ms press
    events = [(True, 10), (False, 5), (True, 50)]
    levels = events_to_levels(events) + [False] * 1502

    for now_ms, key_down in enumerate(levels):
        decoder.tick(key_down, now_ms)

    assert decoder.get_user_input_size() == 1
    assert decoder.samples[0] == DurationSample(HOLD, 60)
    assert decoder.get_decoded_message() == 'E'


def test_debounce_setter_rejects_short_holds():
    decoder = MorseKeyDecoder(64, 16)
    decoder.set_debounce_interval_ms(70)
    assert feed_text(decoder, 'E') == ''


def test_finished_typing_setter():
    decoder = MorseKeyDecoder(64, 16)
    decoder.set_finished_typing_ms(500)
    assert feed_events(decoder, text_to_events('E'), tail_ms=502) == 'E'


def test_output_capacity():
    decoder = MorseKeyDecoder(256, 3)
    assert feed_text(decoder, 'PARIS') == 'PA'


def test_sample_capacity():
    decoder = MorseKeyDecoder(3, 64)
    levels = events_to_levels(text_to_events('PARIS')) + [False] * 1502

    for now_ms, key_down in enumerate(levels):
        decoder.tick(key_down, now_ms)

    assert decoder.get_user_input_size() == 3
    # Only the first dit and dah of P survive
    assert decoder.get_decoded_message() == 'A'


def test_consecutive_messages():
    decoder = MorseKeyDecoder(256, 64)
    assert feed_text(decoder, 'SOS') == 'SOS'
    assert feed_text(decoder, 'TEST', start_ms=100000) == 'TEST'


def test_same_timestamp_ignored():
    decoder = MorseKeyDecoder(64, 16)
    for _ in range(10):
        decoder.tick(True, 5)
    assert decoder.timing.hold_ms == 1


def test_acknowledge_without_message():
    decoder = MorseKeyDecoder(64, 16)
    decoder.acknowledge()
    decoder.acknowledge()
    assert not decoder.tick(False, 0)
    assert decoder.get_user_input_size() == 0
    assert decoder.get_decoded_message_size() == 0


def test_listening_status_default():
    assert not MorseKeyDecoder(64, 16).get_listening_status()


if __name__ == '__main__':
    for name, func in list(globals().items()):
        if name.startswith('test_') and callable(func):
            func()
            print(f"✓ {name}")
