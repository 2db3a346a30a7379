#!/usr/bin/env python3
"""
Key Simulator - Generate straight key timing from text
No key required - drives the decoder one millisecond at a time
"""

import sys
from cw_alphabet import MORSE_CODE


def text_to_events(text, dit_ms=60, char_space=3, word_space=7):
    """
    Convert text to keying events

    Args:
        text: text to key (unknown characters are skipped)
        dit_ms: dit length in milliseconds
        char_space: gap between characters, in dits
        word_space: gap between words, in dits

    Returns: list of (key_down, duration_ms) tuples, starting with key down
             and ending with the last element (no trailing gap)
    """
    dah_ms = dit_ms * 3
    events = []
    pending_gap = 0

    for char in text.upper():
        if char == ' ':
            if events:
                pending_gap = dit_ms * word_space
            continue

        pattern = MORSE_CODE.get(char)
        if not pattern:
            continue

        for i, element in enumerate(pattern):
            if events:
                gap = pending_gap if i == 0 else dit_ms
                events.append((False, gap))
            events.append((True, dah_ms if element == '-' else dit_ms))

        pending_gap = dit_ms * char_space

    return events


def events_to_levels(events):
    """Expand (key_down, duration_ms) events into one key level per millisecond"""
    levels = []
    for key_down, duration_ms in events:
        levels.extend([key_down] * int(duration_ms))
    return levels


def feed_events(decoder, events, start_ms=0, tail_ms=None):
    """
    Drive a decoder with keying events, one tick per millisecond

    Args:
        decoder: MorseKeyDecoder
        events: list of (key_down, duration_ms)
        start_ms: timestamp of the first tick
        tail_ms: key-up time appended after the events
                 (default: long enough for the decoder to finish the message)

    Returns: decoded text, or None if no message became ready
    """
    if tail_ms is None:
        tail_ms = decoder.config.finished_typing_ms + 2

    now_ms = start_ms
    ready = False
    for key_down in events_to_levels(events) + [False] * tail_ms:
        ready = decoder.tick(key_down, now_ms)
        now_ms += 1

    if not ready:
        return None

    text = decoder.get_decoded_message()
    decoder.acknowledge()
    return text


def feed_text(decoder, text, dit_ms=60, start_ms=0):
    """Key text into the decoder and return what it decoded"""
    return feed_events(decoder, text_to_events(text, dit_ms), start_ms=start_ms)


def main():
    from cw_key_decoder import MorseKeyDecoder

    if len(sys.argv) < 2:
        print("Usage: python3 cw_key_simulator.py <text> [wpm]")
        print("\nExamples:")
        print("  python3 cw_key_simulator.py SOS")
        print("  python3 cw_key_simulator.py 'CQ CQ DE N0CALL' 15")
        return 1

    text = sys.argv[1]
    wpm = int(sys.argv[2]) if len(sys.argv) > 2 else 20
    dit_ms = int(1200 / wpm)

    decoder = MorseKeyDecoder(max_samples=1024, max_decoded_chars=128)
    events = text_to_events(text, dit_ms)

    print(f"Keying '{text}' at {wpm} WPM (dit={dit_ms}ms, {len(events)} events)")
    for key_down, duration_ms in events:
        if key_down:
            print('▬' if duration_ms > dit_ms * 2 else '▪', end='', flush=True)
        elif duration_ms > dit_ms:
            print(' ', end='', flush=True)

    result = feed_events(decoder, events)
    print(f"\nDecoded: {result!r}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
