#!/usr/bin/env python3
"""
CW Alphabet - 6-bit lookup codes for the straight key decoder

Every character of up to five dits/dahs is packed into a 6-bit code:
  Bit 5:      first element (1 = dah, 0 = dit)
  Bits 4-1:   following elements, in order
  Remaining:  if the last element was a dit, all lower bits are set to 1,
              if it was a dah they stay 0

  E  .      -> 0b011111 (31)
  T  -      -> 0b100000 (32)
  A  .-     -> 0b010000 (16)
  5  .....  -> 0b000001 (1)
  0  -----  -> 0b111110 (62)

The fill rule makes the element count recoverable from the code, so a
64-entry table is enough. Any replacement table must use the same rule.
"""

# Morse code definitions (dit/dah patterns), five elements maximum
MORSE_CODE = {
    'A': '.-',    'B': '-...',  'C': '-.-.',  'D': '-..',   'E': '.',
    'F': '..-.',  'G': '--.',   'H': '....',  'I': '..',    'J': '.---',
    'K': '-.-',   'L': '.-..',  'M': '--',    'N': '-.',    'O': '---',
    'P': '.--.',  'Q': '--.-',  'R': '.-.',   'S': '...',   'T': '-',
    'U': '..-',   'V': '...-',  'W': '.--',   'X': '-..-',  'Y': '-.--',
    'Z': '--..',
    '0': '-----', '1': '.----', '2': '..---', '3': '...--', '4': '....-',
    '5': '.....', '6': '-....', '7': '--...', '8': '---..', '9': '----.',
    '/': '-..-.', '(': '-.--.', '&': '.-...', '=': '-...-', '+': '.-.-.',
}

CODE_BITS = 6
TABLE_SIZE = 1 << CODE_BITS  # 64
FIRST_BIT = CODE_BITS - 1    # 5
LAST_BIT = 1                 # lowest bit an element may occupy
MAX_ELEMENTS = FIRST_BIT - LAST_BIT + 1

UNKNOWN_CHAR = '?'


def fill_code(code, bit):
    """
    Finish a character whose last element sits at `bit`

    Returns: code with the lower bits set when that element was a dit
    """
    if not (code >> bit) & 0x01:
        code |= (1 << bit) - 1
    return code


def pack_pattern(pattern):
    """
    Pack a dit/dah pattern into its 6-bit lookup code

    Args:
        pattern: string of '.' and '-' (1 to 5 elements)

    Returns: int code (0-63)
    """
    if not pattern or len(pattern) > MAX_ELEMENTS:
        raise ValueError(f"Pattern must have 1-{MAX_ELEMENTS} elements: {pattern!r}")

    code = 0
    bit = FIRST_BIT
    for element in pattern:
        if element == '-':
            code |= 1 << bit
        elif element != '.':
            raise ValueError(f"Invalid element {element!r} in pattern {pattern!r}")
        bit -= 1

    return fill_code(code, bit + 1)


def unpack_code(code):
    """
    Recover the dit/dah pattern from a lookup code

    Returns: pattern string, or None if no pattern packs to this code
    """
    code &= TABLE_SIZE - 1

    if code & 0x01:
        # Last element was a dit: count the fill bits
        last_bit = 0
        while (code >> last_bit) & 0x01:
            last_bit += 1
    elif code:
        # Last element was a dah: lowest set bit
        last_bit = 0
        while not (code >> last_bit) & 0x01:
            last_bit += 1
    else:
        return None

    if last_bit > FIRST_BIT:
        return None

    return ''.join('-' if (code >> bit) & 0x01 else '.'
                   for bit in range(FIRST_BIT, last_bit - 1, -1))


def build_lookup_table(morse_code=None, unknown=UNKNOWN_CHAR):
    """
    Build the 64-entry code -> character table

    Args:
        morse_code: dict of character -> pattern (default: MORSE_CODE)
        unknown: character for codes without a mapping

    Returns: list of 64 characters, indexed by lookup code
    """
    if morse_code is None:
        morse_code = MORSE_CODE

    table = [unknown] * TABLE_SIZE
    for char, pattern in morse_code.items():
        code = pack_pattern(pattern)
        if table[code] != unknown:
            raise ValueError(f"Code {code} assigned to both {table[code]!r} and {char!r}")
        table[code] = char

    return table


MORSE_LOOKUP = build_lookup_table()


if __name__ == '__main__':
    print("CW lookup table:")
    for code, char in enumerate(MORSE_LOOKUP):
        pattern = unpack_code(code)
        if char != UNKNOWN_CHAR:
            print(f"  0b{code:06b} ({code:2d})  {pattern:<5s}  {char}")
