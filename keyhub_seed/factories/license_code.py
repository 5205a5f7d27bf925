"""License code generation and format checks.

Codes are 16 random characters from ``A-Z0-9`` followed by one check
character, grouped by four: ``ABCD-EFGH-IJKL-MNOP-Q``.
"""

import random
import string

CHARSET = string.ascii_uppercase + string.digits
PART_LENGTH = 4
BODY_LENGTH = 16
SEPARATOR = "-"


def _char_value(char: str) -> int:
    if char.isdigit():
        return int(char)
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    return 0


def checksum(body: str) -> str:
    """
    Compute the check character of a code body.

    Luhn scheme in base 36: every second character from the right is
    doubled and folded back into the base before summing.

    Args:
        body: Code without check character (separators are ignored)

    Returns:
        Single check character from CHARSET
    """
    base = len(CHARSET)
    total = 0
    double = False

    for char in reversed(body.replace(SEPARATOR, "").replace("_", "")):
        value = _char_value(char)
        if double:
            value *= 2
            if value > base - 1:
                value = value // base + value % base
        total += value
        double = not double

    return CHARSET[(base - total % base) % base]


def format_code(raw: str) -> str:
    return SEPARATOR.join(
        raw[i : i + PART_LENGTH] for i in range(0, len(raw), PART_LENGTH)
    )


def generate_license_code(rng: random.Random | None = None) -> str:
    """
    Generate a random license code with check character.

    Args:
        rng: Random instance (defaults to the module-level generator)

    Returns:
        Formatted code, e.g. "K3Q9-0ZP1-MM2A-7TQE-X"
    """
    rng = rng or random.Random()
    body = "".join(rng.choice(CHARSET) for _ in range(BODY_LENGTH))
    return format_code(body + checksum(body))


def validate_license_code_checksum(code: str) -> bool:
    if not code or not isinstance(code, str):
        return False
    clean = code.replace(SEPARATOR, "")
    if len(clean) < 2:
        return False
    return checksum(clean[:-1]) == clean[-1]


def validate_license_code_format(code: str) -> bool:
    """
    Check grouping, charset and check character of a license code.

    Args:
        code: Code to check

    Returns:
        True if the code is well formed
    """
    if not code or not isinstance(code, str):
        return False

    total = BODY_LENGTH + 1
    parts = code.split(SEPARATOR)
    if len(parts) != -(-total // PART_LENGTH):
        return False

    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        expected = total - index * PART_LENGTH if last else PART_LENGTH
        if len(part) != expected or any(c not in CHARSET for c in part):
            return False

    return validate_license_code_checksum(code)
