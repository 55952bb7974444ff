"""
Name and phone canonicalization used to compare client identities.
"""
import re

# Emoji, pictographs, dingbats, flags, variation selectors and joiners
_EMOJI_RE = re.compile(
    '['
    '\U0001F000-\U0001FAFF'
    '\U00002600-\U000027BF'
    '\U00002B00-\U00002BFF'
    '\U0001F1E6-\U0001F1FF'
    '\U0000FE00-\U0000FE0F'
    '\U0000200D'
    '\U000020E3'
    '\U000E0020-\U000E007F'
    ']+'
)
_WHITESPACE_RE = re.compile(r'\s+')
_NON_DIGIT_RE = re.compile(r'\D')

# Only words longer than this count towards word-set similarity
SIMILAR_WORD_MIN_LENGTH = 3


def normalize_name(raw):
    """Strip emoji, trim, lowercase and collapse whitespace runs."""
    if not raw:
        return ''
    cleaned = _EMOJI_RE.sub('', raw)
    return _WHITESPACE_RE.sub(' ', cleaned).strip().lower()


def _significant_words(normalized):
    return {word for word in normalized.split(' ') if len(word) > SIMILAR_WORD_MIN_LENGTH}


def names_are_similar(a, b):
    """
    True if one normalized name contains the other, or both share a word
    longer than three characters. Meant to catch abbreviated entries such as
    "Иванов И." vs "Иванов Иван"; false positives are handled by the
    ignore list, not here.
    """
    left = normalize_name(a)
    right = normalize_name(b)
    if not left or not right:
        return False
    if left in right or right in left:
        return True
    return bool(_significant_words(left) & _significant_words(right))


def normalize_phone_digits(raw):
    """Digits only. Length is checked by callers."""
    if not raw:
        return ''
    return _NON_DIGIT_RE.sub('', raw)


def phone_to_storage(raw):
    """Digits of a Russian number starting with 7 (a leading 8 becomes 7)."""
    digits = normalize_phone_digits(raw)
    if not digits:
        return ''
    if digits.startswith('8'):
        return '7' + digits[1:]
    if digits.startswith('7'):
        return digits
    return '7' + digits


def format_phone(raw):
    """Format as +7 (XXX) XXX-XX-XX, tolerating partial input."""
    digits = normalize_phone_digits(raw)
    if digits.startswith('8'):
        digits = '7' + digits[1:]
    if digits.startswith('7'):
        digits = digits[1:]
    digits = digits[:10]

    if not digits:
        return '+7 ('
    if len(digits) <= 3:
        return f'+7 ({digits}'
    if len(digits) <= 6:
        return f'+7 ({digits[:3]}) {digits[3:]}'
    if len(digits) <= 8:
        return f'+7 ({digits[:3]}) {digits[3:6]}-{digits[6:]}'
    return f'+7 ({digits[:3]}) {digits[3:6]}-{digits[6:8]}-{digits[8:10]}'


def birth_date_to_iso(value):
    """DD.MM.YYYY -> YYYY-MM-DD; anything else -> ''."""
    if not value or len(value) < 10:
        return ''
    parts = value.split('.')
    if len(parts) != 3:
        return ''
    day, month, year = parts
    return f'{year}-{month}-{day}'


def iso_to_display(value):
    """YYYY-MM-DD -> DD.MM.YYYY; other strings are returned unchanged."""
    if not value or '-' not in value:
        return value or ''
    parts = value.split('-')
    if len(parts) != 3:
        return value
    year, month, day = parts
    return f'{day}.{month}.{year}'
