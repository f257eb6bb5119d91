"""Разбор и форматирование размеров вида "4MB", "1.5g" """

import re

from .errors import ConfigurationError

_SIZE_RE = re.compile(r'^\s*(\d+(?:\.\d*)?|\.\d+)\s*([a-zA-Z]*)\s*$')

# Множители двоичные: 1KB == 1024 байта
_UNITS = {
    '': 1,
    'b': 1,
    'k': 1024,
    'kb': 1024,
    'm': 1024 ** 2,
    'mb': 1024 ** 2,
    'g': 1024 ** 3,
    'gb': 1024 ** 3,
    't': 1024 ** 4,
    'tb': 1024 ** 4,
    'p': 1024 ** 5,
    'pb': 1024 ** 5,
}


def parse_space_size(text: str) -> int:
    """Перевод строки с размером в количество байт"""
    if not isinstance(text, str):
        raise ConfigurationError(f"Size must be a string, got {type(text).__name__}")

    match = _SIZE_RE.match(text)
    if match is None:
        raise ConfigurationError(f"Fail to parse {text!r} to bytes")

    number, unit = match.groups()
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ConfigurationError(f"Fail to parse {text!r} to bytes: unknown unit {unit!r}")

    # 0.0001 гасит ошибку округления для дробных значений
    return int(float(number) * multiplier + 0.0001)


def format_space_size(size_bytes: float) -> str:
    """Форматирование размера в человекочитаемый вид"""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(size_bytes) < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} PB"
