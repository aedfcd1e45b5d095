"""Locale-aware numeric formatting for popup text."""

from __future__ import annotations

from babel import Locale, UnknownLocaleError
from babel.numbers import format_decimal


def _fixed_pattern(decimal_places: int) -> str:
    if decimal_places < 0:
        raise ValueError("decimal_places must be >= 0")
    if decimal_places == 0:
        return "#,##0"
    return "#,##0." + "0" * decimal_places


def _parse_locale(locale: str) -> Locale:
    try:
        return Locale.parse(locale.replace("-", "_"))
    except (UnknownLocaleError, ValueError) as exc:
        raise ValueError(f"Unknown locale '{locale}'") from exc


class NumberFormatter:
    """Format numbers with a fixed count of fraction digits.

    Minimum and maximum fraction digits are the same, so trailing zeros are
    kept and extra precision is rounded away.
    """

    def __init__(self, locale: str = "es", decimal_places: int = 2) -> None:
        self.locale = _parse_locale(locale)
        self.decimal_places = decimal_places
        self._pattern = _fixed_pattern(decimal_places)

    def format(
        self,
        value: float,
        locale: str | None = None,
        decimal_places: int | None = None,
    ) -> str:
        chosen_locale = self.locale if locale is None else _parse_locale(locale)
        pattern = self._pattern if decimal_places is None else _fixed_pattern(decimal_places)
        return format_decimal(value, format=pattern, locale=chosen_locale)


def format_number(value: float, locale: str = "es", decimal_places: int = 2) -> str:
    return NumberFormatter(locale, decimal_places).format(value)
