"""Recognised preference options and their defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ..errors import SettingsError
from .constants import LANGUAGE_CHOICES


@dataclass(frozen=True)
class SettingOption:
    name: str
    choices: Tuple[str, ...]
    default: str

    def validate(self, value: object) -> str:
        if not isinstance(value, str) or value not in self.choices:
            raise SettingsError(f"{self.name} must be one of {', '.join(self.choices)} (got {value!r})")
        return value


SETTING_OPTIONS: Dict[str, SettingOption] = {
    opt.name: opt
    for opt in (
        SettingOption("theme", ("light", "dark", "system"), "light"),
        SettingOption("language", LANGUAGE_CHOICES, "en"),
        SettingOption("region", ("IN", "US", "GB", "EU"), "IN"),
    )
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "IN": "₹",
    "GB": "£",
    "EU": "€",
}


def get_option(name: str) -> SettingOption:
    try:
        return SETTING_OPTIONS[name]
    except KeyError:
        raise SettingsError(f"Unknown setting {name!r}; expected one of {', '.join(SETTING_OPTIONS)}") from None


def currency_symbol(region: str) -> str:
    return CURRENCY_SYMBOLS.get(region, "$")
