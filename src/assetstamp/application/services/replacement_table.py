from __future__ import annotations

import re
from typing import Iterable, Iterator, Mapping

from assetstamp.core.errors import ConfigurationError
from assetstamp.domain.models.resource import ResourceRecord

QUOTES = ("'", '"')


class ReplacementTable:
    """Quoted original references mapped to quoted hashed references.

    Keys include their quote characters, so only references written as a
    complete quoted literal are replaced.
    """

    def __init__(self, pairs: Mapping[str, str] | None = None) -> None:
        self._pairs: dict[str, str] = {}
        self._pattern: re.Pattern[str] | None = None
        for key, value in (pairs or {}).items():
            self._add_pair(key, value)

    @classmethod
    def from_records(cls, records: Iterable[ResourceRecord]) -> ReplacementTable:
        table = cls()
        for record in records:
            if record.source_reference is None:
                continue
            table.add_reference(record.source_reference, record.hashed_reference)
            if record.alternative_reference is not None:
                table.add_reference(record.alternative_reference, record.hashed_reference)
        return table

    def add_reference(self, original: str, replacement: str) -> None:
        for quote in QUOTES:
            self._add_pair(f"{quote}{original}{quote}", f"{quote}{replacement}{quote}")

    def apply(self, text: str) -> str:
        """Replace every occurrence of every key in a single pass over ``text``.

        Where keys overlap the longest one wins, and replaced text is never
        scanned again.
        """
        if not self._pairs:
            return text
        if self._pattern is None:
            keys = sorted(self._pairs, key=len, reverse=True)
            self._pattern = re.compile("|".join(re.escape(key) for key in keys))
        return self._pattern.sub(lambda match: self._pairs[match.group()], text)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs.items())

    def get(self, key: str) -> str | None:
        return self._pairs.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def _add_pair(self, key: str, value: str) -> None:
        existing = self._pairs.get(key)
        if existing is not None and existing != value:
            raise ConfigurationError(
                f"Reference {key} maps to both {existing} and {value}; resource paths must be unique."
            )
        self._pairs[key] = value
        self._pattern = None
