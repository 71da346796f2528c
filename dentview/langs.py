"""Lookup of interface translations from key=value text files."""

from __future__ import annotations

import os
from typing import Sequence

DEFAULT_FILES: tuple[str, ...] = (
    "0",
    ":/langs/english.txt",
    ":/langs/xibanya.txt",
)


def _load(path: str | os.PathLike[str]) -> dict[str, str]:
    table: dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as handle:
            for line in handle:
                line = line.replace('"', "")
                if line.endswith("\n"):
                    line = line[:-1]
                parts = line.split("=")
                if len(parts) == 2:
                    table[parts[0]] = parts[1]
    except OSError:
        pass
    return table


class Langs:
    """Translations for one of several languages, loaded on demand and cached."""

    def __init__(self, files: Sequence[str | os.PathLike[str]] = DEFAULT_FILES) -> None:
        self.files = list(files)
        self.index = 0
        self.clear()

    def set_index(self, index: int) -> None:
        """Switch to the language of the file at ``index``, loading it if needed."""
        self.index = index
        name = self.files[index]
        if name not in self.langs:
            self.langs[name] = _load(name)
        self._current = self.langs[name]

    def clear(self) -> None:
        """Drop every loaded language and fall back to the untranslated one."""
        first = self.files[0]
        self.langs: dict[str | os.PathLike[str], dict[str, str]] = {first: {}}
        self._current = self.langs[first]

    def my_tr(self, key: str) -> str:
        """Translate ``key``; an unknown key is returned unchanged."""
        return self._current.get(key, key)