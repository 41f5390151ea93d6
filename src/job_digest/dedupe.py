from __future__ import annotations


def dedupe_key(link: str, title: str) -> str:
    key = link.strip() or title.strip()
    return key.casefold()


class SeenKeys:
    """Case-insensitive set of dedup keys admitted during one run.

    Nothing is persisted; a new instance starts empty, so listings seen by a
    previous run are reported again.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def admit(self, link: str, title: str) -> bool:
        """Record the key for ``link``/``title``; False if it was already seen."""
        key = dedupe_key(link, title)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True
