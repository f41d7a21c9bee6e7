"""File backed sets of subscribed chat ids."""

import os
from typing import Iterator, List, Set

from . import config
from .errors import StoreCorruptError


class SubscriberStore:
    """A set of chat ids mirrored to a newline delimited text file.

    Every mutation rewrites the whole file so it always matches the
    in-memory set.
    """

    def __init__(self, path: str, name: str = "subscribers") -> None:
        self.path = path
        self.name = name
        self._ids: Set[int] = set()

    def load(self) -> Set[int]:
        """Replace the in-memory set with the ids stored on disk."""
        try:
            with open(self.path, encoding="utf-8") as fh:
                content = fh.read()
        except FileNotFoundError:
            config.logger.info("No %s file found; starting fresh.", self.name)
            self._ids = set()
            return set()
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreCorruptError(f"cannot read {self.path}: {exc}") from exc

        ids: Set[int] = set()
        for line in content.splitlines():
            line = line.strip()
            try:
                ids.add(int(line))
            except ValueError:
                continue
        self._ids = ids
        config.logger.info("Loaded %s %s", len(ids), self.name)
        return set(ids)

    def add(self, chat_id: int) -> bool:
        """Add ``chat_id`` and persist; return ``False`` if already present."""
        if chat_id in self._ids:
            return False
        self._commit(self._ids | {chat_id})
        return True

    def remove(self, chat_id: int) -> bool:
        """Remove ``chat_id`` and persist; return ``False`` if absent."""
        if chat_id not in self._ids:
            return False
        self._commit(self._ids - {chat_id})
        return True

    def ids(self) -> List[int]:
        return sorted(self._ids)

    def _commit(self, ids: Set[int]) -> None:
        # the in-memory set only changes once the file has been replaced
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            fh.write("\n".join(str(chat_id) for chat_id in sorted(ids)))
        os.replace(tmp, self.path)
        self._ids = ids

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids())

    def __len__(self) -> int:
        return len(self._ids)
