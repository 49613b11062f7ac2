"""Tag registry: stable dense integer ids for tag names."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagguard.core.errors import TagGuardError, UnknownTag

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class TagRegistry:
    """Arena-style mapping between tag names and dense integer ids.

    Ids are allocated in registration order starting at 0 and never change.
    Once :meth:`freeze` is called no new names may be interned; the registry
    is then safe to share between threads.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._ids: dict[str, int] = {}
        self._names: list[str] = []
        self._frozen = False
        for name in names:
            self.intern(name)

    def intern(self, name: str) -> int:
        """Return the id for *name*, allocating a new one on first sight."""
        existing = self._ids.get(name)
        if existing is not None:
            return existing
        if self._frozen:
            msg = f"Cannot register tag '{name}': registry is frozen"
            raise TagGuardError(msg)
        if not isinstance(name, str) or not name:
            msg = "Tag names must be non-empty strings"
            raise ValueError(msg)
        tag_id = len(self._names)
        self._ids[name] = tag_id
        self._names.append(name)
        return tag_id

    def id_of(self, name: str) -> int:
        """Look up an existing name without allocating."""
        try:
            return self._ids[name]
        except KeyError:
            raise UnknownTag([name]) from None

    def name_of(self, tag_id: int) -> str:
        if 0 <= tag_id < len(self._names):
            return self._names[tag_id]
        raise UnknownTag([f"#{tag_id}"])

    def mask_of(self, names: Iterable[str]) -> int:
        """Return the bitset of *names*, reporting every unknown name at once."""
        if isinstance(names, str):
            msg = f"expected an iterable of tag names, not the string {names!r}"
            raise TypeError(msg)
        mask = 0
        unknown: list[str] = []
        for name in names:
            tag_id = self._ids.get(name)
            if tag_id is None:
                if name not in unknown:
                    unknown.append(name)
                continue
            mask |= 1 << tag_id
        if unknown:
            raise UnknownTag(unknown)
        return mask

    def names_in(self, mask: int) -> tuple[str, ...]:
        """Expand a bitset back into names, in registration order."""
        return tuple(self._names[i] for i in iter_bits(mask))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"TagRegistry({len(self._names)} tags, frozen={self._frozen})"


def iter_bits(mask: int) -> Iterator[int]:
    """Yield the indices of the set bits of *mask* in ascending order."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low
