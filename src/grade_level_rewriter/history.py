from __future__ import annotations

from typing import List

from .models import RewriteResult


class RewriteHistory:
    """Bounded undo/redo list of rewrites the user accepted."""

    def __init__(self, max_items: int = 20) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1.")
        self._max_items = max_items
        self._entries: List[RewriteResult] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[RewriteResult]:
        return list(self._entries)

    @property
    def current(self) -> RewriteResult | None:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index >= 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def record(self, result: RewriteResult) -> None:
        """Append ``result``, discarding anything that was undone before it."""
        del self._entries[self._index + 1 :]
        self._entries.append(result)
        overflow = len(self._entries) - self._max_items
        if overflow > 0:
            del self._entries[:overflow]
        self._index = len(self._entries) - 1

    def undo(self) -> RewriteResult | None:
        """Step back; callers restore the returned entry's ``original_text``."""
        if not self.can_undo:
            return None
        entry = self._entries[self._index]
        self._index -= 1
        return entry

    def redo(self) -> RewriteResult | None:
        """Step forward; callers re-apply the returned entry's ``rewritten_text``."""
        if not self.can_redo:
            return None
        self._index += 1
        return self._entries[self._index]

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
