"""
Collapse/expand state over a flat, level-annotated comment list.

The comments of a thread are never turned into a linked tree. A comment's
descendants are the contiguous run of following comments whose level is
greater than its own, so every operation here is a range scan over list
positions.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .models import Comment, CommentVisibility


@dataclass(frozen=True)
class ToggleResult:
    """What a toggle changed: the toggled comment, its new state, and
    the positions (in the full list) whose visibility changed."""
    comment: Comment
    visibility: CommentVisibility
    changed: List[int] = field(default_factory=list)


ChangeListener = Callable[[ToggleResult], None]


class CommentThread:
    """
    Owns the ordered comment list of one post and serialises every
    visibility change behind a lock. Listeners are called after each
    change, from the thread that made it.
    """

    def __init__(self, comments: List[Comment]):
        self._comments = comments
        self._lock = threading.RLock()
        self._listeners: List[ChangeListener] = []

    @property
    def comments(self) -> List[Comment]:
        return self._comments

    def __len__(self) -> int:
        return len(self._comments)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        self._listeners.remove(listener)

    def _notify(self, result: ToggleResult) -> None:
        for listener in list(self._listeners):
            listener(result)

    def index_of(self, comment: Comment, source: Optional[List[Comment]] = None) -> Optional[int]:
        source = self._comments if source is None else source
        for index, candidate in enumerate(source):
            if candidate is comment:
                return index
        for index, candidate in enumerate(source):
            if candidate.id == comment.id:
                return index
        return None

    def _descendant_count(self, index: int) -> int:
        level = self._comments[index].level
        count = 0
        for candidate in self._comments[index + 1:]:
            if candidate.level <= level:
                break
            count += 1
        return count

    def children_count(self, comment: Comment) -> int:
        """Number of descendants (all depths) of the comment."""
        index = self.index_of(comment)
        if index is None:
            return 0
        return self._descendant_count(index)

    @property
    def visible_comments(self) -> List[Comment]:
        """Comments that should be displayed, in thread order."""
        return [c for c in self._comments if c.visibility != CommentVisibility.HIDDEN]

    def toggle(self, comment: Comment) -> ToggleResult:
        """
        Collapses a visible comment to compact (hiding its descendants) or
        expands a compact/hidden one (showing all its descendants).

        Collapsing leaves already-hidden descendants alone. Expanding makes
        the whole run visible, so nested collapsed comments come back
        expanded.
        """
        with self._lock:
            index = self.index_of(comment)
            if index is None:
                raise ValueError(f"Comment {comment.id} is not part of this thread")

            target = self._comments[index]
            was_visible = target.visibility == CommentVisibility.VISIBLE
            target.visibility = CommentVisibility.COMPACT if was_visible else CommentVisibility.VISIBLE
            changed = [index]

            new_state = CommentVisibility.HIDDEN if was_visible else CommentVisibility.VISIBLE
            for position in range(index + 1, index + 1 + self._descendant_count(index)):
                descendant = self._comments[position]
                if descendant.visibility == new_state:
                    continue
                descendant.visibility = new_state
                changed.append(position)

            result = ToggleResult(target, target.visibility, changed)
            logging.debug(f"Comment {target.id} -> {target.visibility.value}, {len(changed)} rows changed")

        self._notify(result)
        return result

    def hide_branch(self, comment: Comment) -> Optional[ToggleResult]:
        """
        Collapses the thread around a comment by toggling its parent: the
        nearest earlier comment with a smaller level. Top-level comments
        have no parent and nothing happens.
        """
        with self._lock:
            index = self.index_of(comment)
            if index is None:
                return None
            level = self._comments[index].level
            for position in range(index - 1, -1, -1):
                if self._comments[position].level < level:
                    return self.toggle(self._comments[position])
        return None

    def root_index_for(self, comment: Comment) -> Optional[int]:
        """Index, in visible_comments, of the top-level ancestor of a comment."""
        visible = self.visible_comments
        index = self.index_of(comment, visible)
        if index is None:
            return None
        for position in range(index, -1, -1):
            if visible[position].level == 0:
                return position
        return None

    def reveal(self, comment_id: int) -> bool:
        """
        Makes a comment and its chain of ancestors visible, e.g. when
        jumping to a comment permalink. Returns False if the id isn't in
        the thread.
        """
        with self._lock:
            index = next((i for i, c in enumerate(self._comments) if c.id == comment_id), None)
            if index is None:
                return False

            target = self._comments[index]
            changed = []
            if target.visibility != CommentVisibility.VISIBLE:
                target.visibility = CommentVisibility.VISIBLE
                changed.append(index)

            remaining_level = target.level
            position = index - 1
            while position >= 0 and remaining_level > 0:
                candidate = self._comments[position]
                if candidate.level == remaining_level - 1:
                    if candidate.visibility != CommentVisibility.VISIBLE:
                        candidate.visibility = CommentVisibility.VISIBLE
                        changed.append(position)
                    remaining_level -= 1
                position -= 1

            result = ToggleResult(target, target.visibility, sorted(changed))

        self._notify(result)
        return True
