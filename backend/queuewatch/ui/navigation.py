"""Modal navigation as an explicit stack of rendered frames.

`NavigationStack` is an immutable value: every transition returns a new stack,
so the rules can be checked without any rendered surface. `ModalNavigator`
owns one stack and mirrors it onto a `ModalView`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from queuewatch.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Frame:
    """One modal page: a title and already-rendered content."""

    title: str
    content: str


@dataclass(frozen=True)
class NavigationStack:
    """Last-in-first-out frames; empty means the modal is closed."""

    frames: tuple[Frame, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.frames)

    @property
    def is_open(self) -> bool:
        return bool(self.frames)

    @property
    def top(self) -> Frame | None:
        return self.frames[-1] if self.frames else None

    @property
    def back_visible(self) -> bool:
        return self.depth > 1

    def open(self, title: str, content: str) -> NavigationStack:
        """Start over with a single frame."""
        return NavigationStack((Frame(title, content),))

    def push(self, title: str, content: str) -> NavigationStack:
        return NavigationStack((*self.frames, Frame(title, content)))

    def back(self) -> NavigationStack:
        """Pop one frame; popping the last frame closes the modal."""
        if self.depth > 1:
            return NavigationStack(self.frames[:-1])
        return self.close()

    def close(self) -> NavigationStack:
        return NavigationStack()


class ModalView(Protocol):
    """Display surface the navigator drives."""

    def show(self, frame: Frame, *, back_visible: bool) -> None: ...

    def hide(self) -> None: ...


class ModalNavigator:
    """Applies stack transitions and keeps the view in sync with the top frame."""

    def __init__(self, view: ModalView, stack: NavigationStack | None = None) -> None:
        self.view = view
        self.stack = stack or NavigationStack()

    def _apply(self, stack: NavigationStack) -> NavigationStack:
        self.stack = stack
        if stack.top is None:
            self.view.hide()
        else:
            self.view.show(stack.top, back_visible=stack.back_visible)
        logger.debug("navigation.stack.changed", extra={"depth": stack.depth})
        return stack

    def open(self, title: str, content: str) -> NavigationStack:
        return self._apply(self.stack.open(title, content))

    def push(self, title: str, content: str) -> NavigationStack:
        return self._apply(self.stack.push(title, content))

    def back(self) -> NavigationStack:
        return self._apply(self.stack.back())

    def close(self) -> NavigationStack:
        return self._apply(self.stack.close())
