"""Entity references embedded in rendered HTML as clickable markers."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Literal

EntityKind = Literal["queue", "task", "root-work-item", "agent", "announcement", "file"]
ENTITY_KINDS: tuple[EntityKind, ...] = (
    "queue",
    "task",
    "root-work-item",
    "agent",
    "announcement",
    "file",
)

_REF_ATTRS_RE = re.compile(r'data-kind="(?P<kind>[a-z-]+)" data-key="(?P<key>[^"]*)"')


@dataclass(frozen=True)
class EntityRef:
    """What a click on a marker drills into."""

    kind: EntityKind
    key: str

    def __post_init__(self) -> None:
        if self.kind not in ENTITY_KINDS:
            msg = f"Unknown entity kind: {self.kind}"
            raise ValueError(msg)

    def attributes(self) -> str:
        """The data attributes identifying this ref inside an HTML tag."""
        return f'data-kind="{self.kind}" data-key="{html.escape(self.key, quote=True)}"'


def entity_link(ref: EntityRef, label: str, *, css_class: str = "entity-link") -> str:
    """An inert anchor carrying `ref`; `label` is escaped here."""
    return f'<a href="#" class="{css_class}" {ref.attributes()}>{html.escape(label)}</a>'


def extract_refs(fragment: str) -> list[EntityRef]:
    """Recover every entity ref from rendered HTML, in document order."""
    refs: list[EntityRef] = []
    for match in _REF_ATTRS_RE.finditer(fragment):
        kind = match.group("kind")
        if kind not in ENTITY_KINDS:
            continue
        refs.append(EntityRef(kind, html.unescape(match.group("key"))))  # type: ignore[arg-type]
    return refs
