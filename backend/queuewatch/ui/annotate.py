"""Display-time annotation of free text: PR references and file paths.

`annotate` never touches the value it is given; it returns new HTML. Plain text
is always escaped, and markup is only ever built from escaped pieces, so field
content cannot smuggle tags into the page.

References are found first. Whatever they do not consume is then scanned for
absolute paths, and only the text between absolute paths is scanned for
relative markdown paths. URLs therefore never get their path segments
re-annotated, and a path is never annotated twice.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from functools import cached_property

from queuewatch.core.config import settings
from queuewatch.ui.refs import EntityRef

ABSOLUTE_PATH_EXTENSIONS = frozenset(
    {
        "md",
        "txt",
        "js",
        "json",
        "sh",
        "py",
        "yml",
        "yaml",
        "toml",
        "csv",
        "log",
        "conf",
        "ini",
        "xml",
        "html",
        "css",
        "ts",
        "tsx",
        "jsx",
    },
)
RELATIVE_PATH_EXTENSIONS = frozenset({"md"})
ROOT_PREFIXES = ("Users/", "home/", "tmp/", "var/", "opt/", "etc/", "usr/", "private/")

_TRAILING_URL_PUNCTUATION = ".,;:!?)]}'\""
_PATH_CHARS = r"[\w.@+~-]"
_PATH_START_GUARD = r"(?<![\w.~/-])"
_PATH_END_GUARD = r"(?=$|[\s,;:!?)\]}'\"<>]|\.(?:\s|$))"

_REFERENCE_RE = re.compile(
    r"(?P<labeled>\bPR(?: created)?:\s*(?P<labeled_url>https?://[^\s<>\"']+))"
    r"|(?P<url>https?://github\.com/[\w.-]+/[\w.-]+/pull/\d+)"
    r"|(?P<numbered>\bPR\s?#(?P<number>\d+))\b",
)


def _extension_pattern(extensions: frozenset[str]) -> str:
    # Longest first so `json` is tried before `js`.
    return "|".join(re.escape(ext) for ext in sorted(extensions, key=lambda e: (-len(e), e)))


@dataclass(frozen=True)
class AnnotationPolicy:
    """Tunable precedence and vocabulary for the annotator."""

    pr_base_url: str = field(default_factory=lambda: settings.pr_base_url)
    absolute_extensions: frozenset[str] = ABSOLUTE_PATH_EXTENSIONS
    relative_extensions: frozenset[str] = RELATIVE_PATH_EXTENSIONS
    excluded_relative_prefixes: tuple[str, ...] = ROOT_PREFIXES

    @cached_property
    def absolute_path_re(self) -> re.Pattern[str]:
        return re.compile(
            rf"{_PATH_START_GUARD}/(?:{_PATH_CHARS}+/)*{_PATH_CHARS}+"
            rf"\.(?:{_extension_pattern(self.absolute_extensions)}){_PATH_END_GUARD}",
        )

    @cached_property
    def relative_path_re(self) -> re.Pattern[str]:
        return re.compile(
            rf"{_PATH_START_GUARD}(?:{_PATH_CHARS}+/)*[\w@+~-]{_PATH_CHARS}*"
            rf"\.(?:{_extension_pattern(self.relative_extensions)}){_PATH_END_GUARD}",
        )


DEFAULT_POLICY = AnnotationPolicy()


def _pr_link(href: str, label: str) -> str:
    return (
        f'<a class="pr-link" href="{html.escape(href, quote=True)}" '
        f'target="_blank" rel="noopener noreferrer">{html.escape(label)}</a>'
    )


def _file_marker(path: str) -> str:
    ref = EntityRef("file", path)
    return (
        f'<span class="file-link" {ref.attributes()} '
        f'data-path="{html.escape(path, quote=True)}">{html.escape(path)}</span>'
    )


def _annotate_relative(text: str, policy: AnnotationPolicy) -> str:
    out: list[str] = []
    cursor = 0
    for match in policy.relative_path_re.finditer(text):
        candidate = match.group(0)
        if candidate.startswith(policy.excluded_relative_prefixes):
            continue
        out.append(html.escape(text[cursor : match.start()]))
        out.append(_file_marker(candidate))
        cursor = match.end()
    out.append(html.escape(text[cursor:]))
    return "".join(out)


def _annotate_paths(text: str, policy: AnnotationPolicy) -> str:
    out: list[str] = []
    cursor = 0
    for match in policy.absolute_path_re.finditer(text):
        out.append(_annotate_relative(text[cursor : match.start()], policy))
        out.append(_file_marker(match.group(0)))
        cursor = match.end()
    out.append(_annotate_relative(text[cursor:], policy))
    return "".join(out)


def _reference_href(match: re.Match[str], policy: AnnotationPolicy) -> tuple[str, int]:
    """Link target and end offset for one reference match."""
    if match.group("labeled"):
        url = match.group("labeled_url").rstrip(_TRAILING_URL_PUNCTUATION)
        return url, match.start("labeled_url") + len(url)
    if match.group("url"):
        return match.group("url"), match.end("url")
    return f"{policy.pr_base_url}/{match.group('number')}", match.end("numbered")


def annotate(text: str | None, policy: AnnotationPolicy = DEFAULT_POLICY) -> str:
    """Escape `text` and turn PR references and file paths into clickable markup."""
    if not text:
        return ""
    out: list[str] = []
    cursor = 0
    while (match := _REFERENCE_RE.search(text, cursor)) is not None:
        href, end = _reference_href(match, policy)
        out.append(_annotate_paths(text[cursor : match.start()], policy))
        out.append(_pr_link(href, text[match.start() : end]))
        cursor = end
    out.append(_annotate_paths(text[cursor:], policy))
    return "".join(out)
