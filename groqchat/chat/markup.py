"""Lightweight text-to-HTML markup for chat bubbles.

Precedence: fenced code blocks, then inline code, then bold, then italic,
then line breaks. Code is swapped out for placeholders before emphasis
runs, so ``*`` inside code is left alone.
"""

import html
import re

_FENCE_RE = re.compile(r"```(\w+)?\n([\s\S]*?)```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


def format_message(text: str) -> str:
    protected: list[str] = []

    def _stash(fragment: str) -> str:
        protected.append(fragment)
        return f"\x00{len(protected) - 1}\x00"

    formatted = html.escape(text.replace("\x00", ""), quote=False)
    formatted = _FENCE_RE.sub(lambda m: _stash(f"<pre><code>{m.group(2)}</code></pre>"), formatted)
    formatted = _INLINE_CODE_RE.sub(lambda m: _stash(f"<code>{m.group(1)}</code>"), formatted)
    formatted = _BOLD_RE.sub(r"<strong>\1</strong>", formatted)
    formatted = _ITALIC_RE.sub(r"<em>\1</em>", formatted)
    formatted = formatted.replace("\n", "<br>")
    return _PLACEHOLDER_RE.sub(lambda m: protected[int(m.group(1))], formatted)
