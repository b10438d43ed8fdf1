"""Extraction of JSON payloads from free-text model output.

Model responses may wrap the payload in markdown fences, surround it with
prose, or not contain it at all. ``repair_json_payload`` tries, in order:

1. every fenced code block (```json ... ``` or ``` ... ```),
2. the first ``{...}`` or ``[...]`` span, greedy to the last closing
   brace/bracket of the same kind,
3. the whole trimmed text.

Only objects and arrays count as a payload. When nothing parses the caller
gets ``EMPTY`` and decides on its own fallback.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)
_SPAN_DELIMITERS = (("{", "}"), ("[", "]"))


@dataclass(frozen=True)
class RepairResult:
    value: Any = None
    ok: bool = False

    @classmethod
    def of(cls, value: Any) -> "RepairResult":
        return cls(value=value, ok=True)

    def or_else(self, default: Any) -> Any:
        return self.value if self.ok else default


EMPTY = RepairResult()


def repair_json_payload(raw: str | None) -> RepairResult:
    if not isinstance(raw, str):
        return EMPTY
    text = raw.strip()
    if not text:
        return EMPTY

    for block in _FENCED_BLOCK.findall(text):
        parsed = _try_parse(block)
        if parsed.ok:
            return parsed

    for span in _candidate_spans(text):
        parsed = _try_parse(span)
        if parsed.ok:
            return parsed

    return _try_parse(text)


def _candidate_spans(text: str) -> list[str]:
    spans: list[tuple[int, str]] = []
    for opener, closer in _SPAN_DELIMITERS:
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            spans.append((start, text[start : end + 1]))
    spans.sort(key=lambda item: item[0])
    return [span for _, span in spans]


def _try_parse(candidate: str) -> RepairResult:
    try:
        value = json.loads(candidate.strip())
    except (TypeError, ValueError):
        return EMPTY
    if isinstance(value, (dict, list)):
        return RepairResult.of(value)
    return EMPTY
