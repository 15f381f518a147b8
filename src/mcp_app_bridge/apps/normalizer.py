# mcp_app_bridge/apps/normalizer.py
"""Payload normalizer: reconcile upstream wrapper shapes into one canonical form.

Tool results reach the app wrapped in a dozen incompatible envelopes
(content blocks, ``message.response_content``, ``body.data``,
``results`` arrays, bare lists, stringified JSON, ...).  The normalizer
runs an ordered table of :class:`NormalizeRule` entries over the value;
the first rule whose predicate matches wins.  Rules marked ``recurse``
feed their extraction back into the cascade.

The result is one of:

* ``{"columns": [...], "rows": [[...], ...]}`` - tabular form
* ``{"rows": [...]}`` - list form
* a bare list taken from a ``results`` / ``items`` / ``records`` member
* the input itself (passthrough) when nothing matched
* ``None`` (see :data:`EMPTY`) when there is no data at all

Normalization is pure and never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from mcp_app_bridge.config.defaults import DEFAULT_NORMALIZE_MAX_DEPTH
from mcp_app_bridge.config.enums import StringPolicy

logger = logging.getLogger(__name__)

EMPTY: Any = None
"""The "no data" result. Callers render an empty state, not an error."""

_COLLECTION_KEYS = ("results", "items", "records")


@dataclass(frozen=True)
class NormalizeRule:
    """One entry of the cascade: *extractor* runs only if *predicate* holds."""

    name: str
    predicate: Callable[[Any], bool]
    extractor: Callable[[Any], Any]
    recurse: bool = False
    description: str = ""


@dataclass(frozen=True)
class NormalizeResult:
    """Normalized value plus the names of the rules that produced it."""

    value: Any
    trace: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.value is EMPTY


def is_empty(value: Any) -> bool:
    """True when *value* is the normalizer's "no data" result."""
    return value is EMPTY


# ────────────────────────────────────────────────────────────────────────────
#  Shape helpers
# ────────────────────────────────────────────────────────────────────────────

_NO_TEXT = object()


def _loads(text: str) -> Any:
    """Decode *text* as JSON, returning ``_NO_TEXT`` when it is not JSON."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return _NO_TEXT


def _first_block_text(value: Any) -> Any:
    """Decoded ``content[0].text`` of a content-block wrapper, or ``_NO_TEXT``."""
    content = value.get("content")
    if not isinstance(content, list) or not content:
        return _NO_TEXT
    first = content[0]
    if not isinstance(first, dict):
        return _NO_TEXT
    text = first.get("text")
    if isinstance(text, str):
        return _loads(text)
    if isinstance(text, (dict, list)):
        return text
    return _NO_TEXT


def _client_wrapper(value: dict[str, Any]) -> Any:
    message = value.get("message")
    if isinstance(message, dict):
        for key in ("template_data", "response_content"):
            if message.get(key):
                return message[key]
    if value.get("response_content"):
        return value["response_content"]
    return None


def _body(value: dict[str, Any]) -> Any:
    structured = value.get("structuredContent")
    body = structured.get("body") if isinstance(structured, dict) else None
    if not isinstance(body, dict):
        body = value.get("body")
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if isinstance(data, (dict, list)):
        return data
    return body


def _collection(value: dict[str, Any]) -> list[Any] | None:
    data = value.get("data")
    if isinstance(data, dict):
        for key in _COLLECTION_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    for key in _COLLECTION_KEYS:
        if isinstance(value.get(key), list):
            return value[key]
    return None


def _row_list(value: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {"rows": value["rows"]}
    if value.get("columns") is not None:
        out["columns"] = value["columns"]
    return out


# ────────────────────────────────────────────────────────────────────────────
#  Rule table (order is priority)
# ────────────────────────────────────────────────────────────────────────────

DEFAULT_RULES: tuple[NormalizeRule, ...] = (
    NormalizeRule(
        name="canonical-table",
        predicate=lambda v: isinstance(v, dict)
        and (
            v.get("columns") is not None
            or (isinstance(v.get("rows"), list) and len(v["rows"]) > 0)
        ),
        extractor=lambda v: v,
        description="already has columns and/or a non-empty rows list",
    ),
    NormalizeRule(
        name="content-blocks",
        predicate=lambda v: isinstance(v, dict)
        and _first_block_text(v) is not _NO_TEXT,
        extractor=_first_block_text,
        recurse=True,
        description="content[0].text, decoded when it is a JSON string",
    ),
    NormalizeRule(
        name="client-wrapper",
        predicate=lambda v: isinstance(v, dict) and _client_wrapper(v) is not None,
        extractor=_client_wrapper,
        recurse=True,
        description="message.template_data / message.response_content / response_content",
    ),
    NormalizeRule(
        name="structured-body",
        predicate=lambda v: isinstance(v, dict) and _body(v) is not None,
        extractor=_body,
        recurse=True,
        description="structuredContent.body or body, preferring its data member",
    ),
    NormalizeRule(
        name="result-collection",
        predicate=lambda v: isinstance(v, dict) and _collection(v) is not None,
        extractor=_collection,
        description="data.results|items|records or results|items|records",
    ),
    NormalizeRule(
        name="nested-table",
        predicate=lambda v: isinstance(v, dict)
        and isinstance(v.get("rows"), dict)
        and "columns" in v["rows"]
        and "rows" in v["rows"],
        extractor=lambda v: v["rows"],
        description="rows holding a {columns, rows} table",
    ),
    NormalizeRule(
        name="row-list",
        predicate=lambda v: isinstance(v, dict) and isinstance(v.get("rows"), list),
        extractor=_row_list,
        description="rows list (possibly empty) with optional columns",
    ),
    NormalizeRule(
        name="bare-array",
        predicate=lambda v: isinstance(v, list),
        extractor=lambda v: {"rows": v},
        description="a list is wrapped as {rows: [...]}",
    ),
)


class Normalizer:
    """Runs a rule table over incoming payloads."""

    def __init__(
        self,
        rules: Sequence[NormalizeRule] = DEFAULT_RULES,
        string_policy: StringPolicy = StringPolicy.PARSE,
        max_depth: int = DEFAULT_NORMALIZE_MAX_DEPTH,
    ) -> None:
        self.rules: tuple[NormalizeRule, ...] = tuple(rules)
        self.string_policy = StringPolicy(string_policy)
        self.max_depth = max_depth

    def with_rules(self, *extra: NormalizeRule) -> Normalizer:
        """Return a normalizer that tries *extra* before the current rules.

        This is how a template layers domain-specific extraction on top
        of the shared cascade.
        """
        return Normalizer(
            rules=(*extra, *self.rules),
            string_policy=self.string_policy,
            max_depth=self.max_depth,
        )

    def normalize(self, raw: Any) -> Any:
        return self.explain(raw).value

    def explain(self, raw: Any) -> NormalizeResult:
        """Normalize *raw* and report which rules fired, outermost first."""
        trace: list[str] = []
        value = raw

        for _ in range(self.max_depth):
            if value is None:
                return NormalizeResult(EMPTY, tuple(trace))

            if isinstance(value, str):
                if self.string_policy is StringPolicy.PASSTHROUGH:
                    return NormalizeResult(value, tuple(trace))
                decoded = _loads(value)
                if decoded is _NO_TEXT:
                    logger.warning("Payload string is not JSON; treating as empty")
                    return NormalizeResult(EMPTY, tuple(trace))
                trace.append("json-string")
                value = decoded
                continue

            rule = self._match(value)
            if rule is None:
                return NormalizeResult(value, tuple(trace))

            try:
                extracted = rule.extractor(value)
            except Exception as e:
                logger.warning("Normalize rule %s failed: %s", rule.name, e)
                return NormalizeResult(value, tuple(trace))

            trace.append(rule.name)
            if not rule.recurse:
                return NormalizeResult(extracted, tuple(trace))
            value = extracted

        logger.warning(
            "Payload nesting exceeds %d levels; returning it unchanged", self.max_depth
        )
        return NormalizeResult(value, tuple(trace))

    def _match(self, value: Any) -> NormalizeRule | None:
        for rule in self.rules:
            try:
                if rule.predicate(value):
                    return rule
            except Exception as e:
                logger.debug("Normalize rule %s predicate raised: %s", rule.name, e)
        return None


_default = Normalizer()


def normalize(raw: Any, *, string_policy: StringPolicy | None = None) -> Any:
    """Normalize *raw* with the shared rule table.

    ``None`` in gives :data:`EMPTY` out.
    """
    if string_policy is None or StringPolicy(string_policy) is _default.string_policy:
        return _default.normalize(raw)
    return Normalizer(string_policy=string_policy).normalize(raw)
