import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import structlog

from domain.strategies import StrategyDraft

logger = structlog.get_logger()

MAX_STRATEGIES = 3
MIN_STRATEGIES = 2

DEFAULT_METRICS: Dict[str, Any] = {
    "projectedGrowth": {"value": "+0%", "percentage": 50, "type": "balanced"},
    "complexity": {"value": "medium", "percentage": 50},
}

# Field aliases accepted in structured (JSON) output
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "strategyName", "strategy_name", "title", "策略名称", "名称"),
    "description": ("description", "desc", "summary", "策略描述", "描述"),
    "advantages": ("advantages", "pros", "优势"),
    "disadvantages": ("disadvantages", "cons", "risks", "劣势"),
    "steps": ("steps", "executionSteps", "execution_steps", "实施步骤", "步骤"),
    "notes": ("notes", "warnings", "注意事项"),
    "activity_ids": ("activityIds", "activity_ids", "activities"),
    "is_recommended": ("isRecommended", "is_recommended", "recommended", "推荐"),
    "score": ("score", "评分"),
    "metrics": ("metrics", "指标"),
}

# Section labels accepted in delimited free text
SECTION_LABELS: Dict[str, Tuple[str, ...]] = {
    "name": ("策略名称", "名称", "strategy name", "name"),
    "description": ("详细描述", "策略描述", "描述", "description"),
    "advantages": ("优势", "优点", "advantages", "pros"),
    "disadvantages": ("劣势或风险", "劣势", "缺点", "风险", "disadvantages", "cons", "risks"),
    "steps": ("实施步骤", "执行步骤", "步骤", "implementation steps", "steps"),
    "notes": ("注意事项", "notes"),
    "is_recommended": ("是否推荐", "是否为推荐策略", "推荐", "recommended"),
    "score": ("综合评分", "评分", "score"),
}

LIST_SECTIONS = ("advantages", "disadvantages", "steps", "notes")

THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
HEADING_RE = re.compile(
    r"^\s*(?:#{1,6}\s*)?(?:\*\*)?\s*(?:策略\s*[0-9一二三四五六]+|strategy\s*\d+)\s*(?:\*\*)?"
    r"\s*[:：.、\-]?\s*(?:\*\*)?\s*(?P<title>.*?)\s*(?:\*\*)?\s*$",
    re.IGNORECASE,
)
BULLET_RE = re.compile(r"^\s*(?:[-*•·]|\d+[.、)）])\s*")
NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
TRUE_WORDS = {"true", "yes", "y", "1", "是", "推荐", "是的", "✓", "√"}


def _label_pattern() -> re.Pattern:
    alternatives = []
    for section, labels in SECTION_LABELS.items():
        for label in labels:
            alternatives.append((label, section))
    alternatives.sort(key=lambda item: len(item[0]), reverse=True)
    joined = "|".join(re.escape(label) for label, _ in alternatives)
    return re.compile(
        r"^\s*(?:#{1,6}\s*)?(?:[-*•·]\s*)?(?:\d+[.、)）]\s*)?(?:\*\*)?\s*(?P<label>" + joined + r")\s*(?:\*\*)?"
        r"\s*(?:(?P<colon>[:：])\s*(?:\*\*)?\s*(?P<rest>.*?)\s*)?$",
        re.IGNORECASE,
    )


LABEL_RE = _label_pattern()
LABEL_TO_SECTION = {
    label.lower(): section
    for section, labels in SECTION_LABELS.items()
    for label in labels
}


@dataclass(frozen=True)
class ParseOk:
    strategies: List[StrategyDraft]


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw_text: str = field(repr=False, default="")


ParseResult = Union[ParseOk, ParseFailure]


class ResponseParser:
    """
    Turns free-form model output into 2-3 StrategyDraft records.

    JSON is tried first; delimited text sections are the fallback.
    """

    def parse(
        self,
        raw_text: str,
        known_activity_ids: Optional[Iterable[int]] = None
    ) -> ParseResult:
        if not raw_text or not raw_text.strip():
            return ParseFailure("empty response", raw_text or "")

        known_ids = set(known_activity_ids) if known_activity_ids is not None else None
        text = THINK_RE.sub("", raw_text).strip()

        entries = self._extract_json_entries(text)
        source = "json"
        drafts = [d for d in (self._draft_from_mapping(e, known_ids) for e in entries) if d]

        if not drafts:
            source = "sections"
            drafts = [
                d for d in (self._draft_from_sections(b, known_ids) for b in self._split_blocks(text))
                if d
            ]

        if not drafts:
            return ParseFailure("no strategy name and description found", raw_text)

        if len(drafts) > MAX_STRATEGIES:
            logger.warning("Model returned too many strategies, truncating", count=len(drafts))
            drafts = drafts[:MAX_STRATEGIES]
        elif len(drafts) < MIN_STRATEGIES:
            logger.warning("Model returned fewer strategies than requested", count=len(drafts))

        drafts = self._settle_recommended(drafts)
        logger.info("Model response parsed", source=source, count=len(drafts))
        return ParseOk(drafts)

    # Structured extraction

    def _extract_json_entries(self, text: str) -> List[Dict[str, Any]]:
        candidates = [m.group(1) for m in FENCE_RE.finditer(text)] + [text]
        for candidate in candidates:
            entries = []
            for value in self._json_values(candidate):
                entries.extend(self._entries_from_json(value))
            if entries:
                return entries
        return []

    @staticmethod
    def _json_values(text: str) -> Iterable[Any]:
        """Yield each top-level JSON object or array embedded in text."""
        decoder = json.JSONDecoder()
        index = 0
        while index < len(text):
            if text[index] not in "{[":
                index += 1
                continue
            try:
                value, end = decoder.raw_decode(text, index)
            except ValueError:
                index += 1
                continue
            yield value
            index = end

    @staticmethod
    def _entries_from_json(data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, dict):
            for key in ("strategies", "strategy", "策略"):
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
            else:
                data = [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        return []

    @staticmethod
    def _lookup(entry: Dict[str, Any], field_name: str) -> Any:
        for alias in FIELD_ALIASES[field_name]:
            if alias in entry and entry[alias] is not None:
                return entry[alias]
        return None

    def _draft_from_mapping(
        self,
        entry: Dict[str, Any],
        known_ids: Optional[set]
    ) -> Optional[StrategyDraft]:
        name = self._clean_text(self._lookup(entry, "name"))
        description = self._clean_text(self._lookup(entry, "description"))
        if not name or not description:
            logger.debug("Dropping strategy entry without name/description", keys=sorted(entry))
            return None

        metrics = self._lookup(entry, "metrics")
        metrics = metrics if isinstance(metrics, dict) and metrics else DEFAULT_METRICS

        return StrategyDraft(
            name=name,
            description=description,
            advantages=self._as_list(self._lookup(entry, "advantages")),
            disadvantages=self._as_list(self._lookup(entry, "disadvantages")),
            steps=self._as_list(self._lookup(entry, "steps")),
            notes=self._as_list(self._lookup(entry, "notes")),
            activity_ids=self._activity_ids(self._lookup(entry, "activity_ids"), known_ids),
            metrics=json.loads(json.dumps(metrics)),
            is_recommended=self._as_bool(self._lookup(entry, "is_recommended")),
            score=self._score(self._lookup(entry, "score"), metrics),
        )

    # Delimited-section extraction

    @staticmethod
    def _split_blocks(text: str) -> List[Tuple[str, List[str]]]:
        blocks: List[Tuple[str, List[str]]] = []
        title, lines, seen_heading = "", [], False
        for line in text.splitlines():
            match = HEADING_RE.match(line)
            if match:
                if seen_heading:
                    blocks.append((title, lines))
                title, lines, seen_heading = match.group("title"), [], True
            else:
                lines.append(line)
        if seen_heading:
            blocks.append((title, lines))
        else:
            blocks.append(("", lines))
        return blocks

    def _draft_from_sections(
        self,
        block: Tuple[str, List[str]],
        known_ids: Optional[set]
    ) -> Optional[StrategyDraft]:
        title, lines = block
        sections: Dict[str, List[str]] = {}
        current = None

        for line in lines:
            if not line.strip():
                continue
            match = LABEL_RE.match(line)
            if match:
                current = LABEL_TO_SECTION[match.group("label").lower()]
                sections.setdefault(current, [])
                rest = match.group("rest")
                if rest:
                    sections[current].append(rest)
                continue
            if current is not None:
                sections[current].append(line.strip())

        name = self._clean_text(" ".join(sections.get("name", [])) or title)
        description = self._clean_text("\n".join(sections.get("description", [])))
        if not name or not description:
            return None

        recommended_text = " ".join(sections.get("is_recommended", []))
        score_text = " ".join(sections.get("score", []))

        list_values = {
            key: self._as_list(sections.get(key, []))
            for key in LIST_SECTIONS
        }
        return StrategyDraft(
            name=name,
            description=description,
            advantages=list_values["advantages"],
            disadvantages=list_values["disadvantages"],
            steps=list_values["steps"],
            notes=list_values["notes"],
            activity_ids=(),
            metrics=json.loads(json.dumps(DEFAULT_METRICS)),
            is_recommended=self._as_bool(recommended_text),
            score=self._score(score_text or None, DEFAULT_METRICS),
        )

    # Coercion helpers

    @staticmethod
    def _clean_text(value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            return ""
        return str(value).strip().strip("*").strip()

    @staticmethod
    def _as_list(value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.splitlines()
        if not isinstance(value, (list, tuple)):
            value = [value]
        items = []
        for item in value:
            if item is None or isinstance(item, (dict, list)):
                continue
            text = BULLET_RE.sub("", str(item)).strip()
            if text:
                items.append(text)
        return tuple(items)

    @staticmethod
    def _as_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            text = value.strip().strip("*").strip().lower()
            if text.startswith(("否", "不", "no", "false")):
                return False
            return text in TRUE_WORDS or text.startswith(("是", "推荐", "yes", "true"))
        return False

    @staticmethod
    def _score(value: Any, metrics: Dict[str, Any]) -> float:
        number = None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            number = float(value)
        elif isinstance(value, str):
            match = NUMBER_RE.search(value)
            if match:
                number = float(match.group())

        if number is None:
            growth = metrics.get("projectedGrowth") if isinstance(metrics, dict) else None
            percentage = growth.get("percentage") if isinstance(growth, dict) else None
            if isinstance(percentage, (int, float)) and not isinstance(percentage, bool):
                number = float(percentage)

        if number is None:
            return 0.0
        return max(0.0, min(100.0, number))

    @staticmethod
    def _activity_ids(value: Any, known_ids: Optional[set]) -> Tuple[int, ...]:
        if not isinstance(value, (list, tuple)):
            return ()
        ids = []
        for item in value:
            try:
                activity_id = int(item)
            except (TypeError, ValueError):
                continue
            if known_ids is not None and activity_id not in known_ids:
                continue
            if activity_id not in ids:
                ids.append(activity_id)
        return tuple(ids)

    @staticmethod
    def _settle_recommended(drafts: List[StrategyDraft]) -> List[StrategyDraft]:
        """Exactly one draft ends up recommended; the first wins on ambiguity."""
        flagged = [i for i, d in enumerate(drafts) if d.is_recommended]
        if len(flagged) == 1:
            return drafts

        logger.warning(
            "Ambiguous recommended flag, selecting first strategy",
            recommended_count=len(flagged),
            strategy_count=len(drafts),
        )
        settled = []
        for index, draft in enumerate(drafts):
            wanted = index == 0
            if draft.is_recommended != wanted:
                draft = replace(draft, is_recommended=wanted)
            settled.append(draft)
        return settled
