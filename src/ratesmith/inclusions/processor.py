"""Cleaning, validation, categorization and scoring of inclusion lines."""

import logging
import re
from typing import Optional, Sequence

from ..classify.markers import strip_list_marker
from ..classify.scoring import clamp, combine, flag_bonus, ratio
from ..config import settings
from .models import DisplayStyle, Emphasis, InclusionItem, InclusionsProcessingResult

logger = logging.getLogger(__name__)

# First match wins
CATEGORY_KEYWORDS = (
    (re.compile(r"breakfast|lunch|dinner|meal|dining|food|buffet|drinks?\b|bar\b", re.I), "Dining"),
    (re.compile(r"wi-?fi|internet|connection", re.I), "Internet"),
    (re.compile(r"pool|swimming|spa\b|gym|fitness|sauna", re.I), "Facilities"),
    (re.compile(r"transfer|transport|pick-?up|shuttle", re.I), "Transport"),
    (re.compile(r"parking|garage", re.I), "Parking"),
    (re.compile(r"cleaning|housekeeping|laundry", re.I), "Housekeeping"),
    (re.compile(r"reception|concierge|service", re.I), "Services"),
    (re.compile(r"air\s*conditioning|heating|climate", re.I), "Climate"),
    (re.compile(r"balcony|terrace|view|garden", re.I), "Amenities"),
    (re.compile(r"towel|linen|bedding", re.I), "Linens"),
)
OTHER_CATEGORY = "Other"

PLACEHOLDER_PATTERNS = (
    re.compile(r"^(?:item|inclusion|feature)\s*\d*$", re.I),
    re.compile(r"^(?:tbd|tba|tbc|pending|coming soon)$", re.I),
    re.compile(r"^(?:n/?a|none|nil)$", re.I),
    re.compile(r"^[x\-.\s_]+$", re.I),
    re.compile(r"^example\b", re.I),
)

INCLUSION_KEYWORDS = (
    "included",
    "free",
    "complimentary",
    "daily",
    "weekly",
    "unlimited",
    "access",
    "service",
    "facility",
    "amenity",
)
VAGUE_TERMS = re.compile(r"\b(?:various|some|certain|available|possible)\b", re.I)

EMPHASIS_MARKERS = re.compile(r"\*+|(?:^_+|_+$)")
# Bullets that cannot double as emphasis; "*" is left for ITALIC_WRAP
LEADING_MARKER = re.compile(r"^\s*(?:[•◦▪▫‣⁃●○■□·\-\+–—>]|\d{1,3}[.)])\s+")
ITALIC_WRAP = re.compile(r"^[*_](?![\s*_]).*[^\s*_][*_]$")
WHITESPACE = re.compile(r"\s+")
WORD = re.compile(r"[^\W\d_]{3,}")

BASE_CONFIDENCE = 0.55
LENGTH_WEIGHT = 0.25
KEYWORD_BOOST = 0.15
VAGUE_PENALTY = -0.2
INVALID_FACTOR = 0.3
SIMILARITY_THRESHOLD = 0.7
SHORT_ITEM_LENGTH = 10
LOW_ITEM_CONFIDENCE = 0.6
MIN_ITEM_COUNT = 3


def clean_text(text: str) -> str:
    """Normalize an inclusion line for display.

    Emphasis markers and one leading bullet or number are removed,
    whitespace is collapsed, one trailing period is dropped and the first
    letter is capitalized. The steps repeat until the text is stable, so
    clean text comes back unchanged.
    """
    cleaned = str(text)
    while True:
        previous = cleaned
        cleaned = _clean_once(cleaned)
        if cleaned == previous:
            return cleaned


def _clean_once(text: str) -> str:
    cleaned = strip_list_marker(text.strip())
    cleaned = EMPHASIS_MARKERS.sub("", cleaned)
    cleaned = WHITESPACE.sub(" ", cleaned).strip()
    if cleaned.endswith(".") and not cleaned.endswith(".."):
        cleaned = cleaned[:-1].rstrip()
    if cleaned:
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


def _tokens(text: str) -> set[str]:
    return {word for word in text.lower().split() if len(word) > 2}


def similarity(a: str, b: str) -> float:
    """Share of meaningful words two lines have in common."""
    words_a, words_b = _tokens(a), _tokens(b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / max(len(words_a), len(words_b))


class InclusionsTextProcessor:
    """Turns raw inclusion lines into scored, categorized items."""

    def __init__(
        self,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        target_words: Optional[int] = None,
    ):
        self.min_length = min_length or settings.inclusion_min_length
        self.max_length = max_length or settings.inclusion_max_length
        self.target_words = target_words or settings.inclusion_target_words

    def process_inclusion_item(self, raw: str) -> InclusionItem:
        """Clean, validate, categorize and score one inclusion line."""
        raw = str(raw)
        cleaned = clean_text(raw)
        issues = self._issues(cleaned)
        is_valid = not issues

        confidence = combine(
            BASE_CONFIDENCE,
            self.length_score(cleaned),
            flag_bonus(any(k in cleaned.lower() for k in INCLUSION_KEYWORDS), KEYWORD_BOOST),
            flag_bonus(bool(VAGUE_TERMS.search(cleaned)), VAGUE_PENALTY),
        )
        if not is_valid:
            confidence = clamp(confidence * INVALID_FACTOR)

        return InclusionItem(
            raw_text=raw,
            cleaned_text=cleaned,
            is_valid=is_valid,
            issues=issues,
            category=self.categorize(cleaned),
            confidence=confidence,
            emphasis=self.detect_emphasis(raw),
        )

    def process_inclusions(self, lines: Sequence[str]) -> InclusionsProcessingResult:
        """Process a batch of lines and rate the list as a whole."""
        items = [self.process_inclusion_item(line) for line in lines]
        valid = [item for item in items if item.is_valid]
        invalid = [item for item in items if not item.is_valid]

        mean_confidence = sum(item.confidence for item in valid) / len(valid) if valid else 0.0
        quality = clamp(mean_confidence * ratio(len(valid), len(items)))

        if invalid:
            logger.debug(f"{len(invalid)} of {len(items)} inclusion lines rejected")

        return InclusionsProcessingResult(
            items=items,
            valid_items=valid,
            invalid_items=invalid,
            categories=self.group_by_category(items),
            overall_quality=quality,
            suggestions=self._suggestions(valid, invalid),
        )

    # Scoring pieces

    def _issues(self, cleaned: str) -> list[str]:
        if len(cleaned) < self.min_length:
            return ["Text too short"]
        if any(pattern.match(cleaned) for pattern in PLACEHOLDER_PATTERNS):
            return ["Appears to be placeholder text"]
        if cleaned.replace(" ", "").isdigit():
            return ["Contains only numbers"]
        if not WORD.search(cleaned):
            return ["No meaningful words detected"]
        if len(cleaned) >= self.max_length:
            return ["Text too long (may be description rather than inclusion)"]
        return []

    def length_score(self, cleaned: str) -> float:
        """Bonus peaking when the word count equals the target."""
        words = len(cleaned.split())
        if not words:
            return 0.0
        distance = abs(words - self.target_words) / self.target_words
        return LENGTH_WEIGHT * max(0.0, 1.0 - distance)

    @staticmethod
    def categorize(cleaned: str) -> str:
        for pattern, category in CATEGORY_KEYWORDS:
            if pattern.search(cleaned):
                return category
        return OTHER_CATEGORY

    @staticmethod
    def detect_emphasis(raw: str) -> Optional[Emphasis]:
        """Emphasis implied by markdown-style markers or all-caps text."""
        core = LEADING_MARKER.sub("", raw.strip(), count=1)
        letters = [c for c in core if c.isalpha()]
        if "**" in core or (len(letters) > 3 and core.upper() == core):
            return Emphasis.BOLD
        if ITALIC_WRAP.match(core):
            return Emphasis.ITALIC
        return None

    def _suggestions(self, valid: list[InclusionItem], invalid: list[InclusionItem]) -> list[str]:
        suggestions = []
        if invalid:
            listed = ", ".join(item.raw_text for item in invalid)
            suggestions.append(f"{len(invalid)} inclusion items need attention: {listed}")
        if any(len(item.cleaned_text) < SHORT_ITEM_LENGTH for item in valid):
            suggestions.append(
                "Some inclusions are very brief. Consider adding more descriptive details."
            )
        others = sum(1 for item in valid if item.category == OTHER_CATEGORY)
        if valid and others > len(valid) * 0.5:
            suggestions.append(
                "Many inclusions don't fit standard categories. Consider using more specific terms."
            )
        if any(item.confidence < LOW_ITEM_CONFIDENCE for item in valid):
            suggestions.append(
                "Some inclusions have unclear descriptions. Consider rewording for clarity."
            )
        if len(valid) < MIN_ITEM_COUNT:
            suggestions.append("Consider adding more inclusions to provide better value perception.")
        if len({item.category for item in valid}) < 3 and len(valid) > 5:
            suggestions.append(
                "Consider diversifying inclusions across different categories "
                "(dining, facilities, services, etc.)."
            )
        return suggestions

    # Presentation

    def format_for_display(
        self, items: Sequence[InclusionItem], style: DisplayStyle = DisplayStyle.BULLET
    ) -> list[str]:
        """Render valid items, reapplying emphasis markers."""
        lines = []
        for index, item in enumerate(i for i in items if i.is_valid):
            text = item.cleaned_text
            if item.emphasis == Emphasis.BOLD:
                text = f"**{text}**"
            elif item.emphasis == Emphasis.ITALIC:
                text = f"*{text}*"

            if style == DisplayStyle.BULLET:
                lines.append(f"• {text}")
            elif style == DisplayStyle.NUMBERED:
                lines.append(f"{index + 1}. {text}")
            else:
                lines.append(text)
        return lines

    def merge_similar_inclusions(self, items: Sequence[InclusionItem]) -> list[InclusionItem]:
        """Collapse near-duplicate valid items.

        Items sharing more than 70% of their meaningful words form a
        cluster; the most confident member (then the longest) represents it.
        Invalid items are dropped.
        """
        valid = [item for item in items if item.is_valid]
        used = [False] * len(valid)
        merged = []
        for i, item in enumerate(valid):
            if used[i]:
                continue
            cluster = [item]
            used[i] = True
            for j in range(i + 1, len(valid)):
                if not used[j] and similarity(item.cleaned_text, valid[j].cleaned_text) > SIMILARITY_THRESHOLD:
                    cluster.append(valid[j])
                    used[j] = True
            merged.append(max(cluster, key=lambda c: (c.confidence, len(c.cleaned_text))))
        return merged

    @staticmethod
    def group_by_category(items: Sequence[InclusionItem]) -> dict[str, list[InclusionItem]]:
        """Valid items keyed by category, in first-seen order."""
        groups: dict[str, list[InclusionItem]] = {}
        for item in items:
            if item.is_valid:
                groups.setdefault(item.category, []).append(item)
        return groups
