"""
Card attribute extraction from OCR text.

Turns noisy OCR output (arbitrary line breaks, mixed casing, misreads) into
a best-guess CardAttributes record.

Each attribute is an ordered chain of rules. A rule is a pure function of
the text that returns a value or None; the first non-None value wins.

INVARIANTS:
- No I/O, fully deterministic, never raises
- Attributes are independent: one failing rule chain does not affect others
- Text with nothing recognizable yields CardAttributes() (all None)
"""

import re
from collections.abc import Callable, Mapping, Sequence
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import TypeVar

from cardscan.models.card import CardAttributes, EvolutionStage

DATA_DIR = Path(__file__).parent.parent / "data"

T = TypeVar("T")
Rule = Callable[[Sequence[str]], T | None]

# Lines at or above this length are treated as rules/attack text
RULES_TEXT_MIN_LENGTH = 40
# Lines shorter than this can be a name without a vocabulary match
SHORT_NAME_MAX_LENGTH = 20

# Letters plus the punctuation that appears in Pokemon names
_NAME_LINE = re.compile(r"^[A-Z][A-Z .'\-]*[A-Z.]$")

# "HP 60", "60 HP", "30x", "20+", "120": attack damage and HP markers
_DAMAGE_TOKEN = re.compile(r"\bHP\s*\d+|\d+\s*HP\b|\b\d{2,3}\s*[X×+]?(?:\s|$)")

_EVOLVES_FROM = "EVOLVES FROM"

# "STAGE 1", "STAGE1", "STAGE-1"
_STAGE_PATTERNS: Mapping[EvolutionStage, re.Pattern[str]] = MappingProxyType(
    {
        EvolutionStage.VMAX: re.compile(r"\bVMAX\b"),
        EvolutionStage.VSTAR: re.compile(r"\bVSTAR\b"),
        EvolutionStage.STAGE_2: re.compile(r"\bSTAGE[\s\-]?2\b"),
        EvolutionStage.STAGE_1: re.compile(r"\bSTAGE[\s\-]?1\b"),
        EvolutionStage.V: re.compile(r"\bV\b"),
        EvolutionStage.GX: re.compile(r"\bGX\b"),
        EvolutionStage.EX: re.compile(r"\bEX\b"),
        EvolutionStage.BASIC: re.compile(r"\bBASIC\b"),
    }
)
_BARE_STAGE = re.compile(r"\bSTAGE\b")

# A line that is (only) a stage banner, possibly with trailing noise
_STAGE_LINE = re.compile(r"^(?:BASIC|STAGE[\s\-]?[12]|STAGE|VMAX|VSTAR)\b")

# Printed collector stamp: "58/102", "006 / 102"
_NUMBER_TOTAL = re.compile(r"(?<!\d)(\d{1,3})\s*/\s*(\d{1,3})(?!\d)")

# Black Star promo era codes -> catalog set id
PROMO_SET_IDS: Mapping[str, str] = MappingProxyType(
    {
        "SWSH": "swshp",
        "HGSS": "hsp",
        "SVP": "svp",
        "SM": "smp",
        "XY": "xyp",
        "BW": "bwp",
        "DP": "dpp",
        "NP": "np",
    }
)

# Longest prefix first so "SVP" is tried before a shorter overlapping code
_PROMO = re.compile(
    r"\b("
    + "|".join(sorted(PROMO_SET_IDS, key=len, reverse=True))
    + r")\s?(\d{1,3})\b"
)


# =============================================================================
# VOCABULARY
# =============================================================================


@lru_cache(maxsize=1)
def load_card_names(path: Path | None = None) -> Mapping[str, str]:
    """
    Load the known card name vocabulary.

    Args:
        path: Text file with one name per line. Defaults to data/card_names.txt

    Returns:
        Read-only mapping of UPPERCASE name -> display spelling
    """
    if path is None:
        path = DATA_DIR / "card_names.txt"

    names: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for line in f:
            name = line.strip()
            if name and not name.startswith("#"):
                names[name.upper()] = name
    return MappingProxyType(names)


def title_case(value: str) -> str:
    """Title case that keeps apostrophes intact and capitalizes after hyphens."""
    words = []
    for word in value.lower().split():
        words.append("-".join(part[:1].upper() + part[1:] for part in word.split("-")))
    return " ".join(words)


def normalize_lines(text: str) -> list[str]:
    """Uppercase, collapse inner whitespace and drop empty lines."""
    lines = []
    for raw in text.splitlines():
        line = " ".join(raw.upper().split())
        if line:
            lines.append(line)
    return lines


def first_match(rules: Sequence[Rule[T]], lines: Sequence[str]) -> T | None:
    """Apply rules in order and return the first non-None result."""
    for rule in rules:
        value = rule(lines)
        if value is not None:
            return value
    return None


# =============================================================================
# NAME RULES
# =============================================================================


def _exact_name(lines: Sequence[str]) -> str | None:
    """A line that is exactly a known name."""
    names = load_card_names()
    for line in lines:
        if line in names:
            return names[line]
    return None


def _contained_name(lines: Sequence[str]) -> str | None:
    """
    A known name inside a line ("BASIC PIKACHU HP60").

    The longest name found in a line wins so MEWTWO is not read as MEW.
    Pre-evolution lines and rules text are skipped.
    """
    names = load_card_names()
    for line in lines:
        if _EVOLVES_FROM in line or len(line) >= RULES_TEXT_MIN_LENGTH:
            continue
        found = [upper for upper in names if upper in line]
        if found:
            return names[max(found, key=len)]
    return None


def _is_name_line(line: str) -> bool:
    return bool(_NAME_LINE.match(line)) and _EVOLVES_FROM not in line


def _name_after_stage(lines: Sequence[str]) -> str | None:
    """The first name-like line following a stage banner."""
    for i, line in enumerate(lines[:-1]):
        if not _STAGE_LINE.match(line):
            continue
        for candidate in lines[i + 1 :]:
            if _is_name_line(candidate) and not _STAGE_LINE.match(candidate):
                return title_case(candidate)
            if _EVOLVES_FROM not in candidate:
                break
    return None


def _name_before_rules_text(lines: Sequence[str]) -> str | None:
    """A short alphabetic line followed by attack/HP text or a long line."""
    for line, following in zip(lines, lines[1:]):
        if len(line) >= SHORT_NAME_MAX_LENGTH or not _is_name_line(line):
            continue
        if _STAGE_LINE.match(line):
            continue
        if _DAMAGE_TOKEN.search(following) or len(following) >= RULES_TEXT_MIN_LENGTH:
            return title_case(line)
    return None


NAME_RULES: tuple[Rule[str], ...] = (
    _exact_name,
    _contained_name,
    _name_after_stage,
    _name_before_rules_text,
)


def extract_name(text: str) -> str | None:
    """
    Extract the card name.

    Args:
        text: Raw OCR text

    Returns:
        Title-cased name, or None if no rule matched
    """
    return first_match(NAME_RULES, normalize_lines(text))


# =============================================================================
# EVOLUTION STAGE
# =============================================================================


def extract_evolution_stage(text: str) -> EvolutionStage | None:
    """
    Extract the evolution stage.

    VMAX and VSTAR win outright. A card reciting "Evolves from" is never
    BASIC: STAGE 2 is preferred, then STAGE 1, then a bare "STAGE" token
    (read as STAGE 1).

    Args:
        text: Raw OCR text

    Returns:
        EvolutionStage, or None if no keyword was found
    """
    upper = " ".join(text.upper().split())

    for stage in (EvolutionStage.VMAX, EvolutionStage.VSTAR):
        if _STAGE_PATTERNS[stage].search(upper):
            return stage

    evolves = _EVOLVES_FROM in upper
    for stage in (EvolutionStage.STAGE_2, EvolutionStage.STAGE_1):
        if _STAGE_PATTERNS[stage].search(upper):
            return stage

    if evolves and _BARE_STAGE.search(upper):
        return EvolutionStage.STAGE_1

    for stage in (EvolutionStage.V, EvolutionStage.GX, EvolutionStage.EX):
        if _STAGE_PATTERNS[stage].search(upper):
            return stage

    if not evolves and _STAGE_PATTERNS[EvolutionStage.BASIC].search(upper):
        return EvolutionStage.BASIC

    return None


# =============================================================================
# CARD NUMBER / SET TOTAL
# =============================================================================


def extract_number(text: str) -> tuple[str | None, str | None, str | None]:
    """
    Extract the collector number, printed set total and promo set id.

    "006/102" gives ("6", "102", None). Without a slash stamp, a promo code
    like "SWSH020" gives ("SWSH020", None, "swshp").

    Args:
        text: Raw OCR text

    Returns:
        Tuple of (card_number, total_cards_in_set, set_id), each None if absent
    """
    upper = text.upper()

    match = _NUMBER_TOTAL.search(upper)
    if match:
        number, total = match.groups()
        return str(int(number)), total, None

    promo = _PROMO.search(upper)
    if promo:
        prefix, digits = promo.groups()
        return f"{prefix}{digits}", None, PROMO_SET_IDS[prefix]

    return None, None, None


# =============================================================================
# ENTRY POINT
# =============================================================================


def extract_card_attributes(text: str) -> CardAttributes:
    """
    Derive every card attribute from OCR text.

    Args:
        text: Full OCR text, newline separated

    Returns:
        CardAttributes with None for anything not found
    """
    if not text or not text.strip():
        return CardAttributes()

    card_number, total, set_id = extract_number(text)

    return CardAttributes(
        name=extract_name(text),
        evolution_stage=extract_evolution_stage(text),
        card_number=card_number,
        total_cards_in_set=total,
        set_id=set_id,
    )
