"""
Label-anchored extraction of trading fields from the exchange page.

Each field is described by a FieldRule in FIELD_RULES: the Russian label of
the table cell to look for, the default used when nothing is found, and a
transform applied to the raw text of the adjacent cell. The traversal in
find_labelled_value knows nothing about specific labels.
"""

import codecs
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import structlog
from lxml import etree, html

from .models import DEFAULT_SECONDARY, DEFAULT_SNAPSHOT, SecondaryResults, TradingSnapshot

logger = structlog.get_logger(__name__)

SECONDARY_LABEL = "Итоги торгов"
SECONDARY_MIN_CELLS = 6
SECONDARY_COLUMNS = {'min': 4, 'max': 5, 'avg': 6}

PERCENT_PATTERN = re.compile(r'[\d.]+%')

_LABELLED_CELL = '//td[contains(normalize-space(.), $label) and not(.//td[contains(normalize-space(.), $label)])]'


def normalize_number(text: str) -> str:
    """Replace decimal commas with periods ("41,55" -> "41.55")."""
    return text.replace(',', '.').strip()


def clean_text(text: str) -> str:
    return ' '.join(text.split())


@dataclass(frozen=True)
class FieldRule:
    field: str
    label: str
    default: str
    transform: Callable[[str], str] = clean_text


FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule('date', "Дата последней сделки", DEFAULT_SNAPSHOT.date),
    FieldRule('price', "Цена, BYN", DEFAULT_SNAPSHOT.price, normalize_number),
    FieldRule('change', "Изменение", DEFAULT_SNAPSHOT.change, normalize_number),
)


@dataclass(frozen=True)
class Scraped:
    """Values came from the page; fields listed in `defaulted` fell back."""
    snapshot: TradingSnapshot
    defaulted: Tuple[str, ...] = ()

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback:
    """The page could not be used; the static default snapshot is returned."""
    reason: str
    snapshot: TradingSnapshot = DEFAULT_SNAPSHOT

    @property
    def is_fallback(self) -> bool:
        return True


ExtractionResult = Union[Scraped, Fallback]


def find_labelled_value(tree: etree._Element, label: str) -> Optional[str]:
    """Return the text of the cell right after the first <td> containing label.

    None if no cell carries the label; an empty string if the label cell has
    no adjacent <td>.
    """
    cells = tree.xpath(_LABELLED_CELL, label=label)
    if not cells:
        return None
    sibling = cells[0].xpath('following-sibling::*[1][self::td]')
    if not sibling:
        return ''
    return clean_text(sibling[0].text_content())


def find_percent(text: Optional[str]) -> Optional[str]:
    """Pull the first "<number>%" out of a cell text, None if there is none."""
    if not text:
        return None
    match = PERCENT_PATTERN.search(normalize_number(text))
    return match.group(0) if match else None


def extract_secondary(tree: etree._Element) -> Tuple[SecondaryResults, List[str]]:
    """Read min/max/avg from the first "Итоги торгов" row wide enough to hold them."""
    for cell in tree.xpath(_LABELLED_CELL, label=SECONDARY_LABEL):
        rows = cell.xpath('ancestor::tr[1]')
        if not rows:
            continue
        cells = rows[0].xpath('./td')
        if len(cells) < SECONDARY_MIN_CELLS:
            continue

        values: Dict[str, str] = {}
        defaulted = []
        for name, index in SECONDARY_COLUMNS.items():
            raw = clean_text(cells[index].text_content()) if index < len(cells) else ''
            value = normalize_number(raw)
            if not value:
                value = getattr(DEFAULT_SECONDARY, name)
                defaulted.append(f'secondary.{name}')
            values[name] = value
        return SecondaryResults(**values), defaulted

    return DEFAULT_SECONDARY, ['secondary']


def parse_document(markup: Union[str, bytes], encoding: Optional[str] = None) -> etree._Element:
    """Parse markup as bytes so XML declarations and meta charsets are tolerated.

    The explicit encoding wins over whatever the document declares; str input
    is encoded as utf-8.
    """
    if isinstance(markup, str):
        markup = markup.encode('utf-8')
        encoding = 'utf-8'
    encoding = encoding or 'utf-8'
    try:
        codecs.lookup(encoding)
    except LookupError:
        encoding = 'utf-8'
    return html.document_fromstring(markup, parser=html.HTMLParser(encoding=encoding))


def extract_snapshot(markup: Union[str, bytes], encoding: Optional[str] = None) -> ExtractionResult:
    """Build a TradingSnapshot from page markup, degrading to defaults.

    markup may be the raw response body, in which case encoding is the charset
    detected by the fetcher. Returns Fallback when the markup cannot be parsed
    or none of the primary labels is present, Scraped otherwise.
    """
    if not markup or not markup.strip():
        logger.warning("extraction_fallback", reason="empty document")
        return Fallback(reason="empty document")

    try:
        tree = parse_document(markup, encoding)

        raw: Dict[str, Optional[str]] = {
            rule.field: find_labelled_value(tree, rule.label) for rule in FIELD_RULES
        }
        if all(value is None for value in raw.values()):
            logger.warning("extraction_fallback", reason="no labelled fields found")
            return Fallback(reason="no labelled fields found")

        values: Dict[str, str] = {}
        defaulted: List[str] = []
        for rule in FIELD_RULES:
            value = rule.transform(raw[rule.field]) if raw[rule.field] else ''
            if not value:
                value = rule.default
                defaulted.append(rule.field)
                logger.info("field_defaulted", field=rule.field, label=rule.label, default=rule.default)
            values[rule.field] = value

        # the percentage lives in the same cell as the absolute change
        change_percent = find_percent(raw["change"])
        if change_percent is None:
            change_percent = DEFAULT_SNAPSHOT.change_percent
            defaulted.append("change_percent")

        secondary, secondary_defaulted = extract_secondary(tree)
        defaulted.extend(secondary_defaulted)

        snapshot = TradingSnapshot(
            date=values['date'],
            price=values['price'],
            change=values['change'],
            change_percent=change_percent,
            secondary=secondary,
        )
    except Exception as e:
        logger.warning("extraction_fallback", reason=str(e), exc_info=True)
        return Fallback(reason=f"parse error: {e}")

    logger.info("snapshot_extracted", snapshot=snapshot.to_dict(), defaulted=defaulted)
    return Scraped(snapshot=snapshot, defaulted=tuple(defaulted))
