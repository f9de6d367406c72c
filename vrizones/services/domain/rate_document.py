"""
VRI rate document: the XML prescription produced by the backend.

The document holds one MapZoneRate element per cell
(BearingSeqNum, DistanceSeqNum, WateringRatePercent) and a palette of
WateringColor elements (WateringPercent, Color as #AARRGGBB). Parsing keeps
the whole tree so that serialize() writes back every node, attribute,
namespace declaration and comment; only rate attributes that were set
change.
"""
import base64
import binascii
import copy
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from lxml import etree

from vrizones.domain.errors import InvalidRate, InvalidRateDocument
from vrizones.domain.models import RateEntry, composite_key

logger = logging.getLogger(__name__)


KNOWN_NAMESPACES: Tuple[str, ...] = (
    "http://tempuri.org/VSSILinearData.xsd",
    "http://tempuri.org/VSSI.xsd",
)

RATE_TAG = "MapZoneRate"
COLOR_TAG = "WateringColor"

BEARING_ATTR = "BearingSeqNum"
DISTANCE_ATTR = "DistanceSeqNum"
RATE_ATTR = "WateringRatePercent"
PERCENT_ATTR = "WateringPercent"
COLOR_ATTR = "Color"

_UTF8_BOM = b"\xef\xbb\xbf"


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_blank_text=False,
        remove_comments=False,
    )


def _qualified(namespace: Optional[str], tag: str) -> str:
    return f"{{{namespace}}}{tag}" if namespace else tag


def format_rate(rate: float) -> str:
    """Integral rates are written without a fractional part."""
    if float(rate).is_integer():
        return str(int(rate))
    return repr(float(rate))


def check_rate(rate: float) -> None:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) \
            or not math.isfinite(rate) or rate < 0:
        raise InvalidRate(f"Watering rate must be a finite number >= 0, got {rate!r}")


class RateDocument:
    """Parsed rate document bound to the namespace of its rate elements."""

    def __init__(self, tree: etree._ElementTree, namespace: Optional[str], has_declaration: bool):
        self._tree = tree
        self.namespace = namespace
        self._has_declaration = has_declaration

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def parse(
        cls,
        source: Union[str, bytes],
        namespaces: Sequence[str] = KNOWN_NAMESPACES,
    ) -> "RateDocument":
        """
        Parse a rate document.

        The rate namespace is the first of `namespaces` that contains a
        MapZoneRate element, otherwise whichever namespace (or none) the
        first MapZoneRate element found uses.

        Raises:
            InvalidRateDocument: If the text is not XML or has no rate elements
        """
        data = source.encode("utf-8") if isinstance(source, str) else bytes(source or b"")
        if data.startswith(_UTF8_BOM):
            data = data[len(_UTF8_BOM):]
        if not data.strip():
            raise InvalidRateDocument("Rate document is empty")

        try:
            root = etree.fromstring(data, _parser())
        except etree.XMLSyntaxError as e:
            raise InvalidRateDocument(f"Rate document is not valid XML: {e}") from e

        namespace = cls._discover_namespace(root, namespaces)
        logger.debug(f"Rate document namespace: {namespace}")
        return cls(root.getroottree(), namespace, data.lstrip().startswith(b"<?xml"))

    @classmethod
    def from_base64(
        cls,
        encoded: str,
        namespaces: Sequence[str] = KNOWN_NAMESPACES,
    ) -> "RateDocument":
        """Parse the base64 `encoded_vri` field returned by the backend."""
        if not encoded:
            raise InvalidRateDocument("No encoded VRI data received")
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidRateDocument(f"Encoded VRI data is not valid base64: {e}") from e
        return cls.parse(data, namespaces)

    @staticmethod
    def _discover_namespace(root: etree._Element, namespaces: Sequence[str]) -> Optional[str]:
        for namespace in namespaces:
            if next(root.iter(_qualified(namespace, RATE_TAG)), None) is not None:
                return namespace

        for element in root.iter():
            if not isinstance(element.tag, str):
                continue
            qname = etree.QName(element)
            if qname.localname == RATE_TAG:
                return qname.namespace

        raise InvalidRateDocument(f"No {RATE_TAG} elements found in rate document")

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def rate_elements(self) -> List[etree._Element]:
        return list(self._tree.getroot().iter(_qualified(self.namespace, RATE_TAG)))

    def color_elements(self) -> List[etree._Element]:
        return list(self._tree.getroot().iter(_qualified(self.namespace, COLOR_TAG)))

    @property
    def rates(self) -> Dict[str, RateEntry]:
        """
        Rate entries keyed by composite key.

        Elements without both sequence numbers or with a non-numeric rate
        are skipped. A repeated key keeps the last element's rate.
        """
        entries: Dict[str, RateEntry] = {}
        for element in self.rate_elements():
            bearing = element.get(BEARING_ATTR)
            distance = element.get(DISTANCE_ATTR)
            raw_rate = element.get(RATE_ATTR)
            if not bearing or not distance or raw_rate is None:
                continue
            try:
                rate = float(raw_rate)
            except ValueError:
                logger.debug(f"Skipping non-numeric rate {raw_rate!r} for {bearing}-{distance}")
                continue
            entry = RateEntry(bearing_seq=bearing, distance_seq=distance, rate_percent=rate)
            entries[entry.key] = entry
        return entries

    @property
    def colors(self) -> List[Tuple[Optional[str], Optional[str]]]:
        """Raw (WateringPercent, Color) attribute pairs in document order."""
        return [
            (element.get(PERCENT_ATTR), element.get(COLOR_ATTR))
            for element in self.color_elements()
        ]

    def elements_by_key(self) -> Dict[str, List[etree._Element]]:
        """Rate elements grouped by composite key, in document order."""
        index: Dict[str, List[etree._Element]] = {}
        for element in self.rate_elements():
            bearing = element.get(BEARING_ATTR)
            distance = element.get(DISTANCE_ATTR)
            if bearing and distance:
                index.setdefault(composite_key(bearing, distance), []).append(element)
        return index

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_rates(self, keys: Iterable[str], rate: float) -> Dict[str, int]:
        """
        Write one rate on every element of each composite key.

        The document is scanned once whatever the number of keys.

        Returns:
            Number of elements updated per key (0 when the key is absent)

        Raises:
            InvalidRate: If the rate is not a finite, non-negative number
        """
        check_rate(rate)
        value = format_rate(rate)
        index = self.elements_by_key()
        updated: Dict[str, int] = {}
        for key in dict.fromkeys(keys):
            elements = index.get(key, [])
            for element in elements:
                element.set(RATE_ATTR, value)
            updated[key] = len(elements)
        return updated

    def set_rate(self, key: str, rate: float) -> int:
        """Write a rate on every element with the composite key; returns the count."""
        return self.set_rates([key], rate)[key]

    def copy(self) -> "RateDocument":
        return RateDocument(copy.deepcopy(self._tree), self.namespace, self._has_declaration)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def serialize(self) -> bytes:
        """Document bytes, with the XML declaration if the source had one."""
        if self._has_declaration:
            encoding = self._tree.docinfo.encoding or "UTF-8"
            return etree.tostring(self._tree, xml_declaration=True, encoding=encoding)
        return etree.tostring(self._tree, encoding="UTF-8", xml_declaration=False)

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode("ascii")
