import base64
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from lxml import etree
from requests import Session
from zeep.cache import SqliteCache
from zeep.plugins import HistoryPlugin
from zeep.transports import Transport

from iats import settings

logger = logging.getLogger(__name__)

TreeValue = Union[str, List['TreeValue'], Dict[str, 'TreeValue']]
XmlFragment = Union[str, bytes, etree._Element, None]

ATTRIBUTES_KEY = '@attributes'
TEXT_KEY = '#text'

_parser = etree.XMLParser(resolve_entities=False, huge_tree=True, remove_blank_text=False)


def generate_uid():
    return uuid.uuid4().hex


def create_transport(
        verify: bool = True,
        cache: int = 0,
        transport_timeout: int = None,
        transport_operation_timeout: int = None,
):
    session = Session()
    session.verify = verify
    wsdl_cache = None

    if isinstance(cache, int) and cache > 0:
        wsdl_cache = SqliteCache(path=settings.IATS_SOAP_CACHE_PATH, timeout=cache)

    return Transport(
        session=session,
        cache=wsdl_cache,
        timeout=transport_timeout,
        operation_timeout=transport_operation_timeout,
    )


class SoapLoggingPlugin(HistoryPlugin):
    @staticmethod
    def get_envelope(payload):
        if not payload:
            return ''
        return etree.tostring(payload["envelope"], encoding="unicode")

    @property
    def last_sent(self):
        if not self._buffer:
            return ''
        return SoapLoggingPlugin.get_envelope(super().last_sent)

    @property
    def last_received(self):
        if not self._buffer:
            return ''
        return SoapLoggingPlugin.get_envelope(super().last_received)


def to_element(fragment: XmlFragment) -> etree._Element:
    if isinstance(fragment, etree._Element):
        return fragment

    if isinstance(fragment, str):
        fragment = fragment.encode('utf-8')

    return etree.fromstring(fragment.strip(), parser=_parser)


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def local_name_of(name: str) -> str:
    return etree.QName(name).localname


def _element_value(element: etree._Element) -> TreeValue:
    # comments and processing instructions have non-string tags
    children = [child for child in element if isinstance(child.tag, str)]
    attributes = {local_name_of(key): value for key, value in element.attrib.items()}

    if not children:
        text = element.text or ''
        if not attributes:
            return text
        value = {ATTRIBUTES_KEY: attributes}
        if text.strip():
            value[TEXT_KEY] = text
        return value

    value = _children_value(children)
    if attributes:
        value[ATTRIBUTES_KEY] = attributes
    return value


def _children_value(children: List[etree._Element]) -> Dict[str, TreeValue]:
    value: Dict[str, TreeValue] = {}
    repeated = set()

    for child in children:
        name = local_name(child)
        child_value = _element_value(child)

        if name not in value:
            value[name] = child_value

        elif name in repeated:
            value[name].append(child_value)

        else:
            value[name] = [value[name], child_value]
            repeated.add(name)

    return value


def xml2array(fragment: XmlFragment) -> Dict[str, TreeValue]:
    """
    Flatten an XML fragment into nested dicts.

    The root element is not a key of the result, its children are. Leaf
    elements become their text, repeated siblings become a list, attributes
    are kept under ``@attributes``.
    """
    if fragment is None or (isinstance(fragment, (str, bytes)) and not fragment.strip()):
        return {}

    root = to_element(fragment)
    children = [child for child in root if isinstance(child.tag, str)]
    value = _children_value(children)

    if root.attrib:
        value[ATTRIBUTES_KEY] = {local_name_of(key): val for key, val in root.attrib.items()}

    return value


def _lookup(value: Any, key: str, default=None):
    if isinstance(value, dict):
        return value.get(key, default)

    try:
        return value[key]
    except (KeyError, TypeError, IndexError, AttributeError):
        return getattr(value, key, default)


def get_result_fragment(response: Any, result_field: str) -> XmlFragment:
    """
    Pull the "any" XML blob of ``result_field`` out of a zeep response.

    zeep unwraps single-result responses, so the response may already be the
    result value itself.
    """
    if response is None:
        return None

    if isinstance(response, (str, bytes, etree._Element)):
        return response

    result = _lookup(response, result_field, default=response)
    if result is None or isinstance(result, (str, bytes, etree._Element)):
        return result

    for key in ('_value_1', 'any'):
        fragment = _lookup(result, key)
        if fragment is not None:
            break
    else:
        return None

    if isinstance(fragment, (list, tuple)):
        fragment = fragment[0] if fragment else None

    return fragment


def decode_file(fragment: XmlFragment) -> str:
    """Base64 decode the text of the ``FILE`` child of a report fragment."""
    element = to_element(fragment)

    content = ''
    for child in element:
        if isinstance(child.tag, str) and local_name(child) == 'FILE':
            content = child.text or ''
            break

    decoded = base64.b64decode(content)
    try:
        return decoded.decode('utf-8')
    except UnicodeDecodeError:
        logger.warning("decode_file: report is not utf-8, falling back to latin-1")
        return decoded.decode('latin-1')


def encode_batch_file(path: Union[str, Path]) -> str:
    """Read a batch file and base64 encode it for the batch operations."""
    return base64.b64encode(Path(path).read_bytes()).decode('ascii')


def dig(data: Optional[dict], *keys, default=None):
    for key in keys:
        if not isinstance(data, dict) or key not in data:
            return default
        data = data[key]
    return data
