import base64
import binascii

import pytest
from lxml import etree

from iats.integrations.utils import (
    decode_file,
    dig,
    encode_batch_file,
    get_result_fragment,
    xml2array,
)
from tests.conftest import report_file

PROCESS_RESULT = """
<IATSRESPONSE xmlns="">
  <STATUS>Success</STATUS>
  <ERRORS/>
  <PROCESSRESULT>
    <AUTHORIZATIONRESULT> OK: 678594:</AUTHORIZATIONRESULT>
    <CUSTOMERCODE>A10396688</CUSTOMERCODE>
    <TRANSACTIONID>A6F19CB8</TRANSACTIONID>
  </PROCESSRESULT>
</IATSRESPONSE>
"""

JOURNAL = """
<IATSRESPONSE>
  <STATUS>Success</STATUS>
  <JOURNALREPORT>
    <TN><TNID>A1</TNID><AMT>5.00</AMT></TN>
    <TN><TNID>A2</TNID><AMT>7.50</AMT></TN>
    <TN><TNID>A3</TNID><AMT>1.00</AMT></TN>
  </JOURNALREPORT>
</IATSRESPONSE>
"""


def test_xml2array_flattens_nested_elements():
    data = xml2array(PROCESS_RESULT)

    assert data['STATUS'] == 'Success'
    assert data['ERRORS'] == ''
    assert data['PROCESSRESULT']['CUSTOMERCODE'] == 'A10396688'
    assert data['PROCESSRESULT']['AUTHORIZATIONRESULT'] == ' OK: 678594:'


def test_xml2array_collects_repeated_siblings():
    data = xml2array(JOURNAL)

    records = data['JOURNALREPORT']['TN']
    assert isinstance(records, list)
    assert [record['TNID'] for record in records] == ['A1', 'A2', 'A3']


def test_xml2array_single_record_is_not_a_list():
    data = xml2array('<R><JOURNALREPORT><TN><TNID>A1</TNID></TN></JOURNALREPORT></R>')

    assert data['JOURNALREPORT']['TN'] == {'TNID': 'A1'}


def test_xml2array_keeps_attributes():
    data = xml2array('<R version="2"><ITEM id="7">x</ITEM><GROUP kind="a"><V>1</V></GROUP></R>')

    assert data['@attributes'] == {'version': '2'}
    assert data['ITEM'] == {'@attributes': {'id': '7'}, '#text': 'x'}
    assert data['GROUP'] == {'V': '1', '@attributes': {'kind': 'a'}}


def test_xml2array_strips_namespaces_and_accepts_elements():
    element = etree.fromstring('<r:R xmlns:r="urn:x"><r:STATUS>Success</r:STATUS></r:R>')

    assert xml2array(element) == {'STATUS': 'Success'}


@pytest.mark.parametrize('fragment', [None, '', b'  '])
def test_xml2array_empty_fragment(fragment):
    assert xml2array(fragment) == {}


def test_xml2array_is_idempotent():
    assert xml2array(JOURNAL) == xml2array(JOURNAL)
    assert xml2array(JOURNAL.encode()) == xml2array(etree.fromstring(JOURNAL))


def test_get_result_fragment_from_named_field():
    element = etree.fromstring('<R/>')

    assert get_result_fragment({'OpResult': {'_value_1': element}}, 'OpResult') is element
    assert get_result_fragment({'OpResult': {'any': '<R/>'}}, 'OpResult') == '<R/>'
    assert get_result_fragment({'OpResult': None}, 'OpResult') is None


def test_get_result_fragment_from_unwrapped_result():
    element = etree.fromstring('<R/>')

    assert get_result_fragment({'_value_1': [element]}, 'OpResult') is element
    assert get_result_fragment({'_value_1': None}, 'OpResult') is None
    assert get_result_fragment(None, 'OpResult') is None


def test_get_result_fragment_from_attribute():
    class Result:
        any = '<R/>'

    class Response:
        OpResult = Result()

    assert get_result_fragment(Response(), 'OpResult') == '<R/>'


def test_decode_file():
    content = b'Date,Agent,Customer Code\r\n7/23/2014,TEST88,A10396688\r\n'

    assert decode_file(report_file(content)) == content.decode()
    assert decode_file(etree.tostring(report_file(content))) == content.decode()


def test_decode_file_without_file_element():
    assert decode_file('<IATSRESPONSE><STATUS>Success</STATUS></IATSRESPONSE>') == ''


def test_encode_batch_file(tmp_path):
    path = tmp_path / 'ACHEFTBatch.txt'
    path.write_bytes(b'00000001,02100002100000000000000001,Test,Account,CHECKING,5\r\n')

    assert base64.b64decode(encode_batch_file(path)) == path.read_bytes()


def test_dig():
    data = {'JOURNALREPORT': {'TN': ['a']}}

    assert dig(data, 'JOURNALREPORT', 'TN') == ['a']
    assert dig(data, 'JOURNALREPORT', 'MISSING') is None
    assert dig({'JOURNALREPORT': ''}, 'JOURNALREPORT', 'TN', default='x') == 'x'


def test_decode_file_latin1_fallback():
    content = 'Name,Total\r\nJosé,5\r\n'.encode('latin-1')

    assert decode_file(report_file(content)) == 'Name,Total\r\nJosé,5\r\n'


def test_decode_file_invalid_base64():
    with pytest.raises(binascii.Error):
        decode_file('<IATSRESPONSE><FILE>QUJDR</FILE></IATSRESPONSE>')
