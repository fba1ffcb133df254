import base64

import pytest
from lxml import etree

from iats import Credentials


def iats_response(body: str) -> etree._Element:
    return etree.fromstring(f'<IATSRESPONSE xmlns="">{body}</IATSRESPONSE>')


def report_file(content: bytes) -> etree._Element:
    encoded = base64.b64encode(content).decode()
    return iats_response(f'<STATUS>Success</STATUS><ERRORS/><FILE>{encoded}</FILE>')


class FakeService:
    def __init__(self, client):
        self.client = client

    def __getitem__(self, operation_name):
        def call(**params):
            self.client.calls.append((operation_name, params))
            response = self.client.responses[operation_name]
            if isinstance(response, Exception):
                raise response
            return response

        return call


class FakeSoapClient:
    """Stands in for ``zeep.Client`` and answers with canned responses."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []
        self.service = FakeService(self)

    def create_message(self, service, operation_name, **params):
        node = etree.Element(operation_name)
        for key, value in params.items():
            etree.SubElement(node, key).text = str(value)
        return node

    def respond(self, operation_name, fragment):
        # zeep unwraps the single <Operation>Result element and keeps the xsd:any content in _value_1
        self.responses[operation_name] = {'_value_1': fragment}


@pytest.fixture
def credentials():
    return Credentials(agent_code='TEST88', password='TEST88')


@pytest.fixture
def uk_credentials():
    return Credentials(agent_code='UDDD88', password='UDDD888', server_id='UK')


@pytest.fixture
def soap_client():
    return FakeSoapClient()
