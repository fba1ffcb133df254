import logging
import time
from typing import Any, Dict, Optional, Tuple

from lxml import etree
from requests.exceptions import ConnectionError
from zeep import Client as SoapClient, Settings, helpers, exceptions as soap_exceptions

from iats import settings
from iats.logger.handlers import RequestLogger
from . import Credentials, Failure, FailureReason
from .exceptions import ServiceErrorException, ServiceUnavailable
from .utils import SoapLoggingPlugin, create_transport, generate_uid, xml2array

logger = logging.getLogger(__name__)

CURRENCIES = {
    'NA': ('USD', 'CAD'),
    'UK': ('USD', 'EUR', 'GBP', 'IEE', 'CHF', 'HKD', 'JPY', 'SGD', 'MXN'),
}

METHODS_OF_PAYMENT = {
    'NA': ('VISA', 'MC', 'AMX', 'DSC'),
    'UK': ('VISA', 'MC', 'AMX', 'MAESTRO'),
}


class Core:
    """
    Base iATS web service client.

    Holds the credentials and the WSDL endpoint of one service, performs
    remote calls with the agent code and password injected and keeps the
    envelopes of the last call.
    """
    endpoint: str = ''

    wsdl_cache: int = settings.IATS_WSDL_CACHE
    verify: bool = settings.IATS_VERIFY_SSL
    transport_timeout = settings.IATS_TRANSPORT_TIMEOUT
    transport_operation_timeout = settings.IATS_OPERATION_TIMEOUT

    # operation name -> servers the operation is not available on
    restricted_servers: Dict[str, Tuple[str, ...]] = {}

    runtime = 0
    last_request = ''
    last_response = ''
    history_method: Optional[str] = None

    def __init__(self, credentials: Credentials, client: Optional[SoapClient] = None, uid: Optional[str] = None):
        self.credentials = credentials
        self.uid = uid
        self.history = SoapLoggingPlugin()
        self._client = client

    def __repr__(self):
        return f"{self.__class__.__name__}(agent_code={self.credentials.agent_code!r}, " \
               f"server_id={self.credentials.server_id!r})"

    @property
    def address(self) -> str:
        return f"{self.credentials.server}{self.endpoint}"

    @property
    def client(self) -> SoapClient:
        if not self._client:
            transport = create_transport(
                verify=self.verify,
                cache=self.wsdl_cache,
                transport_timeout=self.transport_timeout,
                transport_operation_timeout=self.transport_operation_timeout,
            )
            self._client = SoapClient(
                wsdl=self.address,
                transport=transport,
                plugins=[self.history],
                settings=Settings(strict=False, xml_huge_tree=True),
            )

        return self._client

    def check_restrictions(self, operation_name: str, parameters: dict) -> Optional[Failure]:
        server_id = self.credentials.server_id

        if server_id in self.restricted_servers.get(operation_name, ()):
            return Failure(FailureReason.RESTRICTED, 'Service cannot be used on this server.')

        currency = parameters.get('currency')
        if currency and currency not in CURRENCIES[server_id]:
            return Failure(FailureReason.RESTRICTED, 'Invalid currency for this server.')

        mop = parameters.get('mop')
        if mop and mop not in METHODS_OF_PAYMENT[server_id]:
            return Failure(FailureReason.RESTRICTED, 'Invalid method of payment for this server.')

        return None

    def api_call(self, operation_name: str, parameters: dict) -> Any:
        params = {
            **parameters,
            'agentCode': self.credentials.agent_code,
            'password': self.credentials.password,
        }

        extra_log = {
            'uid': self.uid or generate_uid(),
            'conversation_id': generate_uid(),
            'method': f"({self.__class__.__name__}) {operation_name}",
        }

        log_extra = {
            'service.address': self.address,
            'operation_name': operation_name,
        }

        try:
            node = self.client.create_message(self.client.service, operation_name, **params)
            self.logging(etree.tostring(node), extra_log=extra_log)

            start = time.perf_counter()
            response = self.client.service[operation_name](**params)
            self.runtime = round(time.perf_counter() - start, 3)

            self.prepare_history(operation_name)
            self.logging(self.last_response, extra_log={
                **extra_log,
                'response_status': 200,
                'runtime': self.runtime,
            })

            logger.info("%s.api_call: %s done in %ss", self.__class__.__name__, operation_name, self.runtime)

            try:
                return helpers.serialize_object(response)
            except Exception as exc:
                logger.error("Core.api_call: serialize_object error %s", exc, extra=log_extra)

            return response

        except soap_exceptions.Fault as exc:
            logger.error("Core.api_call: fault %s", exc, extra=log_extra)
            self.prepare_history(operation_name)
            self.logging(self.last_response, extra_log={
                **extra_log,
                'response_status': 500,
            }, is_error=True)
            raise ServiceErrorException(str(exc), response=exc)

        except ConnectionError as exc:
            logger.error("Core.api_call: connection error %s url %s", exc, self.address, extra=log_extra)
            self.logging(str(exc), extra_log=extra_log, is_error=True)
            raise ServiceUnavailable(exc)

        except Exception as exc:
            logger.error("Core.api_call: error %s", exc, extra=log_extra)
            self.logging(str(exc), extra_log=extra_log, is_error=True)
            raise ServiceUnavailable(exc)

    # noinspection PyMethodMayBeStatic
    def xml2array(self, fragment) -> dict:
        return xml2array(fragment)

    # noinspection PyMethodMayBeStatic
    def logging(
            self,
            content,
            extra_log: dict,
            is_error: bool = False,
    ):
        if is_error:
            RequestLogger.error(content or '', **extra_log)

        else:
            RequestLogger.info(content or '', **extra_log)

    def prepare_history(self, operation_name: str):
        self.history_method = operation_name
        self.last_request = self.history.last_sent
        self.last_response = self.history.last_received
