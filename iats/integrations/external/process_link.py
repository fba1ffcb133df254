"""
ProcessLink: credit card and ACH / EFT transaction processing.

Service guide: http://home.iatspayments.com/sites/default/files/iats_webservices_processlink_version_4.0.pdf
API documentation: https://www.iatspayments.com/NetGate/ProcessLinkv2.asmx
"""
import logging
from typing import Any

from lxml import etree

from iats.integrations import Failure, FailureReason, Result, Success
from iats.integrations.request import Core
from iats.integrations.utils import dig, get_result_fragment

logger = logging.getLogger(__name__)

REJECT_CODES = {
    '1': 'Agent code has not been set up on the authorization system. Please call iATS at 1-888-955-5455.',
    '2': 'Unable to process transaction. Verify and re-enter credit card information.',
    '3': 'Invalid Customer Code.',
    '4': 'Incorrect expiration date.',
    '5': 'Invalid transaction. Verify and re-enter credit card information.',
    '6': 'Please have cardholder call the number on the back of the card.',
    '7': 'Lost or stolen card.',
    '8': 'Invalid card status.',
    '9': 'Restricted card status. Usually on corporate cards restricted to specific sales.',
    '10': 'Error. Please verify and re-enter credit card information.',
    '11': 'General decline code. Please have client call the number on the back of credit card',
    '12': 'Incorrect CVV2 or Expiry date',
    '14': 'The card is over the limit.',
    '15': 'General decline code. Please have client call the number on the back of credit card',
    '16': 'Invalid charge card number. Verify and re-enter credit card information.',
    '17': 'Unable to authorize transaction. Authorizer needs more information for approval.',
    '18': 'Card not supported by institution.',
    '19': 'Incorrect CVV2 security code',
    '22': 'Bank timeout. Bank lines may be down or busy. Re-try transaction later.',
    '23': 'System error. Re-try transaction later.',
    '24': 'Charge card expired.',
    '25': 'Capture card. Reported lost or stolen.',
    '26': 'Invalid transaction, invalid expiry date. Please confirm and retry transaction.',
    '27': 'Please have cardholder call the number on the back of the card.',
    '32': 'Invalid charge card number.',
    '39': 'Contact IATS 1-888-955-5455.',
    '40': 'Invalid card number. Card not supported by IATS.',
    '41': 'Invalid Expiry date.',
    '42': 'CVV2 required.',
    '43': 'Incorrect AVS.',
    '45': 'Credit card name blocked. Call iATS at 1-888-955-5455.',
    '46': 'Card tumbling. Call iATS at 1-888-955-5455.',
    '47': 'Name tumbling. Call iATS at 1-888-955-5455.',
    '48': 'IP blocked. Call iATS at 1-888-955-5455.',
    '49': 'Email blocked. Call iATS at 1-888-955-5455.',
    '50': 'Telephone blocked. Call iATS at 1-888-955-5455.',
    '100': 'DO NOT REPROCESS. Call iATS at 1-888-955-5455.',
}

ACHEFT_OPERATIONS = (
    'ProcessACHEFTV1',
    'ProcessACHEFTWithCustomerCodeV1',
    'CreateCustomerCodeAndProcessACHEFTV1',
    'ProcessACHEFTRefundWithTransactionIdV1',
    'ProcessACHEFTChargeBatchV1',
    'ProcessACHEFTRefundBatchV1',
)


NO_RESPONSE = 'No data returned for this request'


def reject_message(code: str) -> str:
    return REJECT_CODES.get(code, f'Transaction rejected with code {code}.')


class ProcessLink(Core):
    """iATS ProcessLink service"""
    endpoint = '/NetGate/ProcessLinkv2.asmx?WSDL'
    restricted_servers = {operation: ('UK',) for operation in ACHEFT_OPERATIONS}

    def process(self, operation_name: str, parameters: dict) -> Result:
        failure = self.check_restrictions(operation_name, parameters)
        if failure:
            logger.warning("%s: %s refused locally: %s", self.__class__.__name__, operation_name, failure.message)
            return failure

        response = self.api_call(operation_name, parameters)
        return self.response_handler(response, f'{operation_name}Result')

    def response_handler(self, response: Any, result: str) -> Result:
        """
        Interpret a ProcessLink response.

        A ``STATUS`` of ``Failure`` and an ``AUTHORIZATIONRESULT`` of the form
        ``REJECT: <code>`` become failures, anything else is returned as the
        flattened mapping.
        """
        try:
            data = self.xml2array(get_result_fragment(response, result))
        except etree.XMLSyntaxError as exc:
            logger.warning("%s: %s is not XML: %s", self.__class__.__name__, result, exc)
            return Failure(FailureReason.NO_DATA, NO_RESPONSE)

        if 'STATUS' not in data:
            return Failure(FailureReason.NO_DATA, NO_RESPONSE)


        if data.get('STATUS') == 'Failure':
            errors = data.get('ERRORS')
            message = errors.strip() if isinstance(errors, str) and errors.strip() else 'Bad Credentials'
            return Failure(FailureReason.STATUS_FAILURE, message)

        authorization = dig(data, 'PROCESSRESULT', 'AUTHORIZATIONRESULT', default='')
        if isinstance(authorization, str) and authorization.strip().upper().startswith('REJECT'):
            _, _, code = authorization.partition(':')
            code = code.strip()
            logger.info("%s: transaction rejected with code %s", self.__class__.__name__, code)
            return Failure(FailureReason.REJECTED, reject_message(code), code=code)

        return Success(data)

    # Credit card

    def process_credit_card(self, parameters: dict) -> Result:
        """
        Process a credit card transaction.

        Parameters: customerIPAddress, invoiceNum, creditCardNum,
        creditCardExpiry (MM/YY), cvv2, mop (VISA, MC, AMX, DSC, MAESTRO),
        firstName, lastName, address, city, state, zipCode, total, comment.
        """
        return self.process('ProcessCreditCardV1', parameters)

    def process_credit_card_with_customer_code(self, parameters: dict) -> Result:
        """
        Process a credit card transaction for a stored customer code.

        Parameters: customerIPAddress, customerCode, invoiceNum, cvv2, total,
        comment.
        """
        return self.process('ProcessCreditCardWithCustomerCodeV1', parameters)

    def create_customer_code_and_process_credit_card(self, parameters: dict) -> Result:
        """
        Create a customer code and process a credit card transaction.

        Parameters: customerIPAddress, invoiceNum, ccNum, ccExp (MM/YY),
        firstName, lastName, address, city, state, zipCode, cvv2, total.
        """
        return self.process('CreateCustomerCodeAndProcessCreditCardV1', parameters)

    def process_credit_card_refund_with_transaction_id(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, transactionId, total (negative), comment."""
        return self.process('ProcessCreditCardRefundWithTransactionIdV1', parameters)

    def process_credit_card_batch(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, batchFile (base64 encoded)."""
        return self.process('ProcessCreditCardBatchV1', parameters)

    # ACH / EFT

    def process_acheft(self, parameters: dict) -> Result:
        """
        Process an ACH / EFT (direct debit) transaction.

        Parameters: customerIPAddress, invoiceNum, firstName, lastName,
        address, city, state, zipCode, accountNum, accountType
        (CHECKING, SAVING), total, comment.
        """
        return self.process('ProcessACHEFTV1', parameters)

    def process_acheft_with_customer_code(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, customerCode, invoiceNum, total, comment."""
        return self.process('ProcessACHEFTWithCustomerCodeV1', parameters)

    def create_customer_code_and_process_acheft(self, parameters: dict) -> Result:
        return self.process('CreateCustomerCodeAndProcessACHEFTV1', parameters)

    def process_acheft_refund_with_transaction_id(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, transactionId, total (negative), comment."""
        return self.process('ProcessACHEFTRefundWithTransactionIdV1', parameters)

    def process_acheft_charge_batch(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, batchFile (base64 encoded)."""
        return self.process('ProcessACHEFTChargeBatchV1', parameters)

    def process_acheft_refund_batch(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, batchFile (base64 encoded)."""
        return self.process('ProcessACHEFTRefundBatchV1', parameters)

    # Batch results

    def get_batch_process_result_file(self, parameters: dict) -> Result:
        """Parameters: customerIPAddress, batchId."""
        return self.process('GetBatchProcessResultFileV1', parameters)
