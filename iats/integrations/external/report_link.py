"""
ReportLink: reports on transactions completed through the other iATS services.

Reports cover credit card and ACH / EFT journals, rejects, returns, payment
box transactions and bank reconciliation, as XML or CSV.

Service guide: http://home.iatspayments.com/sites/default/files/iats_webservices_reportlink_version_4.0.pdf
API documentation: https://www.iatspayments.com/NetGate/ReportLink.asmx

Date parameters are ISO-8601 strings such as ``2014-07-23T00:00:00+00:00``.
Ranged reports take ``fromDate``/``toDate``, daily reports take ``date``. Bank
reconciliation reports also take ``currency`` and ``summaryOnly``. Every
report accepts an optional ``customerIPAddress``.
"""
import binascii
import logging
from typing import Any, Union

from lxml import etree

from iats.integrations import Failure, FailureReason, ReportFormat, Result, Success
from iats.integrations.exceptions import ServiceErrorException
from iats.integrations.request import Core
from iats.integrations.utils import decode_file, dig, get_result_fragment

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = 'Bad Credentials'
NO_DATA = 'No data returned for this date'


class ReportLink(Core):
    """iATS ReportLink service"""
    endpoint = '/NetGate/ReportLinkv2.asmx?WSDL'

    def report(self, operation_name: str, parameters: dict, fmt: Union[ReportFormat, str]) -> Result:
        failure = self.check_restrictions(operation_name, parameters)
        if failure:
            logger.warning("%s: %s refused locally: %s", self.__class__.__name__, operation_name, failure.message)
            return failure

        response = self.api_call(operation_name, parameters)
        return self.response_handler(response, f'{operation_name}Result', fmt)

    def response_handler(self, response: Any, result: str, fmt: Union[ReportFormat, str]) -> Result:
        """
        Normalize a ReportLink response.

        ``AR`` flattens the XML report and returns its ``JOURNALREPORT.TN``
        records, ``CSV`` decodes the base64 ``FILE`` of the report.
        """
        try:
            fmt = ReportFormat(fmt)
        except ValueError:
            raise ValueError(f"Unknown report format {fmt!r}, expected one of AR, CSV") from None

        fragment = get_result_fragment(response, result)

        if fmt == ReportFormat.AR:
            try:
                data = self.xml2array(fragment)
            except etree.XMLSyntaxError as exc:
                logger.warning("%s: %s is not XML: %s", self.__class__.__name__, result, exc)
                return Failure(FailureReason.NO_DATA, NO_DATA)

            if data.get('STATUS') == 'Failure':
                # iATS reports every failure status this way, not only bad credentials
                return Failure(FailureReason.STATUS_FAILURE, BAD_CREDENTIALS)

            records = dig(data, 'JOURNALREPORT', 'TN')
            if records is None:
                return Failure(FailureReason.NO_DATA, NO_DATA)

            return Success(records)

        # Some report windows come back without any payload.
        if fragment is None or (isinstance(fragment, (str, bytes)) and not fragment.strip()):
            return Success('')

        try:
            return Success(decode_file(fragment))
        except (etree.XMLSyntaxError, binascii.Error) as exc:
            logger.error("%s: %s report file is unreadable: %s", self.__class__.__name__, result, exc)
            raise ServiceErrorException(str(exc), response=fragment)

    # ACH / EFT

    def get_acheft_bank_reconciliation_report_csv(self, parameters: dict) -> Result:
        """Bank balance of ACH / EFT transactions. Parameters: fromDate, toDate, currency, summaryOnly."""
        return self.report('GetACHEFTBankReconciliationReportCSV', parameters, ReportFormat.CSV)

    def get_acheft_journal_csv(self, parameters: dict) -> Result:
        return self.report('GetACHEFTJournalCSV', parameters, ReportFormat.CSV)

    def get_acheft_journal(self, parameters: dict) -> Result:
        return self.report('GetACHEFTJournal', parameters, ReportFormat.AR)

    def get_acheft_payment_box_journal_csv(self, parameters: dict) -> Result:
        return self.report('GetACHEFTPaymentBoxJournalCSVV2', parameters, ReportFormat.CSV)

    def get_acheft_payment_box_reject_csv(self, parameters: dict) -> Result:
        return self.report('GetACHEFTPaymentBoxRejectCSV', parameters, ReportFormat.CSV)

    def get_acheft_reject_csv(self, parameters: dict) -> Result:
        return self.report('GetACHEFTRejectCSV', parameters, ReportFormat.CSV)

    def get_acheft_reject(self, parameters: dict) -> Result:
        return self.report('GetACHEFTReject', parameters, ReportFormat.AR)

    def get_acheft_return_csv(self, parameters: dict) -> Result:
        return self.report('GetACHEFTReturnCSV', parameters, ReportFormat.CSV)

    def get_acheft_return(self, parameters: dict) -> Result:
        return self.report('GetACHEFTReturn', parameters, ReportFormat.AR)

    # Credit card

    def get_credit_card_bank_reconciliation_report_csv(self, parameters: dict) -> Result:
        """Bank balance of credit card transactions. Parameters: fromDate, toDate, currency, summaryOnly."""
        return self.report('GetCreditCardBankReconciliationReportCSV', parameters, ReportFormat.CSV)

    def get_credit_card_journal_csv(self, parameters: dict) -> Result:
        return self.report('GetCreditCardJournalCSV', parameters, ReportFormat.CSV)

    def get_credit_card_journal(self, parameters: dict) -> Result:
        return self.report('GetCreditCardJournal', parameters, ReportFormat.AR)

    def get_credit_card_payment_box_journal_csv(self, parameters: dict) -> Result:
        return self.report('GetCreditCardPaymentBoxJournalCSV', parameters, ReportFormat.CSV)

    def get_credit_card_payment_box_reject_csv(self, parameters: dict) -> Result:
        return self.report('GetCreditCardPaymentBoxRejectCSV', parameters, ReportFormat.CSV)

    def get_credit_card_reject(self, parameters: dict) -> Result:
        return self.report('GetCreditCardReject', parameters, ReportFormat.AR)

    def get_credit_card_reject_csv(self, parameters: dict) -> Result:
        return self.report('GetCreditCardRejectCSV', parameters, ReportFormat.CSV)
