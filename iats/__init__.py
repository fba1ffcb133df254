from iats.integrations import Credentials, Failure, FailureReason, Success
from iats.integrations.external.process_link import ProcessLink
from iats.integrations.external.report_link import ReportLink

__all__ = [
    'Credentials',
    'Failure',
    'FailureReason',
    'ProcessLink',
    'ReportLink',
    'Success',
]
