from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from iats import settings
from .exceptions import RejectRequestException


class ServerId(str, Enum):
    NA = 'NA'
    UK = 'UK'


class ReportFormat(str, Enum):
    AR = 'AR'
    CSV = 'CSV'


class FailureReason(str, Enum):
    # STATUS == "Failure" inside a successful transport response
    STATUS_FAILURE = 'STATUS_FAILURE'
    NO_DATA = 'NO_DATA'
    REJECTED = 'REJECTED'
    RESTRICTED = 'RESTRICTED'


@dataclass(frozen=True)
class Credentials:
    agent_code: str
    password: str = field(repr=False)
    server_id: str = ServerId.NA.value

    def __post_init__(self):
        if self.server_id not in settings.IATS_SERVERS:
            raise ValueError(f"Unknown iATS server id {self.server_id!r}")

    @classmethod
    def from_env(cls) -> 'Credentials':
        return cls(
            agent_code=settings.IATS_AGENT_CODE,
            password=settings.IATS_PASSWORD,
            server_id=settings.IATS_SERVER_ID,
        )

    @property
    def server(self) -> str:
        return settings.IATS_SERVERS[self.server_id]


@dataclass(frozen=True)
class Success:
    data: Any

    ok = True

    def unwrap(self) -> Any:
        return self.data


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    message: str
    code: Optional[str] = None

    ok = False

    def __str__(self):
        return self.message

    def unwrap(self):
        raise RejectRequestException(self)


Result = Union[Success, Failure]
