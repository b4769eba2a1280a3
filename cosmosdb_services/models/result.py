from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "An internal error occurred while accessing the database"

_FAILURES = {
    HTTPStatus.BAD_REQUEST,
    HTTPStatus.NOT_FOUND,
    HTTPStatus.CONFLICT,
    HTTPStatus.PRECONDITION_FAILED,
    HTTPStatus.TOO_MANY_REQUESTS,
}


def _classify(code: Optional[int]) -> HTTPStatus:
    try:
        status = HTTPStatus(int(code))
    except (TypeError, ValueError):
        return HTTPStatus.INTERNAL_SERVER_ERROR
    if 200 <= status < 300 or status in _FAILURES:
        return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


@dataclass
class Result:
    """
    Outcome of a database call: a success status or a classified failure.
    """
    status: HTTPStatus
    error: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        return 200 <= self.status < 300

    @property
    def failed(self) -> bool:
        return not self.succeeded

    @property
    def is_not_found(self) -> bool:
        return self.status == HTTPStatus.NOT_FOUND

    @property
    def is_no_content(self) -> bool:
        return self.status == HTTPStatus.NO_CONTENT

    @classmethod
    def ok(cls) -> "Result":
        return cls(HTTPStatus.OK)

    @classmethod
    def created(cls) -> "Result":
        return cls(HTTPStatus.CREATED)

    @classmethod
    def no_content(cls) -> "Result":
        return cls(HTTPStatus.NO_CONTENT)

    @classmethod
    def bad_request(cls, error: str, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.BAD_REQUEST, error, exception)

    @classmethod
    def not_found(cls, error: Optional[str] = None) -> "Result":
        return cls(HTTPStatus.NOT_FOUND, error)

    @classmethod
    def conflict(cls, error: str, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.CONFLICT, error, exception)

    @classmethod
    def precondition_failed(cls, error: str, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.PRECONDITION_FAILED, error, exception)

    @classmethod
    def too_many_requests(cls, error: str, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.TOO_MANY_REQUESTS, error, exception)

    @classmethod
    def internal_error(cls, error: str, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.INTERNAL_SERVER_ERROR, error, exception)

    @classmethod
    def internal_error_with_generic_error_message(cls, exception: Optional[BaseException] = None) -> "Result":
        return cls(HTTPStatus.INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE, exception)

    @classmethod
    def from_status_code(cls, code: Optional[int], error: Optional[str] = None,
                         exception: Optional[BaseException] = None) -> "Result":
        """
        Maps an SDK status code onto a result. 2xx codes are kept as success,
        known client errors keep their status and everything else becomes
        an internal error.
        """
        status = _classify(code)
        if status == HTTPStatus.INTERNAL_SERVER_ERROR and error is None:
            error = GENERIC_ERROR_MESSAGE
        if 200 <= status < 300:
            return cls(status)
        return cls(status, error, exception)


@dataclass
class DataResult(Result, Generic[T]):
    """
    Result that carries the payload of a successful read.
    """
    data: Optional[T] = None

    @classmethod
    def ok(cls, data: T) -> "DataResult[T]":
        if data is None:
            raise ValueError("DataResult.ok requires data")
        return cls(HTTPStatus.OK, data=data)

    @classmethod
    def created(cls, data: Optional[T] = None) -> "DataResult[T]":
        return cls(HTTPStatus.CREATED, data=data)

    def to_result(self) -> Result:
        return Result(self.status, self.error, self.exception)


@dataclass
class CountResult:
    count: int

    @classmethod
    def from_row(cls, row: Any) -> "CountResult":
        """
        Accepts ``SELECT VALUE COUNT(1)`` rows (bare numbers) as well as
        object rows with a ``count`` key or the unnamed ``$1`` aggregate.
        """
        if isinstance(row, bool):
            raise ValueError(f"Invalid count row: {row!r}")
        if isinstance(row, (int, float)):
            return cls(int(row))
        if isinstance(row, dict):
            for key in ("count", "$1"):
                if key in row:
                    return cls(int(row[key]))
        raise ValueError(f"Invalid count row: {row!r}")
