"""Error taxonomy shared by the TourAPI client and the recommender."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    AUTH_FAILED = "auth_failed"
    CREDENTIAL_NOT_REGISTERED = "credential_not_registered"
    UPSTREAM_HTTP_ERROR = "upstream_http_error"
    UNEXPECTED_RESPONSE_FORMAT = "unexpected_response_format"
    UPSTREAM_API_ERROR = "upstream_api_error"
    NETWORK_ERROR = "network_error"
    INVALID_QUERY = "invalid_query"
    NO_RESULTS = "no_results"


# Kinds the user can only fix by changing configuration.
SETUP_KINDS = frozenset(
    {
        ErrorKind.MISSING_CREDENTIAL,
        ErrorKind.AUTH_FAILED,
        ErrorKind.CREDENTIAL_NOT_REGISTERED,
    }
)

_HTTP_STATUS = {
    ErrorKind.MISSING_CREDENTIAL: 503,
    ErrorKind.AUTH_FAILED: 502,
    ErrorKind.CREDENTIAL_NOT_REGISTERED: 502,
    ErrorKind.UPSTREAM_HTTP_ERROR: 502,
    ErrorKind.UNEXPECTED_RESPONSE_FORMAT: 502,
    ErrorKind.UPSTREAM_API_ERROR: 502,
    ErrorKind.NETWORK_ERROR: 504,
    ErrorKind.INVALID_QUERY: 400,
    ErrorKind.NO_RESULTS: 404,
}


def http_status_for(kind: Optional[ErrorKind]) -> int:
    if kind is None:
        return 500
    return _HTTP_STATUS.get(kind, 500)


MISSING_CREDENTIAL_MESSAGE = (
    "관광공사 서비스키({primary})가 설정되지 않았습니다.\n"
    "설정 방법: 환경 변수 {primary}(또는 {fallback})에 공공데이터포털에서 발급받은 서비스키를 입력하거나, "
    "backend/.env 파일에 {primary}=<서비스키> 를 추가한 뒤 서버를 다시 시작해주세요."
)


class TourError(RuntimeError):
    """A failure surfaced to the caller, with a user-facing Korean message."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.code = code

    @property
    def needs_setup(self) -> bool:
        return self.kind in SETUP_KINDS

    @property
    def http_status(self) -> int:
        return http_status_for(self.kind)

    def __repr__(self) -> str:
        return f"TourError(kind={self.kind.value!r}, status={self.status!r}, code={self.code!r})"


def missing_credential(primary: str = "KTO_API_KEY", fallback: str = "API_KEY") -> TourError:
    return TourError(
        ErrorKind.MISSING_CREDENTIAL,
        MISSING_CREDENTIAL_MESSAGE.format(primary=primary, fallback=fallback),
    )


def auth_failed() -> TourError:
    return TourError(
        ErrorKind.AUTH_FAILED,
        "KTO API 인증 실패: 서비스키가 유효하지 않거나 승인 대기 중입니다.",
        status=401,
    )


def credential_not_registered() -> TourError:
    return TourError(
        ErrorKind.CREDENTIAL_NOT_REGISTERED,
        "등록되지 않은 서비스키입니다. 공공데이터포털 마이페이지에서 승인 상태를 확인하세요.",
    )


def upstream_http_error(status: int) -> TourError:
    return TourError(ErrorKind.UPSTREAM_HTTP_ERROR, f"API 서버 응답 오류: {status}", status=status)


def unexpected_response_format() -> TourError:
    return TourError(
        ErrorKind.UNEXPECTED_RESPONSE_FORMAT,
        "API 응답이 JSON 형식이 아닙니다. 서비스키 인증 문제를 확인해주세요.",
    )


def upstream_api_error(code: Optional[str], message: Optional[str]) -> TourError:
    return TourError(
        ErrorKind.UPSTREAM_API_ERROR,
        f"KTO API 에러: {message or '알 수 없는 에러'} ({code})",
        code=code,
    )


def network_error(detail: str) -> TourError:
    return TourError(ErrorKind.NETWORK_ERROR, f"관광공사 API에 연결할 수 없습니다: {detail}")


def invalid_query() -> TourError:
    return TourError(
        ErrorKind.INVALID_QUERY,
        "지역명을 입력하거나 현재 위치 권한을 허용해 주세요.",
    )


def no_results() -> TourError:
    return TourError(ErrorKind.NO_RESULTS, "해당 지역의 관광 정보를 찾을 수 없습니다.")
