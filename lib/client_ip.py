"""
클라이언트 IP 판별 유틸리티

프록시/로드밸런서 뒤에서는 X-Forwarded-For 헤더를 우선하고,
없으면 TCP 연결의 원격 주소를 사용합니다.
"""

LOOPBACK_V6 = "::1"
LOOPBACK_V4 = "127.0.0.1"
UNKNOWN_IP = "unknown"


def resolve_client_ip(forwarded_for: str | None, remote_host: str | None) -> str:
    """요청자 IP 판별

    Args:
        forwarded_for: X-Forwarded-For 헤더 값 (쉼표로 구분된 목록일 수 있음)
        remote_host: 연결의 원격 주소

    Returns:
        클라이언트 IP 문자열. 판별할 수 없으면 "unknown"

    Examples:
        >>> resolve_client_ip("203.0.113.7, 10.0.0.1", "10.0.0.1")
        '203.0.113.7'
        >>> resolve_client_ip(None, "::1")
        '127.0.0.1'
    """
    if forwarded_for and forwarded_for.strip():
        # 목록의 첫 번째가 원래 클라이언트
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if remote_host == LOOPBACK_V6:
        return LOOPBACK_V4

    return remote_host or UNKNOWN_IP
