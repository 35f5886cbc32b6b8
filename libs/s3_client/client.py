# libs/s3_client/client.py

from typing import Any, Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

# ---------------------------------------------------------------------
# S3 Client
# ---------------------------------------------------------------------


def build_s3_client(
    *,
    region: str,
    endpoint_url: Optional[str] = None,
    max_pool_connections: int = 16,
) -> Any:
    """
    S3 클라이언트 생성 (모듈 전역 싱글톤 대신 호출부에서 1회 생성 후 주입).

    max_pool_connections: 병렬 업로드 동시성보다 크거나 같아야 커넥션 대기 없음
    """
    return boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url,
        config=Config(
            signature_version="s3v4",
            max_pool_connections=max_pool_connections,
            retries={"max_attempts": 5, "mode": "standard"},
        ),
    )


# ---------------------------------------------------------------------
# API
# ---------------------------------------------------------------------

def head_object(s3: Any, bucket: str, key: str) -> Tuple[bool, int, str]:
    """
    Check object exists + size (bytes) + content type
    """
    try:
        resp = s3.head_object(Bucket=bucket, Key=key)
        return (
            True,
            int(resp.get("ContentLength") or 0),
            resp.get("ContentType") or "application/octet-stream",
        )

    except ClientError as e:
        code = (e.response.get("Error") or {}).get("Code")
        if code in ("404", "NoSuchKey", "NotFound"):
            return False, 0, ""
        raise


def public_object_url(
    *,
    bucket: str,
    key: str,
    region: str,
    public_base_url: Optional[str] = None,
) -> str:
    """
    처리 완료 객체의 공개 URL.

    - PUBLIC_MEDIA_BASE_URL(CDN) 설정 시: {base}/{key}
    - 미설정 시: S3 virtual-hosted style URL
    """
    key = key.lstrip("/")
    if public_base_url:
        return f"{public_base_url.rstrip('/')}/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
