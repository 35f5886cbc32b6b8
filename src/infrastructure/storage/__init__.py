# PATH: src/infrastructure/storage/__init__.py
# S3 객체 스토리지 어댑터: IObjectStorage 구현

from src.infrastructure.storage.s3_adapter import S3ObjectStorageAdapter

__all__ = ["S3ObjectStorageAdapter"]
