from .local_snapshot_repository import LocalJsonSnapshotRepository
from .s3_snapshot_repository import S3SnapshotRepository

__all__ = [
    "LocalJsonSnapshotRepository",
    "S3SnapshotRepository",
]
