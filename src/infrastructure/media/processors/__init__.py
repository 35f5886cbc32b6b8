from .avatar import AvatarProcessor
from .file import FileProcessor
from .report import ReportProcessor
from .thumbnail import ThumbnailProcessor
from .video import VideoProcessor

__all__ = [
    "AvatarProcessor",
    "FileProcessor",
    "ReportProcessor",
    "ThumbnailProcessor",
    "VideoProcessor",
]
