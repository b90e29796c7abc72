"""Asset service implementations."""

from cloudinary_fs.services._cloudinary import CloudinaryService
from cloudinary_fs.services._memory import MemoryAdapter, MemoryAssetService

__all__ = ["CloudinaryService", "MemoryAdapter", "MemoryAssetService"]
