"""Error handling — catching NotFound, AlreadyExists, AmbiguousMatch, etc.

Demonstrates the normalized error hierarchy and how to handle errors
programmatically using structured attributes.
"""

from __future__ import annotations

from datetime import datetime, timezone

from cloudinary_fs import (
    AlreadyExists,
    AmbiguousMatch,
    CloudinaryFSError,
    DirectoryNotFound,
    EmptyUploadRejected,
    Filesystem,
    InvalidPath,
    NotFound,
    RemoteAsset,
    UploadOptions,
)
from cloudinary_fs.services import MemoryAssetService

if __name__ == "__main__":
    service = MemoryAssetService()

    with Filesystem(service, session=service.session()) as fs:
        # --- NotFound ---
        try:
            fs.new_object("nonexistent.txt")
        except NotFound as exc:
            print(f"NotFound: {exc}")
            print(f"  path={exc.path}, backend={exc.backend}")

        # --- AlreadyExists: plain uploads never overwrite ---
        fs.put(b"data", "existing.txt")
        try:
            fs.put(b"new data", "existing.txt")
        except AlreadyExists as exc:
            print(f"AlreadyExists: {exc}")
        fs.put(b"new data", "existing.txt", options=UploadOptions.for_update())
        print("Overwritten with UploadOptions.for_update()")

        # --- EmptyUploadRejected ---
        try:
            fs.put(b"", "empty.txt")
        except EmptyUploadRejected as exc:
            print(f"EmptyUploadRejected: {exc}")

        # --- AmbiguousMatch: two assets claim the same path ---
        now = datetime.now(tz=timezone.utc)
        for public_id in ("dup-1", "dup-2"):
            service.add_asset(
                RemoteAsset(
                    asset_folder="shared",
                    display_name="twin.txt",
                    size=1,
                    created_at=now,
                    uploaded_at=now,
                    public_id=public_id,
                    secure_url=f"memory://{public_id}",
                ),
                b"x",
            )
        try:
            fs.new_object("shared/twin.txt")
        except AmbiguousMatch as exc:
            print(f"AmbiguousMatch: {exc}")

        # --- DirectoryNotFound is a NotFound ---
        try:
            fs.list("no/such/dir")
        except NotFound as exc:
            print(f"{type(exc).__name__}: {exc} (directory={isinstance(exc, DirectoryNotFound)})")

        # --- InvalidPath ---
        try:
            fs.new_object("../escape.txt")
        except InvalidPath as exc:
            print(f"InvalidPath: {exc}")

        # --- Catch-all ---
        try:
            fs.rmdir("")
        except CloudinaryFSError as exc:
            print(f"CloudinaryFSError ({type(exc).__name__}): {exc}")
