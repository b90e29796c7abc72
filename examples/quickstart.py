"""Quickstart — create folders, upload, list and read back with cloudinary-fs.

Demonstrates:
- Building a Filesystem over the in-memory asset service
- Creating a folder and uploading a file
- Listing a directory and reading whole and partial content
"""

from __future__ import annotations

from cloudinary_fs import Directory, Filesystem, RangeOption
from cloudinary_fs.services import MemoryAssetService

if __name__ == "__main__":
    service = MemoryAssetService()

    # Swap in CloudinaryService(cloud_name, api_key, api_secret) for a real account.
    with Filesystem(service, session=service.session()) as fs:
        fs.mkdir("reports/2024")
        fs.put(b"revenue,profit\n100,20\n", "reports/2024/q4.csv")

        for entry in fs.list("reports"):
            kind = "dir " if isinstance(entry, Directory) else "file"
            print(f"{kind} {entry.remote}")

        obj = fs.new_object("reports/2024/q4.csv")
        print(f"Size: {obj.size} bytes, MD5: {obj.md5}")
        print(f"Content: {obj.open().read()!r}")

        # Ranged reads are verified against the requested length
        print(f"Header line: {obj.open(RangeOption(0, 13)).read()!r}")

        obj.update(b"revenue,profit\n120,25\n")
        print(f"Updated size: {obj.size} bytes")

        obj.remove()
        print("Remaining:", [e.remote for e in fs.list("reports/2024")])
