"""Configuration — config-as-code, from_dict(), encodings and roots.

Demonstrates building a FilesystemConfig, opening it with open_filesystem(),
and handling a root that names a file.
"""

from __future__ import annotations

from cloudinary_fs import OPTIONS, EncodingFlag, FilesystemConfig, RootIsFile, open_filesystem
from cloudinary_fs.services import MemoryAssetService

if __name__ == "__main__":
    print("Options:")
    for option in OPTIONS:
        flags = [name for name in ("required", "advanced", "secret") if getattr(option, name)]
        print(f"  {option.name:<18} {option.help} {flags or ''}")

    # --- Option 1: Config-as-code ---
    config = FilesystemConfig(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        encoding=EncodingFlag.SLASH | EncodingFlag.CTL,
        root="media",
    )
    print(config)  # api_secret is never shown

    service = MemoryAssetService()
    with open_filesystem(config, service=service, session=service.session()) as fs:
        fs.put(b"\xff\xd8\xff\xe0fake-jpeg-data", "photos/a?b.jpg")
        print(f"{fs}: {[e.remote for e in fs.list('photos')]}")

    # --- Option 2: from_dict() — e.g. loaded from TOML or JSON ---
    raw = {
        "cloud_name": "demo",
        "api_key": "key",
        "api_secret": "secret",
        "encoding": "Slash,LtGt,Ctl,Dot",
        "optimistic_search": "true",
        "root": "media/photos/a?b.jpg",
    }
    try:
        open_filesystem(FilesystemConfig.from_dict(raw), service=service)
    except RootIsFile as exc:
        parent = exc.filesystem
        assert parent is not None
        print(f"Root is a file; using parent {parent.root!r}: {[e.remote for e in parent.list()]}")
