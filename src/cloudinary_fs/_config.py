"""Filesystem configuration and the option table shown to hosts."""

from __future__ import annotations

import dataclasses

from cloudinary_fs._encoding import DEFAULT_ENCODING, EncodingFlag

BACKEND_NAME = "cloudinary"


@dataclasses.dataclass(frozen=True)
class OptionInfo:
    """Describes one configuration option to a host.

    :param name: Option key.
    :param help: One-line description.
    :param required: Whether the option must be set.
    :param advanced: Whether the option is for advanced use.
    :param secret: Whether the value must be hidden.
    """

    name: str
    help: str
    required: bool = False
    advanced: bool = False
    secret: bool = False


OPTIONS: tuple[OptionInfo, ...] = (
    OptionInfo("cloud_name", "Cloudinary Environment Name", required=True),
    OptionInfo("api_key", "Cloudinary API Key", required=True),
    OptionInfo("api_secret", "Cloudinary API Secret", required=True, secret=True),
    OptionInfo("upload_preset", "Upload Preset to select asset manipulation on upload"),
    OptionInfo("encoding", "The encoding for the backend (comma-separated flag names)", advanced=True),
    OptionInfo("optimistic_search", "Assume the asset is there so will retry Search", advanced=True),
    OptionInfo("root", "Path inside the store used as the filesystem root"),
)


@dataclasses.dataclass(frozen=True)
class FilesystemConfig:
    """Describes a Cloudinary-backed filesystem.

    :param cloud_name: Cloudinary environment (cloud) name.
    :param api_key: API key.
    :param api_secret: API secret. Not shown in ``repr``.
    :param upload_preset: Upload preset applied to every upload.
    :param encoding: Character classes the path codec replaces.
    :param optimistic_search: Retry empty searches while a fresh upload is indexed.
    :param root: Path prefix for all operations (may be empty).
    """

    cloud_name: str
    api_key: str
    api_secret: str = dataclasses.field(repr=False)
    upload_preset: str = ""
    encoding: EncodingFlag = DEFAULT_ENCODING
    optimistic_search: bool = False
    root: str = ""

    def validate(self) -> None:
        """Check that the required options are present.

        :raises ValueError: If a required option is empty.
        """
        for option in OPTIONS:
            if option.required and not str(getattr(self, option.name)).strip():
                raise ValueError(f"Option '{option.name}' is required")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> FilesystemConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        ``encoding`` may be an :class:`EncodingFlag` or a comma-separated string;
        ``optimistic_search`` may be a bool or a ``"true"``/``"false"`` string.

        :raises ValueError: On unknown keys or a bad encoding name.
        """
        known = {option.name for option in OPTIONS}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown options {unknown}. Known options: {sorted(known)}")

        raw_encoding = data.get("encoding", DEFAULT_ENCODING)
        if isinstance(raw_encoding, EncodingFlag):
            encoding = raw_encoding
        else:
            encoding = EncodingFlag.parse(str(raw_encoding))

        raw_optimistic = data.get("optimistic_search", False)
        if isinstance(raw_optimistic, str):
            optimistic = raw_optimistic.strip().lower() in ("1", "true", "yes", "on")
        else:
            optimistic = bool(raw_optimistic)

        return cls(
            cloud_name=str(data.get("cloud_name", "")),
            api_key=str(data.get("api_key", "")),
            api_secret=str(data.get("api_secret", "")),
            upload_preset=str(data.get("upload_preset", "")),
            encoding=encoding,
            optimistic_search=optimistic,
            root=str(data.get("root", "")),
        )
