"""
Path resolution for item files.

Every item lives at a file computed from the working directory, a file name
prefix and the item key, unless the caller overrides its path or (when
packing) gives its value directly. Precedence is always:

    value override > path override > default path

The default path is ``<base_directory>/<prefix>-<key>``, or
``<base_directory>/<key>`` in no-prefix mode. When no prefix is given, the
base name of the boot image file is used (``boot.img`` -> ``boot.img-kernel``).
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .items import Item, get_item


class ResolutionSource(enum.Enum):
    """Where a resolved item path came from."""

    PATH_OVERRIDE = "path_override"
    DEFAULT = "default"


@dataclass(frozen=True)
class UsePath:
    """Read or write the item at path."""

    path: Path
    source: ResolutionSource = ResolutionSource.DEFAULT


@dataclass(frozen=True)
class UseValue:
    """Use a literal value supplied on the command line."""

    literal: str


Resolution = UsePath | UseValue


@dataclass(frozen=True)
class ResolutionContext:
    """Per-invocation inputs to path resolution.

    Use create() rather than the constructor; it derives the prefix and
    validates the override keys.
    """

    base_directory: Path
    prefix: str
    no_prefix: bool = False
    path_overrides: Mapping[str, Path] = field(
        default_factory=lambda: MappingProxyType({})
    )
    value_overrides: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def create(
        cls,
        image_path: Path | str,
        base_directory: Path | str | None = None,
        prefix: str | None = None,
        no_prefix: bool = False,
        path_overrides: Mapping[str, Path | str] | None = None,
        value_overrides: Mapping[str, str] | None = None,
    ) -> "ResolutionContext":
        """Build a context for one pack or unpack run.

        Args:
            image_path: Boot image being unpacked or packed; its base name is
                the prefix when none is given
            base_directory: Directory holding the item files (default ".")
            prefix: File name prefix; empty or None means derive it
            no_prefix: Use bare item keys as file names
            path_overrides: Item key -> explicit path
            value_overrides: Item key -> literal value (packing only)

        Raises:
            ValueError: On an unknown item key, or a value override for a
                blob item
        """
        path_overrides = dict(path_overrides or {})
        value_overrides = dict(value_overrides or {})

        for key in path_overrides:
            _lookup(key)
        for key in value_overrides:
            if not _lookup(key).supports_value_override:
                raise ValueError(f"Item {key} cannot be specified by value")

        if no_prefix:
            prefix = ""
        elif not prefix:
            prefix = Path(image_path).name

        return cls(
            base_directory=Path(base_directory) if base_directory else Path("."),
            prefix=prefix,
            no_prefix=no_prefix,
            path_overrides=MappingProxyType(
                {key: Path(path) for key, path in path_overrides.items()}
            ),
            value_overrides=MappingProxyType(value_overrides),
        )

    @property
    def effective_prefix(self) -> str:
        """Text prepended to item keys to form default file names."""
        if self.no_prefix:
            return ""
        return f"{self.prefix}-"

    def default_path(self, item: Item) -> Path:
        return self.base_directory / f"{self.effective_prefix}{item.key}"

    def has_path_override(self, item: Item) -> bool:
        return item.key in self.path_overrides


def _lookup(key: str) -> Item:
    try:
        return get_item(key)
    except KeyError:
        raise ValueError(f"Unknown item: {key}") from None


def resolve(item: Item, context: ResolutionContext) -> Resolution:
    """Decide where an item's value comes from (or goes to)."""
    if item.key in context.value_overrides:
        return UseValue(context.value_overrides[item.key])
    if item.key in context.path_overrides:
        return UsePath(context.path_overrides[item.key], ResolutionSource.PATH_OVERRIDE)
    return UsePath(context.default_path(item))


def describe(item: Item, context: ResolutionContext) -> str:
    """One-line summary of an item's resolution for progress output."""
    resolution = resolve(item, context)
    if isinstance(resolution, UseValue):
        return f"(value) {resolution.literal}"
    return f"(path)  {resolution.path}"
