"""
Field-level comparison of boot images.

Used to check that packing the output of an unpack reproduces the original
image: every scalar field and every blob must be equal.
"""

from dataclasses import dataclass, field, fields

from .codec.types import BootImage


@dataclass
class ComparisonResult:
    """Result of comparing two BootImage field sets."""

    passed: bool = True
    errors: list[str] = field(default_factory=list)

    def add_error(self, msg: str) -> None:
        """Add a difference (comparison failed)."""
        self.errors.append(msg)
        self.passed = False

    def __str__(self) -> str:
        """Human-readable summary."""
        lines = ["Comparison PASSED" if self.passed else "Comparison FAILED"]
        if self.errors:
            lines.append(f"Differences ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  - {e}")
        return "\n".join(lines)


def _describe(value) -> str:
    if isinstance(value, bytes):
        return f"{len(value)} bytes"
    if isinstance(value, int):
        return f"{value:#010x}"
    return repr(value)


def compare_images(expected: BootImage, actual: BootImage) -> ComparisonResult:
    """Compare every field of two boot images.

    Args:
        expected: Reference image
        actual: Image to check

    Returns:
        ComparisonResult listing each field that differs
    """
    result = ComparisonResult()
    for f in fields(BootImage):
        a = getattr(expected, f.name)
        b = getattr(actual, f.name)
        if a != b:
            result.add_error(f"{f.name}: expected {_describe(a)}, got {_describe(b)}")
    return result
