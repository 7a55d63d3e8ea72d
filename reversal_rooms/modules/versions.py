"""Semantic version helpers.

Comparisons use SemVer precedence, so build metadata never decides
whether one version satisfies or outdates another.
"""

from semantic_version import Version


def parse_version(value: object, *, strict: bool = False) -> Version:
    """Parse a semantic version.

    Args:
        value: A Version, or anything whose str() is a version. Integers
            are accepted; floats are not, since YAML reads ``1.10`` as
            ``1.1`` and the original text is lost.
        strict: Require a full ``MAJOR.MINOR.PATCH`` string instead of
            coercing partial versions such as ``1.0``.

    Returns:
        The parsed Version

    Raises:
        ValueError: If the value is not a usable version
    """
    if isinstance(value, Version):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid version: {value!r}")
    if isinstance(value, float):
        raise ValueError(f"Ambiguous version {value!r}: quote it in YAML (e.g. version: \"1.10\")")

    text = str(value).strip()
    if not text:
        raise ValueError("Invalid version: empty string")
    if strict:
        return Version(text)
    return Version.coerce(text)


def _precedence(version: Version) -> tuple:
    # precedence_key also orders build metadata, so drop it first
    return version.truncate("prerelease").precedence_key


def meets_version(version: Version, minimum: Version) -> bool:
    """Check whether a version satisfies a minimum requirement."""
    return _precedence(version) >= _precedence(minimum)


def outdates(version: Version, other: Version) -> bool:
    """Check whether a version is strictly newer than another."""
    return _precedence(version) > _precedence(other)


__all__ = ["Version", "meets_version", "outdates", "parse_version"]
