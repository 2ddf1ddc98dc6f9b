"""
Semantic version and version range models for forgedeps.

Puppet module metadata declares dependencies as SemVer ranges such as
``">= 4.13.1 < 9.0.0"``, ``"1.x"`` or ``"1.0.0 - 8.0.0"``. Parsing and
precedence are delegated to :mod:`semantic_version`; this module wraps it
so that callers only see forgedeps types and forgedeps errors:

- :class:`Version`: an immutable SemVer 2.0 version (build metadata
  ignored, prereleases below releases).
- :class:`VersionRange`: an npm-style range, a disjunction (``||``) of
  comparator groups combined with AND inside a group.

Example:
    >>> rng = VersionRange.parse(">=1.1.0 <5.0.0")
    >>> rng.satisfies(Version.parse("4.9.9"))
    True
    >>> rng.satisfies(Version.parse("5.0.0"))
    False
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import Optional, Tuple, Union

import semantic_version

from forgedeps.exceptions import MalformedRangeError, MalformedVersionError

# Forge metadata writes ">= 1.0.0 < 2.0.0"; npm syntax needs ">=1.0.0 <2.0.0".
_DETACHED_OPERATOR_RE = re.compile(r"(>=|<=|>|<|=|\^|~)\s+")

_ANY = "*"


@total_ordering
class Version:
    """Immutable semantic version ``major.minor.patch[-pre][+build]``.

    Instances are created with :meth:`parse`. Equality, hashing and
    ordering follow SemVer precedence, so build metadata is ignored.
    """

    __slots__ = ("_semver",)

    def __init__(self, semver: semantic_version.Version) -> None:
        object.__setattr__(self, "_semver", semver)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Version is immutable")

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a SemVer string.

        Args:
            text: Version string, e.g. ``"1.2.3-rc.1+build.5"``.

        Returns:
            The parsed :class:`Version`.

        Raises:
            MalformedVersionError: ``text`` is not a well-formed SemVer string.
        """
        if not isinstance(text, str):
            raise MalformedVersionError(
                f"Version must be a string, got {type(text).__name__}",
                text=repr(text),
            )

        try:
            return cls(semantic_version.Version(text.strip()))
        except ValueError as exc:
            raise MalformedVersionError(
                f"Invalid semantic version: {text!r}",
                text=text,
            ) from exc

    @staticmethod
    def is_valid(text: str) -> bool:
        """Return ``True`` if ``text`` parses as a semantic version."""
        try:
            Version.parse(text)
        except MalformedVersionError:
            return False
        return True

    @property
    def major(self) -> int:
        return self._semver.major

    @property
    def minor(self) -> int:
        return self._semver.minor

    @property
    def patch(self) -> int:
        return self._semver.patch

    @property
    def prerelease(self) -> Tuple[str, ...]:
        return tuple(self._semver.prerelease or ())

    @property
    def build(self) -> Tuple[str, ...]:
        return tuple(self._semver.build or ())

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def precedence(self) -> semantic_version.Version:
        """The underlying version with build metadata stripped."""
        return self._semver.truncate("prerelease")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.precedence == other.precedence

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.precedence < other.precedence

    def __hash__(self) -> int:
        return hash(str(self.precedence))

    def __str__(self) -> str:
        return str(self._semver)

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


class VersionRange:
    """Immutable predicate over :class:`Version`.

    Accepts npm range syntax as used in Puppet ``metadata.json``:
    comparator tokens (``>=1.1.0 <5.0.0``), operators detached from their
    version (``>= 1.1.0``), bare versions (exact match), partial and
    wildcard versions (``1.x``, ``2.3``, ``*``), caret, tilde, hyphen
    ranges (``1.0.0 - 2.0.0``) and ``||`` alternatives. A missing or empty
    expression accepts every version.

    A prerelease only satisfies a range when one of its comparators names
    a prerelease of the same ``major.minor.patch``.

    Attributes:
        text: The expression the range was parsed from.
        expression: Whitespace-normalised expression handed to
            :class:`semantic_version.NpmSpec`.
    """

    __slots__ = ("text", "expression", "_spec")

    def __init__(self, expression: str, spec: semantic_version.NpmSpec, text: str = "") -> None:
        object.__setattr__(self, "expression", expression)
        object.__setattr__(self, "_spec", spec)
        object.__setattr__(self, "text", text)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("VersionRange is immutable")

    @classmethod
    def parse(cls, text: Optional[str]) -> "VersionRange":
        """Parse a range expression.

        Raises:
            MalformedRangeError: The expression has an empty ``||``
                alternative, or a token that is not a valid version or
                comparator.
        """
        if text is None:
            text = ""
        if not isinstance(text, str):
            raise MalformedRangeError(
                f"Version range must be a string, got {type(text).__name__}",
                text=repr(text),
            )

        expression = _normalize(text)
        try:
            spec = semantic_version.NpmSpec(expression)
        except ValueError as exc:
            raise MalformedRangeError(
                f"Invalid version range {text!r}: {exc}",
                text=text,
            ) from exc

        return cls(expression, spec, text)

    def satisfies(self, version: Version) -> bool:
        """Return ``True`` if ``version`` falls within this range."""
        return self._spec.match(version.precedence)

    def __contains__(self, version: Union[Version, str]) -> bool:
        if isinstance(version, str):
            version = Version.parse(version)
        return self.satisfies(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return self.expression == other.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"VersionRange({self.expression!r})"


def _normalize(text: str) -> str:
    """Collapse whitespace and attach detached operators to their versions."""
    stripped = text.strip()
    if not stripped:
        return _ANY

    groups = []
    for raw_group in stripped.split("||"):
        group = " ".join(_DETACHED_OPERATOR_RE.sub(r"\1", raw_group).split())
        if not group:
            raise MalformedRangeError(
                f"Empty alternative in version range: {text!r}",
                text=text,
            )
        groups.append(group)
    return " || ".join(groups)
