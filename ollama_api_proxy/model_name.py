"""Parsing, validation and display of model names such as "host/namespace/model:tag"."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum

MISSING_PART = "!MISSING!"

DEFAULT_HOST = "registry.ollama.ai"
DEFAULT_NAMESPACE = "library"
DEFAULT_TAG = "latest"


class UnqualifiedNameError(ValueError):
    """A name lacks one or more of its parts."""


class _PartKind(Enum):
    HOST = "host"
    NAMESPACE = "namespace"
    MODEL = "model"
    TAG = "tag"
    DIGEST = "digest"


@dataclass(frozen=True)
class Name:
    """A structured model name; not guaranteed to be valid."""

    host: str = ""
    namespace: str = ""
    model: str = ""
    tag: str = ""

    def __str__(self) -> str:
        text = ""
        if self.host:
            text += self.host + "/"
        if self.namespace:
            text += self.namespace + "/"
        text += self.model
        if self.tag:
            text += ":" + self.tag
        return text

    def display_shortest(self) -> str:
        """Return the shortest form, leaving out default host and namespace."""
        prefix = ""
        if not _equal_fold(self.host, DEFAULT_HOST):
            prefix = f"{self.host}/{self.namespace}/"
        elif not _equal_fold(self.namespace, DEFAULT_NAMESPACE):
            prefix = f"{self.namespace}/"
        return f"{prefix}{self.model}:{self.tag}"

    def is_valid(self) -> bool:
        """Report whether every part is present and valid."""
        return self.is_fully_qualified()

    def is_fully_qualified(self) -> bool:
        """Report whether host, namespace, model and tag are present and valid."""
        return (
            _is_valid_part(_PartKind.HOST, self.host)
            and _is_valid_part(_PartKind.NAMESPACE, self.namespace)
            and _is_valid_part(_PartKind.MODEL, self.model)
            and _is_valid_part(_PartKind.TAG, self.tag)
        )

    def filepath(self) -> str:
        """Return host/namespace/model/tag joined with the system separator."""
        if not self.is_fully_qualified():
            raise ValueError("illegal attempt to get filepath of invalid name")
        return os.path.normpath(os.path.join(self.host, self.namespace, self.model, self.tag))

    def equal_fold(self, other: Name) -> bool:
        """Compare two names part by part, ignoring case."""
        return (
            _equal_fold(self.host, other.host)
            and _equal_fold(self.namespace, other.namespace)
            and _equal_fold(self.model, other.model)
            and _equal_fold(self.tag, other.tag)
        )


def unqualified(name: Name) -> UnqualifiedNameError:
    """Build the error reported for a name that is not fully qualified."""
    return UnqualifiedNameError(f"unqualified name: {name}")


def default_name() -> Name:
    """Return a name holding the default host, namespace and tag."""
    return Name(host=DEFAULT_HOST, namespace=DEFAULT_NAMESPACE, tag=DEFAULT_TAG)


def parse_name(s: str) -> Name:
    """Parse s and fill in missing host, namespace and tag with the defaults."""
    return merge(parse_name_bare(s), default_name())


def parse_name_bare(s: str) -> Name:
    """Parse s into a Name without applying any defaults."""
    tag = ""
    if s.rfind(":") > s.rfind("/"):
        s, tag, _ = _cut_promised(s, ":")

    s, model, promised = _cut_promised(s, "/")
    if not promised:
        return Name(model=s, tag=tag)

    s, namespace, promised = _cut_promised(s, "/")
    if not promised:
        return Name(namespace=s, model=model, tag=tag)

    scheme, separator, rest = s.partition("://")
    host = rest if separator else scheme
    return Name(host=host, namespace=namespace, model=model, tag=tag)


def parse_name_from_filepath(s: str) -> Name:
    """Parse a host/namespace/model/tag path; return an empty Name if it does not fit."""
    parts = s.split(os.sep)
    if len(parts) != 4:
        return Name()
    name = Name(*parts)
    return name if name.is_fully_qualified() else Name()


def merge(a: Name, b: Name) -> Name:
    """Fill the empty host, namespace and tag of a from b."""
    return replace(
        a,
        host=a.host or b.host,
        namespace=a.namespace or b.namespace,
        tag=a.tag or b.tag,
    )


def is_valid_namespace(s: str) -> bool:
    """Report whether s is a valid namespace."""
    return _is_valid_part(_PartKind.NAMESPACE, s)


def _equal_fold(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _is_alphanumeric_or_underscore(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "_")


def _is_valid_part(kind: _PartKind, s: str) -> bool:
    limit = 350 if kind is _PartKind.HOST else 80
    if not 1 <= len(s.encode()) <= limit:
        return False
    if not _is_alphanumeric_or_underscore(s[0]):
        return False
    for c in s[1:]:
        if c in "_-":
            continue
        if c == ".":
            if kind is _PartKind.NAMESPACE:
                return False
            continue
        if c == ":":
            if kind not in (_PartKind.HOST, _PartKind.DIGEST):
                return False
            continue
        if not _is_alphanumeric_or_underscore(c):
            return False
    return True


def _cut_promised(s: str, sep: str) -> tuple[str, str, bool]:
    before, found, after = s.rpartition(sep)
    if not found:
        return s, "", False
    return before or MISSING_PART, after or MISSING_PART, True