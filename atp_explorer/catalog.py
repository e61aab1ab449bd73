"""
Command catalog for the XRPC explorer.

Static registry of supported XRPC methods and their parameter schemas. Every
command shares one declarative schema; endpoints differ only in their
ParameterSpec data.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from atp_explorer.errors import CommandNotFoundError, ParameterValidationError


class ParameterKind(Enum):
    """Value kinds used to validate non-empty parameter input."""

    TEXT = "text"
    ACTOR = "actor"
    DID = "did"
    AT_URI = "at-uri"
    INTEGER = "integer"
    CID = "cid"


_HANDLE_RE = re.compile(
    r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
)
_DID_RE = re.compile(r"^did:[a-z]+:[a-zA-Z0-9._:%-]+$")
_CID_RE = re.compile(r"^[a-zA-Z0-9]+$")


@dataclass(frozen=True)
class ParameterSpec:
    """
    Parameter schema entry.

    Attributes:
        name: Query parameter name.
        description: Human-readable description shown in the prompt.
        optional: True if the parameter may be left empty.
        default: Value applied when an optional parameter is left empty.
        kind: Value kind checked on non-empty input.
    """

    name: str
    description: str
    optional: bool = False
    default: Optional[str] = None
    kind: ParameterKind = ParameterKind.TEXT

    @property
    def required(self) -> bool:
        return not self.optional

    @property
    def hint(self) -> str:
        """Short validation hint for the prompt line."""
        hints = {
            ParameterKind.TEXT: "any text",
            ParameterKind.ACTOR: "handle or DID",
            ParameterKind.DID: "DID, e.g. did:plc:...",
            ParameterKind.AT_URI: "at:// URI",
            ParameterKind.INTEGER: "whole number",
            ParameterKind.CID: "CID",
        }
        text = hints[self.kind]
        if self.optional:
            text += f", optional (default {self.default})" if self.default else ", optional"
        else:
            text += ", must be non-empty"
        return text

    def validate(self, value: str) -> None:
        """
        Check a non-empty value against this parameter's kind.

        Args:
            value: Entered text.

        Raises:
            ParameterValidationError: If the value does not fit the kind.
        """
        if self.kind is ParameterKind.TEXT:
            return
        if self.kind is ParameterKind.INTEGER:
            if not value.isdigit():
                raise ParameterValidationError(self.name, f"{self.name} must be a whole number")
        elif self.kind is ParameterKind.DID:
            if not _DID_RE.match(value):
                raise ParameterValidationError(self.name, f"{self.name} must be a DID (did:method:id)")
        elif self.kind is ParameterKind.ACTOR:
            if not (_HANDLE_RE.match(value) or _DID_RE.match(value)):
                raise ParameterValidationError(
                    self.name, f"{self.name} must be a handle-like string or a DID"
                )
        elif self.kind is ParameterKind.AT_URI:
            if not value.startswith("at://") or len(value) <= len("at://"):
                raise ParameterValidationError(self.name, f"{self.name} must be an at:// URI")
        elif self.kind is ParameterKind.CID:
            if not _CID_RE.match(value):
                raise ParameterValidationError(self.name, f"{self.name} must be a CID")


@dataclass(frozen=True)
class CommandSpec:
    """
    Catalog entry for one XRPC method.

    Attributes:
        name: XRPC method NSID, unique within the catalog.
        description: Command description.
        parameters: Ordered parameter schema.
        encoding: Response encoding, sent as the Accept header.
    """

    name: str
    description: str
    parameters: Tuple[ParameterSpec, ...] = field(default_factory=tuple)
    encoding: str = "application/json"

    @property
    def has_parameters(self) -> bool:
        return len(self.parameters) > 0


class CommandCatalog:
    """
    Read-only registry of CommandSpec entries in declaration order.
    """

    def __init__(self, commands: Iterable[CommandSpec]):
        """
        Initialize catalog.

        Args:
            commands: Command specs in display order.

        Raises:
            ValueError: If two commands share a name.
        """
        self._commands: Tuple[CommandSpec, ...] = tuple(commands)
        self._by_name = {}
        for cmd in self._commands:
            if cmd.name in self._by_name:
                raise ValueError(f"Duplicate command in catalog: {cmd.name}")
            self._by_name[cmd.name] = cmd

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def lookup(self, name: str) -> CommandSpec:
        """
        Find command by exact name.

        Raises:
            CommandNotFoundError: If no command has this name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise CommandNotFoundError(name) from None

    def all_commands(self) -> Tuple[CommandSpec, ...]:
        """All commands in catalog order."""
        return self._commands

    def index_of(self, name: str) -> int:
        return self._commands.index(self.lookup(name))

    def match_prefix(self, text: str) -> List[CommandSpec]:
        """
        Rank commands for autocomplete.

        Prefix matches come first, then commands that merely contain the text.
        Within each group catalog order is kept. Matching ignores case.

        Args:
            text: Typed buffer.

        Returns:
            Matching commands, best first.
        """
        if not text:
            return list(self._commands)

        needle = text.lower()
        prefix = []
        substring = []
        for cmd in self._commands:
            name = cmd.name.lower()
            if name.startswith(needle):
                prefix.append(cmd)
            elif needle in name:
                substring.append(cmd)
        return prefix + substring


_ACTOR = ParameterSpec("actor", "The handle or DID of the actor", kind=ParameterKind.ACTOR)
_LIMIT_50 = ParameterSpec(
    "limit", "Number of results", optional=True, default="50", kind=ParameterKind.INTEGER
)
_CURSOR = ParameterSpec("cursor", "Pagination cursor", optional=True)

# Default catalog of read-only XRPC queries
DEFAULT_COMMANDS: List[CommandSpec] = [
    CommandSpec(
        "app.bsky.actor.getProfile",
        "Get an actor's profile details",
        (_ACTOR,),
    ),
    CommandSpec(
        "app.bsky.feed.getTimeline",
        "Get the user's home timeline",
        (_LIMIT_50, _CURSOR),
    ),
    CommandSpec(
        "com.atproto.identity.resolveHandle",
        "Resolve a handle (domain name) to a DID",
        (ParameterSpec("handle", "The handle to resolve", kind=ParameterKind.ACTOR),),
    ),
    CommandSpec(
        "app.bsky.feed.getPostThread",
        "Get a thread of posts by a post URI",
        (
            ParameterSpec(
                "uri", "The URI of the post used as entry point", kind=ParameterKind.AT_URI
            ),
            ParameterSpec(
                "depth",
                "How many levels of reply depth should be included in the response",
                optional=True,
                default="6",
                kind=ParameterKind.INTEGER,
            ),
            ParameterSpec(
                "parentHeight",
                "How many levels of parent (and grandparent, etc) post to include",
                optional=True,
                default="80",
                kind=ParameterKind.INTEGER,
            ),
        ),
    ),
    CommandSpec(
        "app.bsky.feed.getAuthorFeed",
        "Get a feed of posts by an actor",
        (
            ParameterSpec("actor", "The handle or DID of the author", kind=ParameterKind.ACTOR),
            _LIMIT_50,
            _CURSOR,
        ),
    ),
    CommandSpec(
        "app.bsky.graph.getFollowers",
        "Get a list of an actor's followers",
        (_ACTOR, _LIMIT_50, _CURSOR),
    ),
    CommandSpec(
        "com.atproto.server.describeServer",
        "Describes the server's account creation requirements and capabilities.",
    ),
    CommandSpec(
        "com.atproto.sync.listBlobs",
        "List of blob CIDs for an account",
        (
            ParameterSpec("did", "The DID of the account", kind=ParameterKind.DID),
            ParameterSpec("since", "Optional revision of repo to list blobs since", optional=True),
            ParameterSpec(
                "limit", "Number of results", optional=True, default="500", kind=ParameterKind.INTEGER
            ),
            _CURSOR,
        ),
    ),
    CommandSpec(
        "com.atproto.sync.getBlob",
        "Get a blob associated with a given account. Returns the full blob as originally uploaded.",
        (
            ParameterSpec("did", "The DID of the account", kind=ParameterKind.DID),
            ParameterSpec("cid", "The CID of the blob to fetch", kind=ParameterKind.CID),
        ),
        encoding="*/*",
    ),
]


def default_catalog() -> CommandCatalog:
    """Build the catalog of built-in commands."""
    return CommandCatalog(DEFAULT_COMMANDS)
