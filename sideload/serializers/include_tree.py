"""
Sideload Include Trees — which associations get serialized, at which depth.

An include specification arrives from the request (``?include=...``) or
from code, and is parsed into a prefix tree keyed by association name::

    tree = IncludeTree.from_include_args("comments.author,tags")
    tree.includes("comments")                    # True
    tree.includes("author")                      # False
    tree.child_for("comments").includes("author")  # True

Accepted inputs:

- ``"comments.author,tags"``: comma-separated dotted paths
- ``["comments.author", "tags"]``: a sequence of such strings
- ``["comments", {"author": ["posts"]}]``: nested sequences/mappings
- ``"*"`` (or ``"**"``): every association at every depth. The child of a
  wildcard node is the node itself unless a more specific path such as
  ``"*.comments"`` narrows it.
- ``None`` / ``""`` / ``[]``: the default tree, every association one level
  deep and nothing below.

Malformed names are kept literally and simply never match.
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, Iterable, Mapping, Optional

WILDCARDS = frozenset({"*", "**"})


class IncludeTree:
    """
    A node of a parsed include specification.

    Nodes are built once per request by ``from_include_args`` and only read
    afterwards; ``EMPTY`` and ``DEFAULT`` are shared and must not be mutated.
    """

    __slots__ = ("_children", "_wildcard", "_wildcard_child")

    EMPTY: "IncludeTree"
    DEFAULT: "IncludeTree"

    def __init__(
        self,
        children: Optional[Dict[str, "IncludeTree"]] = None,
        *,
        wildcard: bool = False,
        wildcard_child: Optional["IncludeTree"] = None,
    ):
        self._children: Dict[str, IncludeTree] = dict(children or {})
        self._wildcard = wildcard
        # None means "a wildcard node is its own child"
        self._wildcard_child = wildcard_child

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_include_args(cls, include: Any = None) -> "IncludeTree":
        """
        Build a tree from any supported include specification.

        An ``IncludeTree`` is returned unchanged; blank input yields
        ``IncludeTree.DEFAULT``.
        """
        if isinstance(include, IncludeTree):
            return include
        if include is None or include == "" or (
            isinstance(include, (list, tuple, set, frozenset, Mapping)) and not include
        ):
            return cls.DEFAULT

        tree = cls()
        tree._merge(include)
        return tree

    parse = from_include_args

    def _merge(self, include: Any) -> None:
        if include is None or include is True:
            return
        if isinstance(include, IncludeTree):
            self._merge_tree(include)
        elif isinstance(include, str):
            for path in include.split(","):
                segments = [seg.strip() for seg in path.split(".")]
                segments = [seg for seg in segments if seg]
                if segments:
                    self._add_path(segments)
        elif isinstance(include, Mapping):
            for key, value in include.items():
                segments = [seg.strip() for seg in str(key).split(".") if seg.strip()]
                if not segments:
                    continue
                descend = value is not None and value is not True and value != "" and (
                    isinstance(value, str) or not isinstance(value, Iterable) or bool(value)
                )
                node = self._add_path(segments, descend=descend)
                node._merge(value)
        elif isinstance(include, Iterable):
            for item in include:
                self._merge(item)
        else:
            self._add_path([str(include)])

    def _add_path(self, segments: list[str], *, descend: bool = False) -> "IncludeTree":
        """
        Insert a path and return the node its last segment leads to.

        With *descend*, a trailing wildcard gets its own child node so that
        nested specs (``{"*": "comments"}``) narrow the wildcard.
        """
        head, rest = segments[0], segments[1:]

        if head in WILDCARDS:
            self._wildcard = True
            if not rest and not descend:
                return self if self._wildcard_child is None else self._wildcard_child
            # A narrowing path is more specific than a self-recursive wildcard
            if self._wildcard_child is None:
                self._wildcard_child = IncludeTree()
            if not rest:
                return self._wildcard_child
            return self._wildcard_child._add_path(rest, descend=descend)

        child = self._children.get(head)
        if child is None:
            child = self._children[head] = IncludeTree()
        if rest:
            return child._add_path(rest, descend=descend)
        return child

    def _merge_tree(self, other: "IncludeTree") -> None:
        for name, child in other._children.items():
            mine = self._children.get(name)
            if mine is None:
                mine = self._children[name] = IncludeTree()
            mine._merge_tree(child)
        if not other._wildcard:
            return
        if not self._wildcard or self._wildcard_child is None:
            self._wildcard = True
            self._wildcard_child = None if other._wildcard_child is None else other._wildcard_child._copy()
        elif other._wildcard_child is not None:
            self._wildcard_child._merge_tree(other._wildcard_child)

    def _copy(self) -> "IncludeTree":
        tree = IncludeTree()
        tree._merge_tree(self)
        return tree

    # ── Queries ──────────────────────────────────────────────────────────

    def includes(self, name: Any) -> bool:
        """Is the association *name* included at this level?"""
        return self._wildcard or str(name) in self._children

    def child_for(self, name: Any) -> "IncludeTree":
        """
        Subtree used when recursing into association *name*.

        Returns ``IncludeTree.EMPTY`` (matches nothing) when *name* is not
        included.
        """
        child = self._children.get(str(name))
        if child is not None:
            return child
        if self._wildcard:
            return self if self._wildcard_child is None else self._wildcard_child
        return IncludeTree.EMPTY

    def __contains__(self, name: Any) -> bool:
        return self.includes(name)

    def __getitem__(self, name: Any) -> "IncludeTree":
        return self.child_for(name)

    @property
    def is_wildcard(self) -> bool:
        return self._wildcard

    @property
    def is_empty(self) -> bool:
        return not self._wildcard and not self._children

    def keys(self) -> list[str]:
        """Explicitly named associations at this level."""
        return list(self._children)

    # ── Canonical form ───────────────────────────────────────────────────

    def to_spec(self) -> str:
        """
        Canonical, order-independent description of the tree shape.

        Two trees that include the same associations produce the same
        string. ``**`` marks a self-recursive wildcard; this form is a
        fingerprint and is not meant to be parsed back.
        """
        parts = []
        for name in sorted(self._children):
            sub = self._children[name].to_spec()
            parts.append(f"{name}({sub})" if sub else name)
        if self._wildcard:
            if self._wildcard_child is None:
                parts.append("**")
            elif self._wildcard_child.is_empty:
                parts.append("*")
            else:
                parts.append(f"*({self._wildcard_child.to_spec()})")
        return ",".join(parts)

    def digest(self, length: int = 12) -> str:
        """Short stable hash of ``to_spec()``, used in cache keys."""
        return hashlib.sha1(self.to_spec().encode("utf-8")).hexdigest()[:length]

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, IncludeTree):
            return NotImplemented
        return self.to_spec() == other.to_spec()

    def __hash__(self) -> int:
        return hash(self.to_spec())

    def __repr__(self) -> str:
        return f"<IncludeTree({self.to_spec() or '-'})>"


IncludeTree.EMPTY = IncludeTree()
IncludeTree.DEFAULT = IncludeTree(wildcard=True, wildcard_child=IncludeTree.EMPTY)
