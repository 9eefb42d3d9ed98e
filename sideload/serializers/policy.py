"""
Sideload Read Policies — field-level read authorization contract.

The policy engine itself lives outside this package. Serializers only ask
one question of a policy object::

    policy.permitted_attributes_for_reading(namespace) -> ALL | iterable of names

Policies are produced by a finder configured once per process::

    configure(policy_finder=lambda scope, obj: PostPolicy(scope, obj))

A missing finder, a ``None`` policy, or a policy without the method are
all valid states meaning "unrestricted".
"""

from __future__ import annotations

from typing import Any, Callable, FrozenSet, Iterable, Optional, Protocol, Union, runtime_checkable


class _AllAttributes:
    """Sentinel returned by a policy that permits every attribute."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<ALL>"

    def __contains__(self, name: Any) -> bool:
        return True


ALL = _AllAttributes()

PolicyFinder = Callable[[Any, Any], Any]


@runtime_checkable
class ReadPolicy(Protocol):
    """Optional capability: attribute-level read permissions."""

    def permitted_attributes_for_reading(
        self, namespace: Optional[str] = None
    ) -> Union[_AllAttributes, Iterable[str]]:
        ...


def permitted_attributes(policy: Any, namespace: Optional[str] = None) -> Union[_AllAttributes, FrozenSet[str]]:
    """
    Normalize a policy's answer.

    Returns ``ALL`` when *policy* is ``None``, lacks the capability, or
    answers with ``ALL`` (or the string ``"all"``); otherwise a frozenset of
    permitted names.
    """
    if policy is None or not isinstance(policy, ReadPolicy):
        return ALL

    permitted = policy.permitted_attributes_for_reading(namespace)
    if permitted is ALL or permitted == "all" or permitted is None:
        return ALL
    return frozenset(str(name) for name in permitted)
