"""Rebalance strategy that keeps copartitioned topics on the same member."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

Plan = dict[str, dict[str, list[int]]]


class BalanceError(ValueError):
    """Raised when no valid balance plan can be made."""


@dataclass
class MemberMetadata:
    """What a consumer group member announces when joining the group."""

    topics: list[str] = field(default_factory=list)
    user_data: bytes = b""


class Assignment(dict):
    """Partition to offset assignment for the current connection."""

    def __str__(self) -> str:
        return f"Assignment {dict(self)}"

    __repr__ = __str__


def _same_elements(first: Sequence, second: Iterable) -> bool:
    second = list(second)
    if len(first) != len(second):
        return False
    known = set(first)
    return all(item in known for item in second)


class CopartitioningStrategy:
    """Assigns the same partitions of every topic to the same member.

    By default members requesting different sets of topics are tolerated,
    so that processors can be upgraded one at a time. With
    ``fail_on_inconsistent_topics`` such a group is rejected instead.
    """

    def __init__(self, fail_on_inconsistent_topics: bool = False) -> None:
        self.fail_on_inconsistent_topics = fail_on_inconsistent_topics

    def name(self) -> str:
        """Return the name of the strategy."""
        return "copartition"

    def plan(
        self,
        members: Mapping[str, MemberMetadata],
        topics: Mapping[str, Sequence[int]],
    ) -> Plan:
        """Return member -> topic -> partitions for the given group.

        Raises :class:`BalanceError` if the topics are not copartitioned or,
        in strict mode, if members request different topics.
        """
        all_partitions: list[int] = []
        for partitions in topics.values():
            if not all_partitions:
                all_partitions = list(partitions)
            elif not _same_elements(all_partitions, partitions):
                raise BalanceError(
                    "Error balancing. Not all topics are copartitioned. "
                    "All topics need to have the same number of partitions: "
                    f"{dict(topics)!r}"
                )

        all_topics = list(topics)
        for meta in members.values():
            if self.fail_on_inconsistent_topics and not _same_elements(
                all_topics, meta.topics
            ):
                raise BalanceError(
                    "Error balancing. Not all members request the same list of "
                    "topics. A group-name clash might be the reason: "
                    f"{dict(members)!r}"
                )

        member_ids = sorted(members)
        partitions = sorted(all_partitions)
        result: Plan = {}
        if not member_ids:
            return result

        step = len(partitions) / len(member_ids)
        for position, member_id in enumerate(member_ids):
            low = math.floor(position * step + 0.5)
            high = math.floor((position + 1) * step + 0.5)
            assigned = partitions[low:high]
            if not assigned:
                continue
            for topic in members[member_id].topics:
                result.setdefault(member_id, {}).setdefault(topic, []).extend(assigned)
        return result

    def assignment_data(self, member_id: str, topics: Mapping, generation_id: int) -> bytes:
        """Return extra assignment data; this strategy carries none, so it is empty."""
        return b""


COPARTITIONING_STRATEGY = CopartitioningStrategy()
STRICT_COPARTITIONING_STRATEGY = CopartitioningStrategy(fail_on_inconsistent_topics=True)