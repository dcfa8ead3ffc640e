from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import (
    Classification,
    EquivalenceClass,
    FailureKind,
    Outcome,
    Payload,
    Verdict,
)
from .policies import ComparisonPolicy, exact_match, resolve_policy

__all__ = ["Comparator"]


@dataclass(slots=True)
class _Group:
    representative: Payload
    members: list[str] = field(default_factory=list)

    def freeze(self) -> EquivalenceClass:
        return EquivalenceClass(members=tuple(self.members), payload=self.representative)


class Comparator:
    """Partition per-endpoint outcomes into equivalence classes and rank latency.

    Pure: holds only the comparison policy and never mutates its inputs.
    """

    def __init__(
        self,
        policy: str | ComparisonPolicy = exact_match,
        *,
        agree_on_shared_errors: bool = False,
    ) -> None:
        self._policy = resolve_policy(policy)
        self._agree_on_shared_errors = agree_on_shared_errors

    @property
    def policy(self) -> ComparisonPolicy:
        return self._policy

    def _partition(self, outcomes: Sequence[Outcome]) -> list[_Group]:
        groups: list[_Group] = []
        for outcome in outcomes:
            payload = outcome.payload
            if payload is None:
                continue
            for group in groups:
                if self._policy(group.representative, payload):
                    group.members.append(outcome.endpoint.name)
                    break
            else:
                groups.append(_Group(representative=payload, members=[outcome.endpoint.name]))
        return groups

    @staticmethod
    def _application_error_signatures(outcomes: Sequence[Outcome]) -> set[tuple] | None:
        """Distinct error signatures, or None unless every endpoint answered with an error."""

        signatures = set()
        for outcome in outcomes:
            failure = outcome.failure
            if failure is None or failure.kind is not FailureKind.APPLICATION_ERROR:
                return None
            signatures.add(failure.signature())
        return signatures

    def classify(
        self, outcomes: Sequence[Outcome]
    ) -> tuple[Classification, tuple[EquivalenceClass, ...], tuple[str, ...]]:
        groups = self._partition(outcomes)
        failed = tuple(o.endpoint.name for o in outcomes if not o.ok)
        frozen = tuple(group.freeze() for group in groups)
        successes = len(outcomes) - len(failed)

        if successes == 0:
            signatures = self._application_error_signatures(outcomes)
            if signatures is None or len(outcomes) < 2:
                return Classification.INSUFFICIENT_DATA, frozen, failed
            if len(signatures) > 1:
                return Classification.ALL_DISAGREE, frozen, failed
            if self._agree_on_shared_errors:
                return Classification.ALL_AGREE, frozen, failed
            return Classification.INSUFFICIENT_DATA, frozen, failed
        if failed or len(groups) > 1:
            return Classification.PARTIAL_AGREEMENT, frozen, failed
        return Classification.ALL_AGREE, frozen, failed

    @staticmethod
    def rank(outcomes: Sequence[Outcome]) -> tuple[str, ...]:
        # sorted() is stable, so ties keep configured endpoint order
        ranked = sorted(
            (outcome for outcome in outcomes if outcome.ok),
            key=lambda outcome: outcome.elapsed_ms,
        )
        return tuple(outcome.endpoint.name for outcome in ranked)

    def compare(self, seq: int, outcomes: Sequence[Outcome]) -> Verdict:
        classification, groups, failed = self.classify(outcomes)
        return Verdict(
            seq=seq,
            outcomes=tuple(outcomes),
            classification=classification,
            groups=groups,
            failed=failed,
            ranking=self.rank(outcomes),
        )
