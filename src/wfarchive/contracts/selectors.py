"""Label requirement contract."""

from __future__ import annotations

from dataclasses import dataclass

from wfarchive.contracts.enums import SelectorOperator


@dataclass(frozen=True)
class LabelRequirement:
    """One selector clause over a workflow's label set.

    ``operator`` is normally a SelectorOperator; plain strings are accepted
    so that unrecognized operators reach the translator and fail there with
    UnsupportedSelectorError rather than at construction.
    """

    key: str
    operator: SelectorOperator | str
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable of values but store an immutable tuple
        object.__setattr__(self, "values", tuple(self.values))

    def __str__(self) -> str:
        op = str(self.operator)
        if op == SelectorOperator.EXISTS:
            return self.key
        if op == SelectorOperator.DOES_NOT_EXIST:
            return f"!{self.key}"
        if op in (SelectorOperator.IN, SelectorOperator.NOT_IN):
            return f"{self.key} {op} ({','.join(self.values)})"
        if op == SelectorOperator.GREATER_THAN:
            return f"{self.key}>{''.join(self.values)}"
        if op == SelectorOperator.LESS_THAN:
            return f"{self.key}<{''.join(self.values)}"
        return f"{self.key}{op}{','.join(self.values)}"
