"""Step-by-step explanation trail produced while solving."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator


@dataclass(frozen=True)
class Step:
    """One explanation entry: a short title and a descriptive body."""

    title: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body}

    def __str__(self) -> str:
        return f"{self.title}: {self.body}"


class Explanation:
    """Append-only sequence of steps.

    An explanation belongs to the call that created it. Steps can be added
    but never removed or rewritten; ``steps`` returns an immutable view.
    """

    __slots__ = ("_steps",)

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: list[Step] = list(steps)

    def add(self, title: str, body: str) -> Explanation:
        """Append a step and return self so calls can be chained."""
        self._steps.append(Step(title, body))
        return self

    def extend(self, steps: Iterable[Step]) -> Explanation:
        for step in steps:
            if not isinstance(step, Step):
                raise TypeError(f"Expected Step, got {type(step).__name__}")
            self._steps.append(step)
        return self

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    def titles(self) -> list[str]:
        return [step.title for step in self._steps]

    def find(self, title: str) -> Step | None:
        """First step with the given title (case-insensitive), or None."""
        wanted = title.lower()
        for step in self._steps:
            if step.title.lower() == wanted:
                return step
        return None

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(tuple(self._steps))

    def __bool__(self) -> bool:
        return bool(self._steps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Explanation):
            return NotImplemented
        return self._steps == other._steps

    __hash__ = None

    def to_text(self) -> str:
        return "\n".join(
            f"{index}. {step.title}: {step.body}"
            for index, step in enumerate(self._steps, start=1)
        )

    def to_dict(self) -> list[dict[str, Any]]:
        """Convert to a JSON-serializable list of steps."""
        return [step.to_dict() for step in self._steps]

    def __repr__(self) -> str:
        return f"Explanation({self.titles()!r})"
