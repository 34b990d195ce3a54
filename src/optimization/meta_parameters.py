"""Named coefficients controlling the simplex transformations."""

from __future__ import annotations

from typing import Dict, Iterator, Mapping

from .errors import UnknownMetaParameterError

DEFAULT_META_PARAMETERS: Mapping[str, float] = {
    "alpha": 1.0,  # reflection
    "beta": 0.5,  # contraction
    "gamma": 1.0,  # expansion
    "tau": 0.5,  # shrink
}


class MetaParameters:
    """Key/value store of meta-parameters pre-filled with the canonical defaults.

    Values are not range-checked; conventionally ``alpha, gamma > 0`` and ``0 < beta, tau < 1``.
    """

    def __init__(self, overrides: Mapping[str, float] | None = None) -> None:
        self._values: Dict[str, float] = dict(DEFAULT_META_PARAMETERS)
        if overrides:
            self.update(overrides)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float] | None) -> "MetaParameters":
        return cls(mapping)

    def get(self, name: str) -> float:
        try:
            return self._values[name]
        except KeyError:
            raise UnknownMetaParameterError(name) from None

    def set(self, name: str, value: float) -> None:
        self._values[name] = float(value)

    def update(self, mapping: Mapping[str, float]) -> None:
        for name, value in mapping.items():
            self.set(name, value)

    def as_dict(self) -> dict[str, float]:
        return dict(self._values)

    def __getitem__(self, name: str) -> float:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"MetaParameters({self._values!r})"
