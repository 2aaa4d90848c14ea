import json
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .errors import InvalidRepCount, InvalidThreshold
from .ordinal import as_pairing_type


@dataclass(slots=True)
class OpaConfig:
    pairing_type: str = "pairwise"
    diff_threshold: float = 0.0
    cval_method: str = "stochastic"
    nreps: int = 1000
    shuffle_across_individuals: bool = False
    seed: int | None = None
    max_exact_conditions: int = 10
    pcc_threshold: float = 75.0

    def __post_init__(self) -> None:
        self.pairing_type = as_pairing_type(self.pairing_type).value
        if self.cval_method not in {"stochastic", "exact"}:
            raise ValueError("cval_method must be 'stochastic' or 'exact'")
        self.diff_threshold = float(self.diff_threshold)
        if not (self.diff_threshold >= 0.0):
            raise InvalidThreshold("diff_threshold must be >= 0.0")
        if isinstance(self.nreps, bool) or int(self.nreps) != self.nreps or self.nreps < 1:
            raise InvalidRepCount("nreps must be >= 1")
        self.nreps = int(self.nreps)
        if self.seed is not None:
            self.seed = int(self.seed)
        if self.max_exact_conditions < 2:
            raise ValueError("max_exact_conditions must be >= 2")
        if self.max_exact_conditions > 12:
            warnings.warn(
                "max_exact_conditions above 12 allows more than 479001600 permutations per row",
                stacklevel=2,
            )
        if not (0.0 <= self.pcc_threshold <= 100.0):
            raise ValueError("pcc_threshold must be between 0.0 and 100.0")

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "OpaConfig":
        return cls(**values)

    @classmethod
    def from_json(cls, path: str | Path) -> "OpaConfig":
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
