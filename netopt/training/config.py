"""Hyper-parameters for the netopt optimizers.

Hyper-parameters are immutable values handed to each optimizer (and
optionally to each training call), so one call can never observe another
call's tuning.  Names from the classic hyper-parameter table (``bSize``,
``maxEpochs``, ``upLimit``, ...) are accepted wherever a name is looked up.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..errors import InvalidConfigurationError

ADJUST_PERIOD = 100
ADJUST_FACTOR = 1.1
NSTEPS = 16

_ALIASES: Dict[str, str] = {
    "bSize": "batch_size",
    "maxEpochs": "max_epochs",
    "lambda": "lambda_",
    "upLimit": "up_limit",
    "dropRemainder": "drop_remainder",
}


@dataclass(frozen=True)
class HyperParameters:
    """Tuning knobs shared by every optimizer."""

    eta: float = 0.1
    batch_size: int = 20
    max_epochs: int = 400
    # regularisation is switched off; kept so configs that set it still load
    lambda_: float = 0.01
    up_limit: int = 4
    beta: float = 0.9
    beta2: float = 0.999
    nu: float = 0.9
    drop_remainder: bool = True

    def __getitem__(self, name: str) -> Any:
        return getattr(self, _resolve(name))

    def replace(self, **changes: Any) -> "HyperParameters":
        resolved = {_resolve(name): value for name, value in changes.items()}
        return replace(self, **resolved)

    def update(self, name: str, value: Any) -> "HyperParameters":
        """Return a copy with the single hyper-parameter ``name`` changed."""

        return self.replace(**{name: value})

    def validate(self) -> "HyperParameters":
        if not self.eta > 0.0:
            raise InvalidConfigurationError(f"eta must be positive, got {self.eta}")
        if self.batch_size < 1:
            raise InvalidConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.max_epochs < 1:
            raise InvalidConfigurationError(f"max_epochs must be >= 1, got {self.max_epochs}")
        if self.up_limit < 0:
            raise InvalidConfigurationError(f"up_limit must be >= 0, got {self.up_limit}")
        for name in ("beta", "beta2"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise InvalidConfigurationError(f"{name} must lie in [0, 1), got {value}")
        if not 0.0 <= self.nu <= 1.0:
            raise InvalidConfigurationError(f"nu must lie in [0, 1], got {self.nu}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], base: "HyperParameters | None" = None
    ) -> "HyperParameters":
        base = base or cls()
        return base.replace(**dict(mapping))


DEFAULT_HPARAMS = HyperParameters()


def _resolve(name: str) -> str:
    key = _ALIASES.get(name, name)
    if key not in _FIELD_NAMES:
        available = ", ".join(sorted(_FIELD_NAMES | set(_ALIASES)))
        raise InvalidConfigurationError(
            f"Unknown hyper-parameter {name!r}. Available: {available}"
        )
    return key


_FIELD_NAMES = frozenset(f.name for f in fields(HyperParameters))


def _read_config_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML hyper-parameter files") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise InvalidConfigurationError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise InvalidConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


def load_hyperparameters(
    path: str | Path, base: HyperParameters | None = None
) -> HyperParameters:
    """Read hyper-parameters from a JSON or YAML file.

    The file may hold the values at top level or under an ``hparams`` key.
    """

    data = _read_config_file(Path(path))
    if "hparams" in data:
        data = data["hparams"]
    return HyperParameters.from_mapping(data, base=base).validate()


__all__ = [
    "ADJUST_FACTOR",
    "ADJUST_PERIOD",
    "DEFAULT_HPARAMS",
    "HyperParameters",
    "NSTEPS",
    "load_hyperparameters",
]
