from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Iterable, Optional, Any
import structlog

from domain.errors import UnknownWeightError, ValidationError

logger = structlog.get_logger()

MIN_WEIGHT = 0
MAX_WEIGHT = 10


@dataclass(frozen=True)
class WeightParameter:
    """A 0-10 business priority that biases strategy generation."""
    key: str
    label: str
    description: str
    value: int
    updated_at: Optional[datetime] = None


def validate_weight_value(key: str, value: Any) -> int:
    """Return value as int or raise ValidationError if it is not 0-10."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Weight {key} must be a number, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Weight {key} must be an integer, got {value}")
        value = int(value)
    if value < MIN_WEIGHT or value > MAX_WEIGHT:
        raise ValidationError(
            f"Weight {key} must be between {MIN_WEIGHT} and {MAX_WEIGHT}, got {value}"
        )
    return value


class WeightStore:
    """Abstract base class for weight parameter storage."""

    async def get_all(self) -> List[WeightParameter]:
        """Return all parameters ordered by key."""
        raise NotImplementedError

    async def update(self, key: str, value: Any) -> WeightParameter:
        """
        Set a single parameter value.

        Raises:
            ValidationError: unknown key or value outside 0-10
        """
        raise NotImplementedError

    async def update_many(self, values: Dict[str, Any]) -> List[WeightParameter]:
        """Validate every entry, then apply all of them."""
        raise NotImplementedError

    async def ensure_defaults(self, defaults: Iterable[Dict[str, Any]]) -> int:
        """Seed missing default parameters. Returns the number created."""
        raise NotImplementedError


class InMemoryWeightStore(WeightStore):
    """Process-local weight store."""

    def __init__(self, parameters: Iterable[WeightParameter] = ()):
        self._params: Dict[str, WeightParameter] = {}
        for param in parameters:
            self._params[param.key] = replace(
                param, value=validate_weight_value(param.key, param.value)
            )

    async def get_all(self) -> List[WeightParameter]:
        return [self._params[key] for key in sorted(self._params)]

    def _check(self, key: str, value: Any) -> int:
        if key not in self._params:
            raise UnknownWeightError(f"Unknown weight parameter: {key}")
        return validate_weight_value(key, value)

    async def update(self, key: str, value: Any) -> WeightParameter:
        checked = self._check(key, value)
        updated = replace(self._params[key], value=checked, updated_at=datetime.utcnow())
        self._params[key] = updated
        logger.info("Weight updated", key=key, value=checked)
        return updated

    async def update_many(self, values: Dict[str, Any]) -> List[WeightParameter]:
        checked = {key: self._check(key, value) for key, value in values.items()}
        now = datetime.utcnow()
        for key, value in checked.items():
            self._params[key] = replace(self._params[key], value=value, updated_at=now)
        logger.info("Weights updated", keys=sorted(checked))
        return [self._params[key] for key in sorted(checked)]

    async def ensure_defaults(self, defaults: Iterable[Dict[str, Any]]) -> int:
        created = 0
        for item in defaults:
            if item["key"] in self._params:
                continue
            self._params[item["key"]] = WeightParameter(
                key=item["key"],
                label=item["label"],
                description=item.get("description", ""),
                value=validate_weight_value(item["key"], item["value"]),
                updated_at=datetime.utcnow(),
            )
            created += 1
        return created
