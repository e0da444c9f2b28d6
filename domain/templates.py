from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional
import structlog

from domain.errors import NotFoundError, UnknownWeightError, ValidationError
from domain.weights import WeightParameter, WeightStore, validate_weight_value

logger = structlog.get_logger()


@dataclass(frozen=True)
class WeightTemplate:
    """A named, reusable set of weight values."""
    id: int
    name: str
    description: str
    weights: Dict[str, int]
    added_by: str
    strategy_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


def check_template_weights(values: Mapping[str, object]) -> Dict[str, int]:
    """Validate every value of a template. Keys are checked against the weight store."""
    if not values:
        raise ValidationError("A template needs at least one weight value")
    return {key: validate_weight_value(key, value) for key, value in sorted(values.items())}


class TemplateStore:
    """Abstract base class for weight template storage."""

    async def list_all(self) -> List[WeightTemplate]:
        """Newest templates first."""
        raise NotImplementedError

    async def get(self, template_id: int) -> WeightTemplate:
        """Fetch one template or raise NotFoundError."""
        raise NotImplementedError

    async def create(
        self,
        name: str,
        description: str,
        weights: Mapping[str, int],
        added_by: str,
        strategy_id: Optional[int] = None
    ) -> WeightTemplate:
        raise NotImplementedError

    async def delete(self, template_id: int) -> None:
        """Remove a template or raise NotFoundError."""
        raise NotImplementedError


class InMemoryTemplateStore(TemplateStore):
    """Process-local template store."""

    def __init__(self):
        self._templates: Dict[int, WeightTemplate] = {}
        self._next_id = 1

    async def list_all(self) -> List[WeightTemplate]:
        return sorted(
            self._templates.values(),
            key=lambda t: (t.created_at, t.id),
            reverse=True
        )

    async def get(self, template_id: int) -> WeightTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    async def create(
        self,
        name: str,
        description: str,
        weights: Mapping[str, int],
        added_by: str,
        strategy_id: Optional[int] = None
    ) -> WeightTemplate:
        template = WeightTemplate(
            id=self._next_id,
            name=name,
            description=description,
            weights=check_template_weights(weights),
            added_by=added_by,
            strategy_id=strategy_id,
        )
        self._next_id += 1
        self._templates[template.id] = template
        logger.info("Weight template created", template_id=template.id, name=name)
        return template

    async def delete(self, template_id: int) -> None:
        if self._templates.pop(template_id, None) is None:
            raise NotFoundError(f"Template {template_id} not found")
        logger.info("Weight template deleted", template_id=template_id)


async def snapshot_weights(weight_store: WeightStore) -> Dict[str, int]:
    """Current weight values keyed by parameter key."""
    return {w.key: w.value for w in await weight_store.get_all()}


async def create_template(
    templates: TemplateStore,
    weight_store: WeightStore,
    name: str,
    added_by: str,
    description: str = "",
    weights: Optional[Mapping[str, object]] = None,
    strategy_id: Optional[int] = None,
    apply_now: bool = False
) -> WeightTemplate:
    """
    Save a weight set as a template. Without explicit values the current
    weights are captured.

    Raises:
        UnknownWeightError: a key that is not a weight parameter
        ValidationError: a value outside 0-10
    """
    current = await snapshot_weights(weight_store)
    if weights is None:
        values = current
    else:
        values = check_template_weights(weights)
        unknown = sorted(set(values) - set(current))
        if unknown:
            raise UnknownWeightError(f"Unknown weight parameters: {', '.join(unknown)}")

    if apply_now:
        await weight_store.update_many(values)

    return await templates.create(
        name=name,
        description=description,
        weights=values,
        added_by=added_by,
        strategy_id=strategy_id,
    )


async def apply_template(
    templates: TemplateStore,
    weight_store: WeightStore,
    template_id: int
) -> List[WeightParameter]:
    """
    Write a template's values into the weight store.

    Goes through update_many, so either every value lands or none does.

    Raises:
        NotFoundError: unknown template
        ValidationError: the template names a key the store no longer has
    """
    template = await templates.get(template_id)
    updated = await weight_store.update_many(dict(template.weights))
    logger.info("Weight template applied", template_id=template_id, keys=sorted(template.weights))
    return updated
