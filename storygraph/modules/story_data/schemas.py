from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

Severity = Literal["error", "warning"]

# One segment of a delimited cell token such as `add_item:<itemId>:<qty>`.
TokenArg = Annotated[str, Field(min_length=1, pattern=r"^[^:|\s](?:[^:|]*[^:|\s])?$")]


class _StoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class SetFlagAction(_StoryModel):
    action: Literal["set_flag"] = "set_flag"
    key: TokenArg
    value: bool = True


class AddItemAction(_StoryModel):
    action: Literal["add_item"] = "add_item"
    item_id: TokenArg
    qty: int | float = 1


class RemoveItemAction(_StoryModel):
    action: Literal["remove_item"] = "remove_item"
    item_id: TokenArg
    qty: int | float = 1


class AdjustHpAction(_StoryModel):
    action: Literal["adjust_hp"] = "adjust_hp"
    amount: int | float = 0


class AdjustCurrencyAction(_StoryModel):
    action: Literal["adjust_currency"] = "adjust_currency"
    amount: int | float = 0


class HealAction(_StoryModel):
    action: Literal["heal"] = "heal"
    # Dice notation, rolled when the action resolves.
    amount: TokenArg = "0"


Action = Annotated[
    Union[SetFlagAction, AddItemAction, RemoveItemAction, AdjustHpAction, AdjustCurrencyAction, HealAction],
    Field(discriminator="action"),
]


class HasFlagRequirement(_StoryModel):
    type: Literal["has_flag"] = "has_flag"
    key: TokenArg


class NotHasFlagRequirement(_StoryModel):
    type: Literal["not_has_flag"] = "not_has_flag"
    key: TokenArg


class HasItemRequirement(_StoryModel):
    type: Literal["has_item"] = "has_item"
    item_id: TokenArg


class StatCheckRequirement(_StoryModel):
    type: Literal["stat_check"] = "stat_check"
    stat: TokenArg
    operator: TokenArg
    value: int | float = 0


VisibilityRequirement = Annotated[
    Union[HasFlagRequirement, NotHasFlagRequirement, HasItemRequirement, StatCheckRequirement],
    Field(discriminator="type"),
]


class Outcome(_StoryModel):
    next_node_id: str = ""


class NavigateMechanic(_StoryModel):
    type: Literal["navigate"] = "navigate"
    next_node_id: TokenArg


class CombatInitMechanic(_StoryModel):
    type: Literal["combat_init"] = "combat_init"
    encounter_id: TokenArg


class SkillCheckMechanic(_StoryModel):
    type: Literal["skill_check"] = "skill_check"
    dice: TokenArg
    dc: int | float = 0
    attribute: str | None = None
    on_success: Outcome
    on_failure: Outcome
    on_failure_encounter_id: str | None = None


Mechanic = Annotated[
    Union[NavigateMechanic, CombatInitMechanic, SkillCheckMechanic],
    Field(discriminator="type"),
]


class Choice(_StoryModel):
    id: str = Field(min_length=1)
    label: str = ""
    visibility_requirements: list[VisibilityRequirement] | None = None
    mechanic: Mechanic


class StoryNode(_StoryModel):
    id: str = Field(min_length=1)
    # Kept as a plain string so unknown types reach the validator as DATA006.
    type: str
    text: str = ""
    image: str | None = None
    on_enter: list[Action] | None = None
    choices: list[Choice] | None = None


class ItemTemplate(_StoryModel):
    id: str = Field(min_length=1)
    name: str = ""
    type: str
    damage: str | None = None
    attack_bonus: int | float | None = None
    ac_bonus: int | float | None = None
    effect: Action | None = None
    scaling_attribute: str | None = None
    aoe: bool | None = None


class EnemyTemplate(_StoryModel):
    id: str = Field(min_length=1)
    name: str = ""
    hp: int | float = 1
    ac: int | float = 10
    attack_bonus: int | float = 0
    damage: str = Field(default="1d2", min_length=1)
    xp_reward: int | float = 0


class EnemySpawn(_StoryModel):
    enemy_id: TokenArg
    count: int | float = 1


class EncounterResolution(_StoryModel):
    on_victory: Outcome = Field(default_factory=Outcome)
    on_defeat: Outcome = Field(default_factory=Outcome)


class EncounterModel(_StoryModel):
    id: str = Field(min_length=1)
    name: str | None = None
    type: Literal["combat"] = "combat"
    enemies: list[EnemySpawn] = Field(default_factory=list)
    resolution: EncounterResolution = Field(default_factory=EncounterResolution)


class StoryModel(_StoryModel):
    # A load response (model plus errors/warnings) can be posted back as-is.
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    nodes: dict[str, StoryNode] = Field(default_factory=dict)
    items: dict[str, ItemTemplate] = Field(default_factory=dict)
    enemies: dict[str, EnemyTemplate] = Field(default_factory=dict)
    encounters: dict[str, EncounterModel] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_keys_match_ids(self):
        # References resolve against keys while tables are written from ids.
        mismatched = [
            f"{collection}.{key} has id {entity.id!r}"
            for collection in ("nodes", "items", "enemies", "encounters")
            for key, entity in getattr(self, collection).items()
            if key != entity.id
        ]
        if mismatched:
            raise ValueError("entity keys must equal their ids: " + ", ".join(mismatched))
        return self


class Diagnostic(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    severity: Severity
    file: str | None = None
    row: int | None = None
    column: int | None = None
    message: str
    hint: str | None = None
    context: Mapping[str, Any] | None = None

    @field_validator("context")
    @classmethod
    def freeze_context(cls, value):
        return None if value is None else MappingProxyType(dict(value))

    @field_serializer("context")
    def serialize_context(self, value):
        return None if value is None else dict(value)


def dump_entity(entity: BaseModel) -> dict[str, Any]:
    return entity.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_collection(entities: dict[str, BaseModel]) -> dict[str, dict[str, Any]]:
    return {entity_id: dump_entity(entity) for entity_id, entity in entities.items()}
