import pytest
from pydantic import ValidationError

from storygraph.modules.story_data.schemas import StoryModel
from storygraph.modules.story_data.validation import validate_data
from tests.support.story_factory import choice, clean_story_payload, navigate, node


def _validate(payload: dict):
    model = StoryModel.model_validate(payload)
    return validate_data(model.nodes, model.items, model.enemies, model.encounters)


def test_clean_story_has_no_diagnostics() -> None:
    result = _validate(clean_story_payload())
    assert result.errors == []
    assert result.warnings == []


def test_navigate_to_missing_node_is_reported_with_ref() -> None:
    payload = {"nodes": {"n_a": node("n_a", "encounter", choices=[choice("c1", navigate("n_missing"))])}}
    result = _validate(payload)
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.code == "DATA002"
    assert error.context["ref"] == "n_missing"
    assert "n_missing" in error.message
    assert "navigate" in error.message


def test_encounter_without_enemies_is_error() -> None:
    payload = clean_story_payload()
    payload["encounters"]["enc_1"] = {
        "id": "enc_1",
        "enemies": [],
        "resolution": {"onVictory": {"nextNodeId": "n_victory"}, "onDefeat": {"nextNodeId": "n_defeat"}},
    }
    result = _validate(payload)
    assert [item.code for item in result.errors] == ["DATA011"]
    assert "no enemies" in result.errors[0].message


def test_item_with_misspelled_scaling_attribute() -> None:
    payload = clean_story_payload()
    payload["items"]["sword"]["scalingAttribute"] = "dexteirty"
    result = _validate(payload)
    assert len(result.errors) == 1
    assert "invalid scalingAttribute" in result.errors[0].message
    assert "dexteirty" in result.errors[0].message


def test_all_dangling_references_are_collected_in_one_pass() -> None:
    payload = {
        "nodes": {
            "n_a": node(
                "n_a",
                onEnter=[{"action": "add_item", "itemId": "ghost_item", "qty": 1}],
                choices=[
                    choice("c1", {"type": "combat_init", "encounterId": "enc_none"}),
                    choice(
                        "c2",
                        {
                            "type": "skill_check",
                            "dice": "d20",
                            "dc": 10,
                            "attribute": "charisma",
                            "onSuccess": {"nextNodeId": "n_x"},
                            "onFailure": {"nextNodeId": "n_y"},
                            "onFailureEncounterId": "enc_gone",
                        },
                        visibility=[
                            {"type": "has_item", "itemId": "key"},
                            {"type": "stat_check", "stat": "mana", "operator": "!=", "value": 1},
                        ],
                    ),
                ],
            )
        }
    }
    result = _validate(payload)
    codes = sorted(item.code for item in result.errors)
    assert codes == ["DATA002", "DATA002", "DATA003", "DATA003", "DATA005", "DATA005", "DATA006", "DATA006", "DATA006"]
    assert [item.code for item in result.warnings] == ["DATA010"]
    refs = {item.context.get("ref") for item in result.errors}
    assert {"n_x", "n_y", "enc_none", "enc_gone", "key", "ghost_item"} <= refs


def test_invalid_node_and_item_types() -> None:
    payload = {
        "nodes": {"n_a": node("n_a", "cutscene")},
        "items": {"gem": {"id": "gem", "name": "Gem", "type": "treasure"}},
    }
    result = _validate(payload)
    assert [item.code for item in result.errors] == ["DATA006", "DATA006"]
    assert result.errors[0].hint == "Set type to narrative, encounter, or ending"
    assert result.errors[1].context == {"itemId": "gem", "type": "treasure"}


def test_weapon_without_damage_is_warning() -> None:
    payload = {"items": {"club": {"id": "club", "name": "Club", "type": "weapon"}}}
    result = _validate(payload)
    assert result.errors == []
    assert [item.code for item in result.warnings] == ["DATA013"]


def test_item_effect_references_missing_item() -> None:
    payload = {
        "items": {
            "bag": {"id": "bag", "name": "Bag", "type": "tool", "effect": {"action": "add_item", "itemId": "coin", "qty": 3}},
        }
    }
    result = _validate(payload)
    assert [(item.code, item.context["ref"]) for item in result.errors] == [("DATA003", "coin")]


def test_enemy_bounds_and_damage_notation() -> None:
    payload = {
        "enemies": {
            "ghost": {"id": "ghost", "name": "Ghost", "hp": 0, "ac": -1, "damage": "lots"},
            "slime": {"id": "slime", "name": "Slime", "hp": 3, "ac": 0, "damage": "4"},
        }
    }
    result = _validate(payload)
    assert [item.message for item in result.errors] == [
        'Enemy "ghost": hp must be > 0',
        'Enemy "ghost": ac must be >= 0',
    ]
    assert [item.context for item in result.warnings] == [{"enemyId": "ghost", "value": "lots"}]


def test_encounter_spawns_and_resolution_targets() -> None:
    payload = clean_story_payload()
    payload["encounters"]["enc_goblins"]["enemies"].append({"enemyId": "troll", "count": 1})
    payload["encounters"]["enc_goblins"]["resolution"]["onDefeat"] = {"nextNodeId": "n_gone"}
    result = _validate(payload)
    assert sorted((item.code, item.context["ref"]) for item in result.errors) == [
        ("DATA002", "n_gone"),
        ("DATA004", "troll"),
    ]


def test_validation_does_not_modify_model() -> None:
    model = StoryModel.model_validate({"nodes": {"n_a": node("n_a", choices=[choice("c1", navigate("n_missing"))])}})
    before = model.model_dump()
    validate_data(model.nodes, model.items, model.enemies, model.encounters)
    assert model.model_dump() == before


def test_diagnostic_context_is_read_only() -> None:
    payload = {"nodes": {"n_a": node("n_a", "encounter", choices=[choice("c1", navigate("n_missing"))])}}
    error = _validate(payload).errors[0]
    with pytest.raises(TypeError):
        error.context["ref"] = "n_other"
    assert error.context == {"nodeId": "n_a", "choiceId": "c1", "ref": "n_missing", "refType": "node"}
    assert error.model_dump(mode="json")["context"]["ref"] == "n_missing"


@pytest.mark.parametrize(
    "requirement",
    [
        {"type": "has_item", "itemId": ""},
        {"type": "has_flag", "key": "a|b"},
        {"type": "stat_check", "stat": "hpCurrent ", "operator": ">=", "value": 1},
    ],
)
def test_requirement_arguments_must_fit_a_table_cell(requirement: dict) -> None:
    payload = {"nodes": {"n_a": node("n_a", choices=[choice("c1", navigate("n_a"), visibility=[requirement])])}}
    with pytest.raises(ValidationError):
        StoryModel.model_validate(payload)


def test_story_model_keys_must_match_entity_ids() -> None:
    payload = clean_story_payload()
    payload["items"]["lamp"] = {**payload["items"].pop("torch"), "id": "torch"}
    with pytest.raises(ValidationError, match="items.lamp has id 'torch'"):
        StoryModel.model_validate(payload)
