from storygraph.modules.story_data.compilers import (
    choice_slots,
    duplicate_id_diagnostics,
    parse_encounters,
    parse_enemies,
    parse_items,
    parse_nodes,
)
from storygraph.modules.story_data.schemas import NavigateMechanic


def _node_row(node_id: str, **cells: str) -> dict[str, str]:
    row = {"id": node_id, "type": "narrative", "text": f"Text {node_id}", "image": "", "onEnter": ""}
    for index in (1, 2, 3):
        for field in ("id", "label", "visibility", "mechanic"):
            row[f"choice{index}_{field}"] = ""
    row.update(cells)
    return row


def test_parse_nodes_skips_rows_without_id() -> None:
    warnings: list[str] = []
    nodes = parse_nodes([_node_row(""), _node_row("n_a")], warnings.append)
    assert list(nodes) == ["n_a"]
    assert any("missing ID" in message for message in warnings)


def test_parse_nodes_keeps_first_duplicate() -> None:
    warnings: list[str] = []
    rows = [_node_row("n_a", text="first"), _node_row("n_a", text="second")]
    nodes = parse_nodes(rows, warnings.append)
    assert nodes["n_a"].text == "first"
    assert any("duplicate" in message for message in warnings)


def test_parse_nodes_drops_choice_with_bad_mechanic() -> None:
    warnings: list[str] = []
    row = _node_row(
        "n_a",
        choice1_id="c_ok",
        choice1_label="Go",
        choice1_mechanic="navigate:n_b",
        choice2_id="c_bad",
        choice2_label="Broken",
        choice2_mechanic="warp:n_b",
        choice3_label="No id",
        choice3_mechanic="navigate:n_c",
    )
    node = parse_nodes([row], warnings.append)["n_a"]
    assert [choice.id for choice in node.choices] == ["c_ok"]
    assert node.choices[0].mechanic == NavigateMechanic(next_node_id="n_b")
    assert any("c_bad" in message for message in warnings)


def test_parse_nodes_without_choices_or_on_enter_leaves_them_absent() -> None:
    node = parse_nodes([_node_row("n_end", type="ending")])["n_end"]
    assert node.choices is None
    assert node.on_enter is None
    assert node.image is None


def test_parse_nodes_reads_extra_choice_slots_in_order() -> None:
    row = _node_row("n_a", choice1_id="c1", choice1_mechanic="navigate:n_b")
    row.update({"choice10_id": "c10", "choice10_mechanic": "navigate:n_d", "choice4_id": "c4", "choice4_mechanic": "navigate:n_c"})
    assert choice_slots(row) == [1, 2, 3, 4, 10]
    node = parse_nodes([row])["n_a"]
    assert [choice.id for choice in node.choices] == ["c1", "c4", "c10"]


def test_parse_nodes_is_deterministic() -> None:
    rows = [
        _node_row("n_a", onEnter="set_flag:x | add_item:torch:2", choice1_id="c", choice1_mechanic="navigate:n_b"),
        _node_row("n_b", type="ending"),
    ]
    assert parse_nodes(rows) == parse_nodes(rows)


def test_parse_items_defaults_and_optional_fields() -> None:
    rows = [
        {"id": "sword", "name": "", "type": "weapon", "damage": "1d6", "attackBonus": "1", "acBonus": "", "effect": "", "scalingAttribute": "strength", "aoe": "false"},
        {"id": "potion", "name": "Potion", "type": "consumable", "damage": "", "attackBonus": "", "acBonus": "", "effect": "heal:2d4", "scalingAttribute": "", "aoe": ""},
    ]
    items = parse_items(rows)
    assert items["sword"].name == "sword"
    assert items["sword"].attack_bonus == 1
    assert items["sword"].ac_bonus is None
    assert items["sword"].aoe is False
    assert items["potion"].effect.amount == "2d4"
    assert items["potion"].attack_bonus is None


def test_parse_enemies_numeric_defaults() -> None:
    enemies = parse_enemies([{"id": "rat", "name": "", "hp": "", "ac": "x", "damage": ""}])
    rat = enemies["rat"]
    assert (rat.name, rat.hp, rat.ac, rat.attack_bonus, rat.damage, rat.xp_reward) == ("rat", 1, 10, 0, "1d2", 0)


def test_parse_encounters_resolution_and_spawns() -> None:
    rows = [{"id": "enc_1", "name": "Ambush", "enemies": "goblin:2 | wolf", "onVictory": "n_win", "onDefeat": "n_lose"}]
    encounter = parse_encounters(rows)["enc_1"]
    assert encounter.type == "combat"
    assert encounter.name == "Ambush"
    assert [(spawn.enemy_id, spawn.count) for spawn in encounter.enemies] == [("goblin", 2), ("wolf", 1)]
    assert encounter.resolution.on_victory.next_node_id == "n_win"
    assert encounter.resolution.on_defeat.next_node_id == "n_lose"


def test_duplicate_id_diagnostics_reports_later_rows() -> None:
    rows = [{"id": "a"}, {"id": "b"}, {"id": "a"}, {"id": ""}, {"id": "a"}]
    diagnostics = duplicate_id_diagnostics(rows, "nodes.csv")
    assert [(item.code, item.row, item.severity, item.file) for item in diagnostics] == [
        ("DATA001", 4, "warning", "nodes.csv"),
        ("DATA001", 6, "warning", "nodes.csv"),
    ]
    assert diagnostics[0].message == 'Duplicate ID "a" (also at row 2)'
