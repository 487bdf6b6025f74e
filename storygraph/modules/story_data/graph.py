"""Local edge analysis of the story graph: orphan and dead-end nodes.

Edges come from choice mechanics and encounter resolutions. Encounters sit in
the graph as intermediate vertices named ``enc:<id>``. Only direct in/out
degree is checked, a node reachable solely through another orphan is not
reported.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from storygraph.modules.story_data.constants import (
    CODE_DEAD_END_NODE,
    CODE_ORPHAN_NODE,
    DEFAULT_START_NODE_ID,
    ENCOUNTER_GRAPH_PREFIX,
)
from storygraph.modules.story_data.diagnostics import warning
from storygraph.modules.story_data.schemas import (
    CombatInitMechanic,
    Diagnostic,
    EncounterModel,
    NavigateMechanic,
    SkillCheckMechanic,
    StoryNode,
)


@dataclass(slots=True)
class GraphReport:
    orphans: list[str] = field(default_factory=list)
    dead_ends: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def encounter_vertex(encounter_id: str) -> str:
    return f"{ENCOUNTER_GRAPH_PREFIX}{encounter_id}"


def outgoing_targets(node: StoryNode) -> list[str]:
    """Vertices a node's choices lead to, encounters included."""
    targets: list[str] = []
    for choice in node.choices or []:
        mechanic = choice.mechanic
        if isinstance(mechanic, NavigateMechanic):
            targets.append(mechanic.next_node_id)
        elif isinstance(mechanic, CombatInitMechanic):
            targets.append(encounter_vertex(mechanic.encounter_id))
        elif isinstance(mechanic, SkillCheckMechanic):
            targets.extend((mechanic.on_success.next_node_id, mechanic.on_failure.next_node_id))
            if mechanic.on_failure_encounter_id:
                targets.append(encounter_vertex(mechanic.on_failure_encounter_id))
    return [target for target in targets if target and target != ENCOUNTER_GRAPH_PREFIX]


def build_incoming(
    nodes: Mapping[str, StoryNode],
    encounters: Mapping[str, EncounterModel],
) -> dict[str, set[str]]:
    incoming: dict[str, set[str]] = {}

    def add_edge(target: str, source: str) -> None:
        if target:
            incoming.setdefault(target, set()).add(source)

    for node_id, node in nodes.items():
        for target in outgoing_targets(node):
            add_edge(target, node_id)
    for encounter_id, encounter in encounters.items():
        source = encounter_vertex(encounter_id)
        add_edge(encounter.resolution.on_victory.next_node_id, source)
        add_edge(encounter.resolution.on_defeat.next_node_id, source)
    return incoming


def _has_exit(node: StoryNode) -> bool:
    for choice in node.choices or []:
        mechanic = choice.mechanic
        if isinstance(mechanic, NavigateMechanic) and mechanic.next_node_id:
            return True
        if isinstance(mechanic, (CombatInitMechanic, SkillCheckMechanic)):
            return True
    return False


def analyze_graph(
    nodes: Mapping[str, StoryNode],
    encounters: Mapping[str, EncounterModel],
    *,
    allowed_start_ids: Iterable[str] | None = None,
    dead_end_allowlist: Iterable[str] | None = None,
) -> GraphReport:
    start_ids = set(allowed_start_ids) if allowed_start_ids is not None else {DEFAULT_START_NODE_ID}
    allowlist = set(dead_end_allowlist or ())
    incoming = build_incoming(nodes, encounters)
    report = GraphReport()

    for node_id in nodes:
        if incoming.get(node_id) or node_id in start_ids:
            continue
        report.orphans.append(node_id)
        report.diagnostics.append(
            warning(
                CODE_ORPHAN_NODE,
                f'Orphan node "{node_id}": no inbound edges (unreachable unless it is a start node)',
                {"nodeId": node_id},
                hint="Add a choice or encounter resolution that navigates to this node.",
            )
        )

    for node_id, node in nodes.items():
        if node_id in allowlist or node.type == "ending" or _has_exit(node):
            continue
        report.dead_ends.append(node_id)
        report.diagnostics.append(
            warning(
                CODE_DEAD_END_NODE,
                f'Dead-end node "{node_id}": no outgoing choices (player cannot leave unless type is ending)',
                {"nodeId": node_id},
                hint="Add at least one choice with navigate/combat_init/skill_check, or set type to ending.",
            )
        )
    return report
