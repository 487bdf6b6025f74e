from __future__ import annotations

import re

NODE_TYPES = frozenset({"narrative", "encounter", "ending"})
ITEM_TYPES = frozenset({"weapon", "consumable", "tool", "armor"})
VALID_ATTRIBUTES = frozenset({"strength", "dexterity", "intelligence"})
STAT_CHECK_OPERATORS = frozenset({">=", "<=", "==", ">", "<"})
STAT_CHECK_STATS = frozenset({"hpCurrent", "currency"})

DICE_NOTATION_RE = re.compile(r"^(\d+)d(\d+)([+-]\d+)?$", re.IGNORECASE)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

# Stable diagnostic codes; authoring tooling and tests key off these.
CODE_DUPLICATE_ID = "DATA001"
CODE_MISSING_NODE = "DATA002"
CODE_MISSING_ITEM = "DATA003"
CODE_MISSING_ENEMY = "DATA004"
CODE_MISSING_ENCOUNTER = "DATA005"
CODE_INVALID_ENUM = "DATA006"
CODE_ORPHAN_NODE = "DATA008"
CODE_DEAD_END_NODE = "DATA009"
CODE_DICE_NOTATION = "DATA010"
CODE_EMPTY_ENCOUNTER = "DATA011"
CODE_ENEMY_STAT_BOUNDS = "DATA012"
CODE_WEAPON_MISSING_DAMAGE = "DATA013"

NODES_FILE = "nodes.csv"
ITEMS_FILE = "items.csv"
ENEMIES_FILE = "enemies.csv"
ENCOUNTERS_FILE = "encounters.csv"
TABLE_FILES = (NODES_FILE, ITEMS_FILE, ENEMIES_FILE, ENCOUNTERS_FILE)

DEFAULT_CHOICE_SLOTS = 3
ENCOUNTER_GRAPH_PREFIX = "enc:"
DEFAULT_START_NODE_ID = "n_start"

NODE_BASE_COLUMNS = ("id", "type", "text", "image", "onEnter")
CHOICE_COLUMN_FIELDS = ("id", "label", "visibility", "mechanic")
ITEM_COLUMNS = ("id", "name", "type", "damage", "attackBonus", "acBonus", "effect", "scalingAttribute", "aoe")
ENEMY_COLUMNS = ("id", "name", "hp", "maxHp", "ac", "attackBonus", "damage", "xpReward")
ENCOUNTER_COLUMNS = ("id", "name", "enemies", "onVictory", "onDefeat")

ENEMY_DEFAULT_HP = 1
ENEMY_DEFAULT_AC = 10
ENEMY_DEFAULT_DAMAGE = "1d2"
