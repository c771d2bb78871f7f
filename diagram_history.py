"""
Session history of generated diagrams.

Keeps the most recent results in memory only (nothing here is persisted) and
maps diagram-type tags written by older versions of the dashboard onto the
current set of types when an item is reloaded.
"""

import re
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from config import HISTORY_CAPACITY

DEFAULT_DIAGRAM_TYPE = "flowchart"

DIAGRAM_TYPE_NAMES = {
    "er_diagram": "ER Diagram",
    "flowchart": "DFD (Data Flow Diagram)",
    "class_diagram": "UML Diagram (Class)",
}

LEGACY_DIAGRAM_TYPE_MAP = {
    "entityRelationshipDiagram": "er_diagram",
    "flowchart": "flowchart",
    "classDiagram": "class_diagram",
    "sequenceDiagram": "class_diagram",
    "stateDiagram": "class_diagram",
    "userJourney": "flowchart",
    "gantt": "flowchart",
    "pieChart": "flowchart",
    "mindmaps": "flowchart",
}


def normalize_history_diagram_type(diagram_type: Optional[str]) -> str:
    """Map a stored diagram-type tag to one of the current type ids"""
    if diagram_type in DIAGRAM_TYPE_NAMES:
        return diagram_type
    return LEGACY_DIAGRAM_TYPE_MAP.get(diagram_type, DEFAULT_DIAGRAM_TYPE)


def get_diagram_type_name(diagram_type: str) -> str:
    """Display name for a type id; unknown ids are title-cased from snake/camel case"""
    if diagram_type in DIAGRAM_TYPE_NAMES:
        return DIAGRAM_TYPE_NAMES[diagram_type]
    name = re.sub(r"_([a-z])", lambda m: f" {m.group(1).upper()}", diagram_type)
    name = re.sub(r"([A-Z])", r" \1", name)
    name = re.sub(r"\s+", " ", name).strip()
    return name[:1].upper() + name[1:]


def build_enhanced_text(input_text: str, diagram_type: str) -> str:
    """Wrap raw input with the instruction sent when prompt enhancement is on"""
    return f"Generate a {get_diagram_type_name(diagram_type)} diagram in Mermaid syntax for: {input_text}"


class DiagramHistory:
    """Bounded, newest-first list of generation results for one session"""

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        self._items: Deque[Dict[str, Any]] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, result: Dict[str, Any], diagram_type: str):
        item = dict(result)
        item["diagramType"] = diagram_type
        self._items.appendleft(item)

    def items(self) -> List[Dict[str, Any]]:
        return list(self._items)

    def load(self, index: int) -> Dict[str, Any]:
        """Return a copy of a history item with its diagram type normalized"""
        item = dict(self._items[index])
        item["diagramType"] = normalize_history_diagram_type(item.get("diagramType"))
        return item

    def clear(self):
        self._items.clear()
