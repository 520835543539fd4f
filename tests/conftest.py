import copy

import pytest

from mimic.model import SceneGraph

WATER_CYCLE = {
    "objects": [
        {"id": "ocean", "shape": "plane", "color": "blue", "position": [0, 0, 0],
         "size": [10, 10, 0.1], "label": "Ocean", "showLabel": True, "visible": True},
        {"id": "vapor", "shape": "sphere", "color": "lightblue", "position": [0, 0.5, 0],
         "size": [0.5, 0.5, 0.5], "label": "Vapor", "showLabel": True, "visible": False},
    ],
    "relationships": [
        {"from": "ocean", "to": "vapor", "type": "arrow", "label": "evaporates"},
    ],
    "sequence": [
        {"step": 1, "label": "Evaporation", "targetId": "vapor", "action": "appear", "params": {}},
        {"step": 2, "label": "Vapor rises", "targetId": "vapor", "action": "move",
         "params": {"position": [0, 4, 0]}},
    ],
}

SOLAR_SYSTEM = {
    "objects": [
        {"id": "sun", "shape": "sphere", "color": "yellow", "size": [3], "emissive": True,
         "rotationSpeed": 0.5},
        {"id": "earth", "parent": "sun", "shape": "sphere", "color": "#1e90ff", "size": [1],
         "position": [5, 0, 0], "orbitRadius": 5, "orbitSpeed": 1},
        {"id": "moon", "parent": "earth", "shape": "sphere", "color": "grey", "size": [0.3],
         "position": [1, 0, 0], "orbitRadius": 1},
    ],
}


@pytest.fixture
def water_cycle_data():
    return copy.deepcopy(WATER_CYCLE)


@pytest.fixture
def water_cycle(water_cycle_data):
    return SceneGraph.from_dict(water_cycle_data)


@pytest.fixture
def solar_system():
    return SceneGraph.from_dict(copy.deepcopy(SOLAR_SYSTEM))
