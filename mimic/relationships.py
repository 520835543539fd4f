# mimic/relationships.py
"""
Connectors between related objects.

Endpoints are the *resolved* world positions (the step's target state composed
through the hierarchy), not the interpolated ones, so connectors do not jitter while
the animator is still catching up. Relationships with a missing endpoint are skipped.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from .geometry import compose_matrix
from .hierarchy import HierarchyComposer
from .model import Relationship, Vec3
from .resolver import ResolvedState

logger = logging.getLogger(__name__)

LABEL_LIFT = 0.5


@dataclass(frozen=True)
class Connector:
    from_id: str
    to_id: str
    kind: str
    label: str
    start: Vec3
    end: Vec3
    label_position: Vec3


def resolved_world_positions(composer: HierarchyComposer,
                             states: Mapping[str, ResolvedState]) -> Dict[str, Vec3]:
    local = {
        obj_id: compose_matrix(state.position, state.orientation, state.scale)
        for obj_id, state in states.items()
    }
    world = composer.world_matrices(local)
    return {obj_id: tuple(float(c) for c in m[:3, 3]) for obj_id, m in world.items()}


def resolve_connectors(relationships: Iterable[Relationship],
                       world_positions: Mapping[str, Vec3]) -> List[Connector]:
    connectors = []
    for rel in relationships:
        start = world_positions.get(rel.from_id)
        end = world_positions.get(rel.to_id)
        if start is None or end is None:
            logger.debug("skipping relationship %s -> %s: missing endpoint", rel.from_id, rel.to_id)
            continue
        mid = (np.asarray(start) + np.asarray(end)) / 2.0
        mid[1] += LABEL_LIFT
        connectors.append(Connector(
            from_id=rel.from_id,
            to_id=rel.to_id,
            kind=rel.kind,
            label=rel.label,
            start=tuple(start),
            end=tuple(end),
            label_position=(float(mid[0]), float(mid[1]), float(mid[2])),
        ))
    return connectors
