"""Feature graph resolution.

Expands seed ids (class, race, background, manual features, chosen
options) into the features they transitively grant. The walk is
breadth-first over ``grants`` links with a visited set and a global step
budget, so cyclic or very deep data always terminates.

Example:
    >>> resolver = FeatureGraphResolver(store)
    >>> graph = await resolver.resolve_graph({"class": "magicien", "race": "elfe"})
    >>> [feature.id for feature in graph.features]
    ['magicien', 'elfe', 'grimoire']
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from bonome.core.constants import DEFAULT_MAX_STEPS
from bonome.core.exceptions import BonomeError
from bonome.core.logging import get_logger
from bonome.engine.normalizer import stringify
from bonome.models.feature import Feature
from bonome.models.selection import Selection
from bonome.storage.base import DocumentStore, load_feature


logger = get_logger(__name__)

SEED_FIELDS: tuple[str, ...] = ("class", "race", "background")
"""Selection fields whose value is itself a seed id."""


def _seed_value(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("id") or value.get("feature_id")
    if value in (None, "") or isinstance(value, (dict, list, tuple, set)):
        return None
    return stringify(value)


def _flatten_once(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def extract_seed_ids(seeds: Any) -> list[str]:
    """Collect the seed ids of a graph walk.

    Accepts a scalar id, a list of ids (or ``{id}`` objects), a Selection,
    or a selection dict. In a selection, ``chosenOptions`` values count as
    seeds so chosen sub-features resolve through the walk. A dict with none
    of the selection fields falls back to its own ``id`` or ``name``.

    Returns:
        Deduplicated seed ids in first-seen order.
    """
    if seeds is None:
        return []
    if isinstance(seeds, Selection):
        seeds = seeds.to_payload()

    candidates: list[Any] = []
    if isinstance(seeds, dict):
        for key in SEED_FIELDS:
            candidates.append(seeds.get(key))
        candidates.extend(_flatten_once(seeds.get("manual_features") or []))
        candidates.extend(_flatten_once(seeds.get("seedIds") or seeds.get("seed_ids") or []))
        chosen = seeds.get("chosenOptions") or seeds.get("chosen_options") or {}
        if isinstance(chosen, dict):
            for value in chosen.values():
                for item in _flatten_once(value):
                    if isinstance(item, dict):
                        item = item.get("id") or item.get("value")
                    candidates.append(item)
        if not any(_seed_value(candidate) for candidate in candidates):
            candidates = [seeds.get("id") or seeds.get("name")]
    else:
        candidates.extend(_flatten_once(seeds))

    ids: list[str] = []
    for candidate in candidates:
        seed = _seed_value(candidate)
        if seed is not None and seed not in ids:
            ids.append(seed)
    return ids


@dataclass
class FeatureGraph:
    """Result of one graph walk.

    Attributes:
        features: Loaded features in discovery order, each once.
        missing: Ids that could not be loaded.
        graph: Directed ``grants`` graph over feature ids.
        steps: Queue steps consumed.
    """

    features: list[Feature] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    steps: int = 0

    @property
    def feature_ids(self) -> list[str]:
        return [feature.id for feature in self.features]


class FeatureGraphResolver:
    """Breadth-first resolver of feature grants.

    Attributes:
        store: Document store features are loaded from.
        max_steps: Global budget of queue steps per walk. Every dequeue
            counts, including already-visited ids and missing documents.
    """

    def __init__(self, store: DocumentStore, max_steps: int = DEFAULT_MAX_STEPS) -> None:
        self.store = store
        self.max_steps = max_steps

    async def resolve_graph(self, seeds: Any) -> FeatureGraph:
        """Walk the grants graph from ``seeds``.

        Args:
            seeds: Anything ``extract_seed_ids`` accepts.

        Returns:
            The discovered features, missing ids and edges.
        """
        result = FeatureGraph()
        queue: deque[str] = deque(extract_seed_ids(seeds))
        visited: set[str] = set()

        while queue and result.steps < self.max_steps:
            feature_id = queue.popleft()
            result.steps += 1
            if feature_id in visited:
                continue
            visited.add(feature_id)

            try:
                feature = await load_feature(self.store, feature_id)
            except BonomeError as exc:
                logger.warning("feature_not_found", feature_id=feature_id, error=str(exc))
                result.missing.append(feature_id)
                continue
            if feature is None:
                logger.warning("feature_not_found", feature_id=feature_id)
                result.missing.append(feature_id)
                continue

            result.features.append(feature)
            result.graph.add_node(feature.id)
            for granted in feature.grant_ids:
                result.graph.add_edge(feature.id, granted, relation="grants")
                if granted not in visited:
                    queue.append(granted)

        if queue:
            logger.info("feature_step_budget_exhausted", max_steps=self.max_steps, pending=len(queue))
        logger.info(
            "feature_graph_resolved",
            resolved=len(result.features),
            missing=len(result.missing),
            steps=result.steps,
        )
        return result

    async def resolve_feature_tree(self, seeds: Any) -> list[Feature]:
        """Features reachable from ``seeds`` in discovery order."""
        return (await self.resolve_graph(seeds)).features


__all__ = ["SEED_FIELDS", "extract_seed_ids", "FeatureGraph", "FeatureGraphResolver"]
