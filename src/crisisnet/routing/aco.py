"""
Ant colony routing.

Stochastic, pheromone-guided path search over a topology snapshot:
- Pheromone map reset for every top-level call, scoped to the snapshot's edges
- Ants pick neighbours by roulette selection on pheromone^alpha * heuristic^beta
- Evaporation then priority-weighted deposit after every iteration
- Optional deadline returning the best route found so far

All randomness comes from an injected numpy Generator so runs are
reproducible for a fixed seed.
"""

import time
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..logging import get_logger
from ..mesh.snapshot import TopologySnapshot
from .config import RoutingConfig
from .metrics import resolve_online
from .types import (
    PRIORITY_COST_MODIFIER,
    PRIORITY_DEPOSIT_MULTIPLIER,
    Priority,
    Route,
    RoutingStrategy,
)

logger = get_logger(__name__)

IndexEdge = Tuple[int, int]


def _index_key(i: int, j: int) -> IndexEdge:
    return (i, j) if i < j else (j, i)


class PheromoneMap:
    """Pheromone intensity per undirected edge of one snapshot."""

    def __init__(self, snapshot: TopologySnapshot, initial: float):
        self.initial = initial
        self._levels: Dict[IndexEdge, float] = {
            edge: initial for edge in snapshot.edges()
        }

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, edge: object) -> bool:
        return edge in self._levels

    def get(self, i: int, j: int) -> float:
        return self._levels.get(_index_key(i, j), self.initial)

    def evaporate(self, rate: float) -> None:
        """Scale every level by ``1 - rate``."""
        factor = 1.0 - rate
        for edge in self._levels:
            self._levels[edge] *= factor

    def deposit(self, path: Sequence[int], amount: float) -> None:
        """Add ``amount`` to every edge along ``path``."""
        for i in range(len(path) - 1):
            edge = _index_key(path[i], path[i + 1])
            self._levels[edge] = self._levels.get(edge, 0.0) + amount

    def levels(self) -> Dict[IndexEdge, float]:
        return dict(self._levels)


class AntColonyRouter:
    """Ant colony optimisation router used for non-critical traffic."""

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        rng: Optional[Union[np.random.Generator, int]] = None,
    ):
        self.config = config or RoutingConfig()
        self.rng = (
            rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        )

    def find_optimal_path(
        self,
        snapshot: TopologySnapshot,
        source_id: str,
        destination_id: str,
        priority: Priority = Priority.NORMAL,
        rng: Optional[np.random.Generator] = None,
    ) -> Optional[Route]:
        """Run the colony and return the cheapest route any ant found."""
        route, _ = self._run(snapshot, source_id, destination_id, priority, rng)
        return route

    def _run(
        self,
        snapshot: TopologySnapshot,
        source_id: str,
        destination_id: str,
        priority: Priority = Priority.NORMAL,
        rng: Optional[np.random.Generator] = None,
    ) -> Tuple[Optional[Route], Optional[PheromoneMap]]:
        """Run one search; returns the route and the call's pheromone map."""
        rng = rng if rng is not None else self.rng
        priority = Priority.parse(priority)

        source = resolve_online(snapshot, source_id)
        destination = resolve_online(snapshot, destination_id)
        if source is None or destination is None:
            logger.debug(
                f"No colony path {source_id} -> {destination_id}: "
                f"endpoint unknown or not online"
            )
            return None, None

        pheromones = PheromoneMap(snapshot, self.config.pheromone_initial)

        cost_modifier = PRIORITY_COST_MODIFIER[priority]
        deposit_multiplier = PRIORITY_DEPOSIT_MULTIPLIER[priority]
        started = time.monotonic()

        best_path: Optional[List[int]] = None
        best_cost = float("inf")
        iterations_run = 0

        for _ in range(self.config.aco_iterations):
            successes: List[Tuple[List[int], float]] = []

            for _ in range(self.config.ant_count):
                result = self._traverse(
                    snapshot, pheromones, source, destination, cost_modifier, rng
                )
                if result is None:
                    continue
                successes.append(result)
                path, cost = result
                if cost < best_cost:
                    best_cost = cost
                    best_path = path

            pheromones.evaporate(self.config.pheromone_evaporation)
            for path, cost in successes:
                pheromones.deposit(path, self._deposit_amount(cost) * deposit_multiplier)

            iterations_run += 1
            if self._deadline_passed(started):
                logger.debug(
                    f"Colony deadline reached after {iterations_run} iterations"
                )
                break

        if best_path is None:
            logger.debug(
                f"No ant reached {destination_id} from {source_id} "
                f"in {iterations_run} iterations"
            )
            return None, pheromones

        route = Route(
            source=source_id,
            destination=destination_id,
            path=snapshot.path_ids(best_path),
            cost=best_cost,
            latency=len(best_path) * self.config.stochastic_latency_per_node,
            reliability=self.config.stochastic_reliability,
            strategy=RoutingStrategy.ANT_COLONY,
        )
        logger.debug(
            f"Colony path {source_id} -> {destination_id} ({priority.value}): "
            f"{route.hops} hops, cost {route.cost:.2f}"
        )
        return route, pheromones

    def _deadline_passed(self, started: float) -> bool:
        deadline = self.config.deadline
        return deadline is not None and time.monotonic() - started >= deadline

    def _deposit_amount(self, cost: float) -> float:
        # zero-cost paths (co-located nodes) get the undivided deposit factor
        return self.config.q / cost if cost > 0 else self.config.q

    def _traverse(
        self,
        snapshot: TopologySnapshot,
        pheromones: PheromoneMap,
        source: int,
        destination: int,
        cost_modifier: float,
        rng: np.random.Generator,
    ) -> Optional[Tuple[List[int], float]]:
        """Walk one ant from source to destination; None if it dead-ends."""
        path = [source]
        visited = {source}
        current = source
        total_cost = 0.0

        while current != destination:
            candidates = [
                n
                for n in snapshot.neighbors(current)
                if n not in visited and snapshot.is_online(n)
            ]
            if not candidates:
                return None

            nxt = self._select_next(snapshot, pheromones, current, candidates, destination, rng)
            total_cost += snapshot.distance(current, nxt) * cost_modifier
            path.append(nxt)
            visited.add(nxt)
            current = nxt

        return path, total_cost

    def _select_next(
        self,
        snapshot: TopologySnapshot,
        pheromones: PheromoneMap,
        current: int,
        candidates: List[int],
        destination: int,
        rng: np.random.Generator,
    ) -> int:
        """Roulette-wheel choice weighted by pheromone and closeness to goal."""
        weights = []
        for candidate in candidates:
            heuristic = 1.0 / (1.0 + snapshot.distance(candidate, destination))
            weights.append(
                pheromones.get(current, candidate) ** self.config.alpha
                * heuristic ** self.config.beta
            )

        total = sum(weights)
        if total <= 0:
            return candidates[0]

        remaining = rng.random() * total
        for candidate, weight in zip(candidates, weights):
            remaining -= weight
            if remaining <= 0:
                return candidate

        return candidates[-1]
