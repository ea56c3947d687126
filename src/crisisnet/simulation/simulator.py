"""
Headless mesh simulation driver.

Drives a MeshNetwork the way the interactive front end does: nodes spawned
in neighbourhood clusters, battery drain, random failures and recoveries,
signal drift, crisis events knocking out whole areas, periodic
self-healing, and message delivery through the routing facade. All
randomness comes from one seeded numpy Generator.
"""

import time
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import numpy as np

from ..errors import (
    TopologyError,
    create_configuration_error,
    create_validation_error,
)
from ..logging import get_logger
from ..mesh.config import MeshConfig
from ..mesh.network import MeshNetwork
from ..mesh.types import Node, NodeStatus
from ..routing.config import RoutingConfig
from ..routing.router import Router
from ..routing.types import Priority, Route

logger = get_logger(__name__)

NODE_NAMES = [
    "Alpha", "Beta", "Gamma", "Delta", "Epsilon", "Zeta", "Eta", "Theta",
    "Iota", "Kappa", "Lambda", "Mu", "Nu", "Xi", "Omicron", "Pi", "Rho",
    "Sigma", "Tau", "Upsilon", "Phi", "Chi", "Psi", "Omega",
]


class CrisisType(Enum):
    """Kinds of disaster the simulation can strike with."""

    FLOOD = "flood"
    EARTHQUAKE = "earthquake"
    FIRE = "fire"
    STORM = "storm"

    @classmethod
    def parse(cls, value: Union["CrisisType", str]) -> "CrisisType":
        """Coerce a crisis type or its label."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise create_validation_error(
                "crisis_type", value, [crisis.value for crisis in cls]
            ) from None


class CrisisSeverity(Enum):
    """Reported severity of a crisis event."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Footprint radius in km; the simulation area uses CRISIS_AREA_SCALE units per km.
CRISIS_RADIUS_KM: Dict[CrisisType, float] = {
    CrisisType.EARTHQUAKE: 50.0,
    CrisisType.STORM: 30.0,
    CrisisType.FLOOD: 15.0,
    CrisisType.FIRE: 5.0,
}

CRISIS_AREA_SCALE = 5.0

# Crises younger than this count as active in the statistics.
CRISIS_ACTIVE_WINDOW = 60 * 60.0

# Upper bounds of a uniform draw, checked in order.
CRISIS_SEVERITY_THRESHOLDS = [
    (0.1, CrisisSeverity.CRITICAL),
    (0.3, CrisisSeverity.HIGH),
    (0.6, CrisisSeverity.MEDIUM),
]


@dataclass
class SimulationConfig:
    """Configuration for the simulation driver."""

    seed: Optional[int] = None
    area_width: float = 400.0
    area_height: float = 400.0
    edge_margin: float = 50.0
    cluster_count: int = 4
    node_failure_rate: float = 0.02
    recovery_rate: float = 0.1
    battery_drain: float = 0.2
    signal_jitter: float = 5.0
    min_signal: float = 30.0
    crisis_chance: float = 0.01  # per tick
    crisis_outage_probability: float = 0.3  # per affected node

    def __post_init__(self):
        """Validate configuration."""
        for name in (
            "node_failure_rate",
            "recovery_rate",
            "crisis_chance",
            "crisis_outage_probability",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise create_configuration_error(name, value, "must be between 0 and 1")
        if self.cluster_count < 1:
            raise create_configuration_error(
                "cluster_count", self.cluster_count, "must be at least 1"
            )
        if self.area_width <= 2 * self.edge_margin or self.area_height <= 2 * self.edge_margin:
            raise create_configuration_error(
                "edge_margin", self.edge_margin, "leaves no room inside the area"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        """Create a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class MessageDelivery:
    """Outcome of one message send."""

    message_id: str
    source: str
    destination: str
    priority: Priority
    route: Optional[Route] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def delivered(self) -> bool:
        return self.route is not None


@dataclass
class CrisisEvent:
    """A disaster striking every node within ``radius`` km of a centre node."""

    event_id: str
    crisis_type: CrisisType
    severity: CrisisSeverity
    center_node: str
    center_x: float
    center_y: float
    radius: float
    affected_nodes: List[str] = field(default_factory=list)
    offline_nodes: List[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    @property
    def area_radius(self) -> float:
        """Footprint radius in simulation area units."""
        return self.radius * CRISIS_AREA_SCALE


@dataclass
class TickResult:
    """Status changes applied during one simulation tick."""

    failed: List[str] = field(default_factory=list)
    recovered: List[str] = field(default_factory=list)
    crisis: Optional[CrisisEvent] = None


@dataclass
class SimulationStats:
    """Simulation-wide statistics."""

    total_nodes: int = 0
    online_nodes: int = 0
    offline_nodes: int = 0
    total_messages: int = 0
    delivered_messages: int = 0
    failed_messages: int = 0
    active_crises: int = 0
    network_health: int = 0
    avg_battery: int = 0
    avg_signal: int = 0


class MeshSimulator:
    """Drives topology changes and message delivery on a mesh."""

    def __init__(
        self,
        mesh_config: Optional[MeshConfig] = None,
        routing_config: Optional[RoutingConfig] = None,
        config: Optional[SimulationConfig] = None,
    ):
        self.config = config or SimulationConfig()
        self.mesh_config = mesh_config or MeshConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.network = MeshNetwork(self.mesh_config, rng=self.rng)
        self.router = Router(routing_config, rng=self.rng)
        self.messages: List[MessageDelivery] = []
        self.crisis_events: List[CrisisEvent] = []
        self._spawned = 0

    def init(self, node_count: int = 12) -> List[Node]:
        """Replace the current mesh with ``node_count`` freshly spawned nodes."""
        self.network = MeshNetwork(self.mesh_config, rng=self.rng)
        self.messages = []
        self.crisis_events = []
        self._spawned = 0

        nodes = [self.add_node() for _ in range(node_count)]
        logger.info(
            f"Simulation initialised with {len(nodes)} nodes and "
            f"{len(self.network.get_connections())} connections"
        )
        return nodes

    def add_node(self) -> Node:
        """Spawn one node inside its neighbourhood cluster."""
        index = self._spawned
        self._spawned += 1

        cfg = self.config
        cluster = index % cfg.cluster_count
        columns = 2 if cfg.cluster_count > 1 else 1
        rows = -(-cfg.cluster_count // columns)
        center_x = ((cluster % columns) + 0.5) * (cfg.area_width / columns)
        center_y = ((cluster // columns) + 0.5) * (cfg.area_height / rows)

        x = center_x + (self.rng.random() - 0.5) * (cfg.area_width / 3)
        y = center_y + (self.rng.random() - 0.5) * (cfg.area_height / 3)
        x = max(cfg.edge_margin, min(cfg.area_width - cfg.edge_margin, x))
        y = max(cfg.edge_margin, min(cfg.area_height - cfg.edge_margin, y))

        name = NODE_NAMES[index % len(NODE_NAMES)]
        if index >= len(NODE_NAMES):
            name = f"{name}-{index // len(NODE_NAMES)}"

        node = self.network.create_node(name, float(x), float(y), node_id=f"node-{index}")
        self.network.update_node_metrics(
            node.node_id,
            battery=70.0 + self.rng.random() * 30.0,
            signal_strength=60.0 + self.rng.random() * 40.0,
        )
        return node

    def tick(self) -> TickResult:
        """Advance the simulation by one step and heal the mesh."""
        cfg = self.config
        result = TickResult()

        for node in self.network.get_nodes():
            battery = max(0.0, node.battery - self.rng.random() * cfg.battery_drain)

            if node.status == NodeStatus.ONLINE and self.rng.random() < cfg.node_failure_rate:
                self.network.update_node_status(node.node_id, NodeStatus.OFFLINE)
                result.failed.append(node.node_id)
            elif node.status == NodeStatus.OFFLINE and self.rng.random() < cfg.recovery_rate:
                self.network.simulate_recovery(node.node_id)
                battery = 100.0
                result.recovered.append(node.node_id)

            signal = node.signal_strength + (self.rng.random() - 0.5) * cfg.signal_jitter
            self.network.update_node_metrics(
                node.node_id,
                battery=battery,
                signal_strength=max(cfg.min_signal, min(100.0, signal)),
            )

        if self.rng.random() < cfg.crisis_chance:
            result.crisis = self._random_crisis()

        self.network.heal_network()

        if result.failed or result.recovered:
            logger.info(
                f"Tick: {len(result.failed)} nodes failed, "
                f"{len(result.recovered)} recovered"
            )
        return result

    def trigger_crisis(
        self,
        crisis_type: Union[CrisisType, str],
        center_node_id: Optional[str] = None,
        severity: CrisisSeverity = CrisisSeverity.HIGH,
    ) -> CrisisEvent:
        """Strike the area around a node; every affected online node goes offline.

        Without ``center_node_id`` the centre is drawn at random.
        """
        crisis_type = CrisisType.parse(crisis_type)

        if center_node_id is None:
            nodes = self.network.get_nodes()
            if not nodes:
                raise TopologyError("Cannot trigger a crisis on an empty mesh")
            center = nodes[self.rng.integers(len(nodes))]
        else:
            center = self.network.get_node(center_node_id)
            if center is None:
                raise TopologyError(
                    f"Node {center_node_id} is not part of this mesh",
                    node_id=center_node_id,
                )

        event = self._strike(crisis_type, center, severity, outage_probability=1.0)
        self.network.heal_network()
        return event

    def _random_crisis(self) -> Optional[CrisisEvent]:
        nodes = self.network.get_nodes()
        if not nodes:
            return None

        types = list(CrisisType)
        crisis_type = types[self.rng.integers(len(types))]
        center = nodes[self.rng.integers(len(nodes))]

        draw = self.rng.random()
        severity = next(
            (level for bound, level in CRISIS_SEVERITY_THRESHOLDS if draw < bound),
            CrisisSeverity.LOW,
        )
        return self._strike(
            crisis_type, center, severity, self.config.crisis_outage_probability
        )

    def _strike(
        self,
        crisis_type: CrisisType,
        center: Node,
        severity: CrisisSeverity,
        outage_probability: float,
    ) -> CrisisEvent:
        """Record a crisis and knock out affected online nodes. Caller heals."""
        event = CrisisEvent(
            event_id=f"crisis-{len(self.crisis_events)}",
            crisis_type=crisis_type,
            severity=severity,
            center_node=center.node_id,
            center_x=center.x,
            center_y=center.y,
            radius=CRISIS_RADIUS_KM[crisis_type],
        )
        event.affected_nodes = [
            node.node_id
            for node in self.network.get_nodes()
            if node.distance_to(center) < event.area_radius
        ]

        for node_id in event.affected_nodes:
            node = self.network.get_node(node_id)
            if node.is_online and self.rng.random() < outage_probability:
                self.network.update_node_status(node_id, NodeStatus.OFFLINE)
                event.offline_nodes.append(node_id)

        self.crisis_events.append(event)
        logger.warning(
            f"{severity.value.capitalize()} {crisis_type.value} around "
            f"{center.name} ({center.node_id}): {len(event.affected_nodes)} nodes "
            f"affected, {len(event.offline_nodes)} taken offline"
        )
        return event

    def trigger_outage(self, count: int = 5) -> List[str]:
        """Fail the first ``count`` online nodes, as a localised disaster would."""
        affected = [
            node.node_id for node in self.network.get_nodes() if node.is_online
        ][:count]
        for node_id in affected:
            self.network.simulate_failure(node_id)

        logger.warning(f"Outage took {len(affected)} nodes offline")
        return affected

    def send_message(
        self,
        source_id: str,
        destination_id: str,
        priority: Union[Priority, str] = Priority.NORMAL,
    ) -> MessageDelivery:
        """Route one message on the current topology and record the outcome."""
        priority = Priority.parse(priority)
        route = self.router.find_route(
            self.network.snapshot(), source_id, destination_id, priority
        )

        delivery = MessageDelivery(
            message_id=f"msg-{len(self.messages)}",
            source=source_id,
            destination=destination_id,
            priority=priority,
            route=route,
        )
        self.messages.append(delivery)

        if route is not None:
            self.network.record_delivery(route.path)

        return delivery

    def get_stats(self) -> SimulationStats:
        """Current node and message statistics."""
        nodes = self.network.get_nodes()
        online = sum(1 for node in nodes if node.is_online)
        delivered = sum(1 for message in self.messages if message.delivered)
        now = time.time()
        active = sum(
            1
            for event in self.crisis_events
            if now - event.timestamp < CRISIS_ACTIVE_WINDOW
        )

        return SimulationStats(
            total_nodes=len(nodes),
            online_nodes=online,
            offline_nodes=len(nodes) - online,
            total_messages=len(self.messages),
            delivered_messages=delivered,
            failed_messages=len(self.messages) - delivered,
            active_crises=active,
            network_health=int(online / max(len(nodes), 1) * 100),
            avg_battery=int(np.mean([n.battery for n in nodes])) if nodes else 0,
            avg_signal=int(np.mean([n.signal_strength for n in nodes])) if nodes else 0,
        )
