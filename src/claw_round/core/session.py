# src/claw_round/core/session.py

from __future__ import annotations

from dataclasses import dataclass, field

from claw_round.utils.random import DeterministicRandomRegistry

from .arena import BallArena
from .bus import EventBus
from .claw import NO_INPUT, ClawInput, ClawStateMachine
from .claw_range import ClawRangeTracker
from .clock import SimClock
from .config import MachineConfig, PlayerInventory, RoundConfiguration
from .grab_budget import GrabBudget
from .orchestrator import RoundOrchestrator
from .physics import PhysicsBackend
from .placement import PlacementEngine
from .scoring import ScoreAggregator
from .settlement import SettlementDetector


@dataclass
class RoundSession:
    """
    Every component of one round session, wired through a private event bus.

    tick() is the only entry point the host calls per frame. Within a tick the
    settlement detector runs first, then the orchestrator's timers, then the
    claw, so a round ended by a score event never sees another claw update.
    """
    machine: MachineConfig
    bus: EventBus
    clock: SimClock
    registry: DeterministicRandomRegistry
    arena: BallArena
    placement: PlacementEngine
    claw: ClawStateMachine
    grab_budget: GrabBudget
    aggregator: ScoreAggregator
    orchestrator: RoundOrchestrator
    detector: SettlementDetector | None = None
    claw_range: ClawRangeTracker | None = None
    meta: dict = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        machine: MachineConfig,
        *,
        physics: PhysicsBackend | None = None,
        registry: DeterministicRandomRegistry | None = None,
        with_detector: bool = True,
        with_claw_range: bool = True,
    ) -> "RoundSession":
        bus = EventBus()
        clock = SimClock()
        registry = registry if registry is not None else DeterministicRandomRegistry()
        arena = BallArena(machine.arena, physics=physics)
        placement = PlacementEngine(machine.arena, max_retries=machine.timings.max_spawn_retries)
        claw = ClawStateMachine(machine.claw, bus, clock)
        grab_budget = GrabBudget(bus, clock)
        aggregator = ScoreAggregator(bus, clock)
        detector = SettlementDetector(machine.settlement, arena, bus, clock) if with_detector else None
        claw_range = ClawRangeTracker(bus) if with_claw_range else None
        orchestrator = RoundOrchestrator(
            bus=bus,
            registry=registry,
            arena=arena,
            placement=placement,
            claw=claw,
            grab_budget=grab_budget,
            aggregator=aggregator,
            timings=machine.timings,
            detector=detector,
            claw_range=claw_range,
            clock=clock,
        )
        return cls(
            machine=machine,
            bus=bus,
            clock=clock,
            registry=registry,
            arena=arena,
            placement=placement,
            claw=claw,
            grab_budget=grab_budget,
            aggregator=aggregator,
            orchestrator=orchestrator,
            detector=detector,
            claw_range=claw_range,
        )

    def start_round(self, config: RoundConfiguration, inventory: PlayerInventory | None = None) -> bool:
        return self.orchestrator.start_round(config, inventory)

    def tick(self, dt: float, claw_input: ClawInput = NO_INPUT) -> None:
        self.clock.advance(dt)
        if self.detector is not None:
            self.detector.update(dt)
        self.orchestrator.update(dt)
        self.claw.update(dt, claw_input)

    def run(self, n_ticks: int, dt: float, claw_input: ClawInput = NO_INPUT) -> None:
        for _ in range(n_ticks):
            self.tick(dt, claw_input)

    def close(self) -> None:
        """Detach every component from the bus."""
        self.orchestrator.close()
        self.grab_budget.close()
        if self.detector is not None:
            self.detector.close()
        if self.claw_range is not None:
            self.claw_range.close()
