# src/claw_round/core/claw.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from .bus import EventBus
from .clock import SimClock
from .config import ClawSettings
from .events import ClawStateChangedEvent, GrabReleasedEvent, GrabStartedEvent
from .states import ClawState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClawInput:
    """One tick of player input: a horizontal axis and an activate edge."""
    horizontal: float = 0.0
    activate: bool = False

    @property
    def axis(self) -> float:
        return max(-1.0, min(1.0, float(self.horizontal)))


NO_INPUT = ClawInput()


@dataclass(frozen=True)
class ClawSnapshot:
    state: ClawState
    x: float
    y: float
    swing: float
    jaw_angle: float


def _approach(current: float, target: float, dt: float, speed: float) -> float:
    """Frame-rate aware lerp used for the cosmetic angles."""
    return current + (target - current) * min(1.0, dt * speed)


class ClawStateMachine:
    """
    The claw and its grab/drop protocol.

        Idle -> Descending -> Grabbing -> Ascending -> MovingToDrop
             -> Releasing -> (settlement_complete) -> Returning -> Idle

    Disabled is entered and left only through disable()/enable(). Requests
    that the current state does not accept are ignored. Swing and jaw angles
    are cosmetic and never gate a transition.
    """

    def __init__(self, settings: ClawSettings, bus: EventBus, clock: SimClock | None = None) -> None:
        self.settings = settings
        self._bus = bus
        self._clock = clock if clock is not None else SimClock()

        self._state = ClawState.DISABLED
        self._initial_x = settings.start_x
        self.x = settings.start_x
        self.y = settings.top_y

        self.swing = 0.0
        self._target_swing = 0.0
        self.jaw_angle = settings.idle_angle
        self._target_jaw = settings.idle_angle

        self._grab_timer = 0.0

    # --------- state control ---------

    @property
    def state(self) -> ClawState:
        return self._state

    @property
    def initial_x(self) -> float:
        return self._initial_x

    def enable(self) -> None:
        if self._state is not ClawState.DISABLED:
            return
        self.x = self._initial_x
        self.y = self.settings.top_y
        self._set_state(ClawState.IDLE)

    def disable(self) -> None:
        self._set_state(ClawState.DISABLED)

    def settlement_complete(self) -> None:
        """External signal that the dropped batch has been dealt with."""
        if self._state is ClawState.RELEASING:
            logger.debug("Settlement complete, returning")
            self._set_state(ClawState.RETURNING)

    def _set_state(self, new_state: ClawState) -> None:
        if self._state is new_state:
            return
        previous = self._state
        logger.debug("State: %s -> %s", previous.value, new_state.value)
        self._state = new_state
        self._on_enter(new_state)
        self._bus.emit(ClawStateChangedEvent(t=self._clock.time, previous=previous, current=new_state))

    def _on_enter(self, state: ClawState) -> None:
        s = self.settings
        if state is ClawState.IDLE or state is ClawState.RETURNING:
            self._target_jaw = s.idle_angle
        elif state is ClawState.DESCENDING:
            self._target_jaw = s.open_angle
            self._bus.emit(GrabStartedEvent(t=self._clock.time))
        elif state is ClawState.GRABBING:
            self._grab_timer = 0.0
            self._target_jaw = s.close_angle
        elif state is ClawState.RELEASING:
            self._target_jaw = s.open_angle
            self._bus.emit(GrabReleasedEvent(t=self._clock.time))

    # --------- per tick ---------

    def update(self, dt: float, claw_input: ClawInput = NO_INPUT) -> None:
        if self._state is ClawState.DISABLED:
            return

        self._target_swing = 0.0
        state = self._state
        if state is ClawState.IDLE:
            self._update_idle(dt, claw_input)
        elif state is ClawState.DESCENDING:
            self._update_descending(dt)
        elif state is ClawState.GRABBING:
            self._update_grabbing(dt)
        elif state is ClawState.ASCENDING:
            self._update_ascending(dt)
        elif state is ClawState.MOVING_TO_DROP:
            if self._move_x_toward(self.settings.drop_x, self.settings.move_to_drop_speed * dt):
                self._set_state(ClawState.RELEASING)
        elif state is ClawState.RETURNING:
            if self._move_x_toward(self._initial_x, self.settings.move_to_drop_speed * dt):
                self._set_state(ClawState.IDLE)
        # RELEASING waits for settlement_complete()

        self.swing = _approach(self.swing, self._target_swing, dt, self.settings.swing_speed)
        self.jaw_angle = _approach(self.jaw_angle, self._target_jaw, dt, self.settings.jaw_speed)

    def _update_idle(self, dt: float, claw_input: ClawInput) -> None:
        axis = claw_input.axis
        self._target_swing = -axis * self.settings.swing_angle
        if axis != 0.0:
            new_x = self.x + axis * self.settings.move_speed * dt
            self.x = min(max(new_x, self.settings.left_bound), self.settings.right_bound)
        if claw_input.activate:
            self._set_state(ClawState.DESCENDING)

    def _update_descending(self, dt: float) -> None:
        self.y -= self.settings.descend_speed * dt
        if self.y <= self.settings.bottom_y:
            self.y = self.settings.bottom_y
            self._set_state(ClawState.GRABBING)

    def _update_grabbing(self, dt: float) -> None:
        self._grab_timer += dt
        if self._grab_timer >= self.settings.grab_duration:
            self._set_state(ClawState.ASCENDING)

    def _update_ascending(self, dt: float) -> None:
        self.y += self.settings.ascend_speed * dt
        if self.y >= self.settings.top_y:
            self.y = self.settings.top_y
            self._set_state(ClawState.MOVING_TO_DROP)

    def _move_x_toward(self, target: float, step: float) -> bool:
        """Move horizontally by at most `step`; snap and return True once within tolerance."""
        remaining = target - self.x
        if abs(remaining) <= step + self.settings.arrive_tolerance:
            self.x = target
            return True
        self.x += step if remaining > 0 else -step
        return False

    def snapshot(self) -> ClawSnapshot:
        return ClawSnapshot(state=self._state, x=self.x, y=self.y, swing=self.swing, jaw_angle=self.jaw_angle)
