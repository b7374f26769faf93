# src/claw_round/core/round_decisions.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RoundAction(str, Enum):
    CONTINUE = "continue"
    SUCCEED = "succeed"
    FAIL = "fail"


@dataclass(frozen=True)
class RoundDecision:
    action: RoundAction
    reason: str = ""

    @property
    def ends_round(self) -> bool:
        return self.action is not RoundAction.CONTINUE


def decide_after_score(total: int, target: int, awaiting_final_settlement: bool) -> RoundDecision:
    """
    What the round should do after a new score total.

    Priority: SUCCEED > FAIL > CONTINUE. A round only fails here once the
    grab budget is spent and the last grab's batch has been scored.
    """
    if total >= target:
        return RoundDecision(RoundAction.SUCCEED, f"total {total} reached target {target}")
    if awaiting_final_settlement:
        return RoundDecision(
            RoundAction.FAIL,
            f"final settlement scored {total} < target {target} with no grabs left",
        )
    return RoundDecision(RoundAction.CONTINUE)


def decide_after_empty_drop(awaiting_final_settlement: bool) -> RoundDecision:
    """A release that delivered nothing to score; fatal only on the last grab."""
    if awaiting_final_settlement:
        return RoundDecision(RoundAction.FAIL, "last grab delivered no balls")
    return RoundDecision(RoundAction.CONTINUE, "empty drop")


def decide_at_start(remaining_grabs: int) -> RoundDecision:
    """A round that opens without a single grab can never score."""
    if remaining_grabs <= 0:
        return RoundDecision(RoundAction.FAIL, "round started with no grabs")
    return RoundDecision(RoundAction.CONTINUE)
