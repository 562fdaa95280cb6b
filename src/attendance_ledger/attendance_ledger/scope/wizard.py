"""Class selection wizard: branch -> batch -> subject -> dashboard.

Pure state transitions over a ``ResolvedScope``; no UI concerns here.
A step with exactly one option is skipped automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from ..core.enums import WizardStep
from ..core.exceptions import ValidationError
from .model import BatchSelector, ResolvedScope

Choice = Union[str, BatchSelector]


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.BRANCH
    branch_id: Optional[str] = None
    batch: Optional[BatchSelector] = None
    subject_id: Optional[str] = None


def options(state: WizardState, scope: ResolvedScope) -> list:
    if state.step == WizardStep.BRANCH:
        return scope.branch_ids()
    if state.step == WizardStep.BATCH:
        return scope.batch_options(state.branch_id)
    if state.step == WizardStep.SUBJECT:
        return scope.subject_options(state.branch_id, state.batch)
    return []


def _apply(state: WizardState, choice: Choice) -> WizardState:
    if state.step == WizardStep.BRANCH:
        return WizardState(step=WizardStep.BATCH, branch_id=choice)
    if state.step == WizardStep.BATCH:
        return replace(state, step=WizardStep.SUBJECT, batch=choice, subject_id=None)
    return replace(state, step=WizardStep.DASHBOARD, subject_id=choice)


def next_state(state: WizardState, scope: ResolvedScope) -> WizardState:
    """Advance through every step that offers exactly one option."""
    while state.step != WizardStep.DASHBOARD:
        opts = options(state, scope)
        if len(opts) != 1:
            break
        state = _apply(state, opts[0])
    return state


def choose(state: WizardState, choice: Choice, scope: ResolvedScope) -> WizardState:
    if state.step == WizardStep.DASHBOARD:
        raise ValidationError("Selection is already complete")
    if choice not in options(state, scope):
        raise ValidationError(f"{choice} is not available at step {state.step.value}")
    return next_state(_apply(state, choice), scope)


def back(state: WizardState) -> WizardState:
    if state.step == WizardStep.DASHBOARD:
        return replace(state, step=WizardStep.SUBJECT, subject_id=None)
    if state.step == WizardStep.SUBJECT:
        return replace(state, step=WizardStep.BATCH, batch=None, subject_id=None)
    return WizardState()


def start(scope: ResolvedScope) -> WizardState:
    return next_state(WizardState(), scope)
