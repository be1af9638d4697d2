"""
Stepper Workflow: the authoring state machine over one attribute draft.

Steps run in a fixed order (general -> type -> properties -> validation ->
review). Forward moves are gated by the current step's validator; backward
moves never validate. Step handlers below are the only code that mutates the
draft. submit() re-runs every validator, checks the rule set against the
draft's type and itself, applies the type's submission policy and only then
calls the persistence collaborator.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from pimattr.core.attributes.attribute import DEFAULT_LANGUAGE, Attribute
from pimattr.core.attributes.draft import AttributeDraft
from pimattr.core.errors import FieldValidationError
from pimattr.core.options.resolver import OptionsResolver
from pimattr.core.registries.type_registry import coerce_type, is_enumerable
from pimattr.core.types import AttributeType
from pimattr.core.validation.rules import (
    PolicyCheck,
    applicability_errors,
    check_submission_policy,
    consistency_errors,
    exact_digits_rules,
    reproject,
    with_rule,
)
from pimattr.core.workflow.steps import STEP_ORDER, STEP_VALIDATORS, StepErrors, StepId

if TYPE_CHECKING:
    from pimattr.services.catalog_service import AttributePersistenceService

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[PolicyCheck], Union[bool, Awaitable[bool]]]

# errors owned by step validators; everything else is a rule error
_STEP_FIELDS = frozenset({"name", "code", "options"})


class SubmitStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class SubmitResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: SubmitStatus
    attribute: Optional[Attribute] = None
    errors: Dict[str, str] = Field(default_factory=dict)
    step: Optional[StepId] = None
    policy: Optional[PolicyCheck] = None

    @property
    def ok(self) -> bool:
        return self.status in (SubmitStatus.CREATED, SubmitStatus.UPDATED)


class StepperWorkflow:
    """Drives one authoring session from a blank (or seeded) draft to submission."""

    def __init__(
        self,
        draft: AttributeDraft,
        resolver: OptionsResolver,
        persistence: AttributePersistenceService,
        *,
        language: str = DEFAULT_LANGUAGE,
        attribute: Optional[Attribute] = None,
    ):
        self._draft: Optional[AttributeDraft] = draft
        self.resolver = resolver
        self.persistence = persistence
        self.language = language
        self.original = attribute
        self.steps: Tuple[StepId, ...] = STEP_ORDER
        self.current_step_index = 0
        self.completed_steps: Set[int] = set()
        self.errors: StepErrors = {}
        self.notices: List[str] = []
        self.resolver.seed(draft.options)

    @classmethod
    def for_edit(
        cls,
        attribute: Attribute,
        resolver: OptionsResolver,
        persistence: AttributePersistenceService,
        *,
        language: str = DEFAULT_LANGUAGE,
    ) -> "StepperWorkflow":
        """Edit session: every step starts completed, submit sends a partial update."""
        workflow = cls(
            AttributeDraft.from_attribute(attribute),
            resolver,
            persistence,
            language=language,
            attribute=attribute,
        )
        workflow.completed_steps = set(range(len(workflow.steps)))
        return workflow

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def draft(self) -> AttributeDraft:
        if self._draft is None:
            raise RuntimeError("Authoring workflow was cancelled; the draft is gone")
        return self._draft

    @property
    def closed(self) -> bool:
        return self._draft is None

    @property
    def current_step(self) -> StepId:
        return self.steps[self.current_step_index]

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == len(self.steps) - 1

    def validate_step(self, index: int) -> StepErrors:
        return STEP_VALIDATORS[self.steps[index]](self.draft, self.language)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """Validate the current step and move forward; False when blocked or at the end."""
        if self.is_last_step:
            return False
        errors = self.validate_step(self.current_step_index)
        self.errors = errors
        if errors:
            logger.debug("Step %s blocked: %s", self.current_step.value, errors)
            return False
        self.completed_steps.add(self.current_step_index)
        self.current_step_index += 1
        return True

    def retreat(self) -> bool:
        if self.current_step_index == 0:
            return False
        self.current_step_index -= 1
        self.errors = {}
        return True

    def go_to(self, index: int) -> bool:
        """Jump to any step whose predecessors have all been completed."""
        if not 0 <= index < len(self.steps):
            return False
        if any(i not in self.completed_steps for i in range(index)):
            return False
        self.current_step_index = index
        self.errors = {}
        return True

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def set_general(
        self,
        *,
        name: Optional[str] = None,
        code: Optional[str] = None,
        description: Optional[str] = None,
        language: Optional[str] = None,
    ) -> None:
        draft = self.draft
        lang = language or self.language
        if name is not None:
            draft.name = {**draft.name, lang: name}
        if code is not None:
            draft.code = code
        if description is not None:
            draft.description = {**draft.description, lang: description}

    def set_group(self, group_id: Optional[str]) -> None:
        self.draft.attribute_group = group_id or None

    async def set_type(self, new_type: Any) -> Tuple[str, ...]:
        """Change the draft's type; returns the rule keys that no longer apply.

        Raises:
            FatalTypeError: ``new_type`` is not a known attribute type.
            TransportError: loading the option pool failed (the type change
                itself is kept).
        """
        draft = self.draft
        resolved = coerce_type(new_type)
        rules, dropped = reproject(draft.validations, resolved)
        draft.type = resolved
        draft.validations = rules
        if dropped:
            self.notices.append(f"Rules not available for {resolved.value} were removed: {', '.join(dropped)}")
        try:
            await self.resolver.on_type_change(resolved)
        finally:
            # the session may have been cancelled while the pool was loading
            if not self.closed:
                draft.options = list(self.resolver.selected)
                self._refresh_rule_errors()
        return dropped

    def set_required(self, required: bool) -> None:
        self.draft.is_required = bool(required)

    def toggle_option(self, option_id: str) -> Tuple[str, ...]:
        draft = self.draft
        self.errors.pop("options", None)
        if not is_enumerable(draft.type):
            self.errors["options"] = f"Type {draft.type.value} does not take options"
            return tuple(draft.options)
        try:
            selected = self.resolver.toggle(option_id)
        except FieldValidationError as exc:
            self.errors.update(exc.errors)
            return tuple(draft.options)
        draft.options = list(selected)
        return selected

    def set_rule(self, key: str, value: Any) -> StepErrors:
        """Set (or clear, with an empty value) one rule; returns the live rule errors."""
        draft = self.draft
        try:
            draft.validations = with_rule(draft.validations, draft.type, key, value)
        except FieldValidationError as exc:
            return self._refresh_rule_errors(exc.errors)
        return self._refresh_rule_errors()

    def apply_exact_digits(self, digits: int) -> StepErrors:
        """Constrain a numeric draft to integers with exactly ``digits`` digits."""
        draft = self.draft
        if draft.type != AttributeType.NUMBER:
            return self._refresh_rule_errors({"exactDigits": "Only numeric attributes take a digit count"})
        try:
            draft.validations = exact_digits_rules(digits, draft.validations)
        except FieldValidationError as exc:
            return self._refresh_rule_errors(exc.errors)
        return self._refresh_rule_errors()

    def _refresh_rule_errors(self, extra: Optional[StepErrors] = None) -> StepErrors:
        for key in [k for k in self.errors if k not in _STEP_FIELDS]:
            self.errors.pop(key)
        live = {**consistency_errors(self.draft.validations), **(extra or {})}
        self.errors.update(live)
        return live

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, confirm: Optional[ConfirmCallback] = None) -> SubmitResult:
        """Run the final gate and hand the draft to the persistence service.

        ``confirm`` is asked about soft policy warnings; without it a soft
        warning cancels the attempt. Collaborator failures propagate
        unchanged.
        """
        draft = self.draft

        for index in range(len(self.steps)):
            errors = self.validate_step(index)
            if errors:
                return self._reject(index, errors)

        validation_index = self.steps.index(StepId.VALIDATION)
        errors = applicability_errors(draft.validations, draft.type)
        if errors:
            return self._reject(validation_index, errors)
        errors = consistency_errors(draft.validations)
        if errors:
            return self._reject(validation_index, errors)

        check = check_submission_policy(draft.type, draft.validations)
        if check.blocking:
            return self._reject(validation_index, {"validations": check.message or "Validation rules required"}, check)
        if check.needs_confirmation and not await self._confirm(confirm, check):
            logger.info("Submission of %s cancelled at policy warning", draft.code)
            return SubmitResult(status=SubmitStatus.CANCELLED, step=self.current_step, policy=check)

        if self.original is None:
            attribute = await self.persistence.create(draft.to_payload())
            status = SubmitStatus.CREATED
        else:
            changes = draft.changed_fields(self.original)
            if changes:
                attribute = await self.persistence.update(self.original.id, changes)
            else:
                logger.info("No changes to %s; skipping update", self.original.code)
                attribute = self.original
            status = SubmitStatus.UPDATED

        logger.info("Attribute %s %s (%s)", attribute.code, status.value, attribute.id)
        self.original = attribute
        self.errors = {}
        self.completed_steps = set(range(len(self.steps)))
        return SubmitResult(status=status, attribute=attribute, step=self.current_step, policy=check)

    def _reject(self, index: int, errors: StepErrors, check: Optional[PolicyCheck] = None) -> SubmitResult:
        self.current_step_index = index
        self.errors = dict(errors)
        logger.debug("Submission rejected at %s: %s", self.steps[index].value, errors)
        return SubmitResult(status=SubmitStatus.REJECTED, errors=dict(errors), step=self.steps[index], policy=check)

    @staticmethod
    async def _confirm(confirm: Optional[ConfirmCallback], check: PolicyCheck) -> bool:
        if confirm is None:
            return False
        answer = confirm(check)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def cancel(self) -> None:
        """Discard the draft and stop the session's pending queries."""
        if self._draft is None:
            return
        self.resolver.close()
        self._draft = None
        self.errors = {}
        logger.debug("Authoring workflow cancelled")


__all__ = ["StepperWorkflow", "SubmitResult", "SubmitStatus", "ConfirmCallback"]
