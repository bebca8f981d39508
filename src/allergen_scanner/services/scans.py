"""Scan orchestration for food photos and product labels."""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TypeVar
from uuid import UUID, uuid4

from allergen_scanner.domain.classification import ClassificationResult
from allergen_scanner.domain.errors import InferenceFailure, PreconditionError
from allergen_scanner.domain.scans import (
    EncodedImage,
    ScanContext,
    ScanMode,
    ScanOutcome,
    ScanResult,
    ScanState,
)
from allergen_scanner.services.allergens import AllergenEvaluator
from allergen_scanner.services.classification import ClassificationService
from allergen_scanner.services.foods import FoodReferenceStore
from allergen_scanner.services.text_extraction import TextExtractionService

_T = TypeVar("_T")

_FAILURE_MESSAGES = {
    ScanMode.FOOD: "Analysis failed. Could not analyze the food item.",
    ScanMode.LABEL: "Analysis failed. Could not read the ingredient label.",
}

_logger = logging.getLogger(__name__)


@dataclass
class ScanRegistry:
    """Tracks the current scan per session so stale results can be dropped."""

    _active: dict[str, UUID] = field(default_factory=dict)

    def begin(self, session_id: str) -> UUID:
        """Register a new scan, superseding any scan already in flight."""
        token = uuid4()
        self._active[session_id] = token
        return token

    def cancel(self, session_id: str) -> bool:
        """Cancel the session's scan. Return True when one was in flight."""
        return self._active.pop(session_id, None) is not None

    def is_current(self, session_id: str, token: UUID) -> bool:
        """Return True when the token is still the session's active scan."""
        return self._active.get(session_id) == token

    def finish(self, session_id: str, token: UUID) -> None:
        """Forget a completed scan if it is still the active one."""
        if self.is_current(session_id, token):
            del self._active[session_id]


@dataclass
class ScanRun:
    """States visited by one scan invocation."""

    mode: ScanMode
    states: list[ScanState] = field(default_factory=lambda: [ScanState.IDLE])

    @property
    def state(self) -> ScanState:
        """Return the current state."""
        return self.states[-1]

    def advance(self, state: ScanState) -> None:
        """Record a transition."""
        _logger.debug("%s scan: %s -> %s", self.mode, self.state, state)
        self.states.append(state)


@dataclass
class ScanOrchestrator:
    """Runs food-identification and label scans against an allergy profile."""

    classifier: ClassificationService
    text_extractor: TextExtractionService
    evaluator: AllergenEvaluator
    food_store: FoodReferenceStore
    registry: ScanRegistry = field(default_factory=ScanRegistry)
    timeout_seconds: float | None = None
    debug_errors: bool = False

    async def scan_food(
        self, context: ScanContext, image: EncodedImage | None
    ) -> ScanResult:
        """Classify a food photo, resolve its ingredients and grade the risk."""
        checked = _require_image(image)
        run = ScanRun(ScanMode.FOOD)
        return await self._execute(
            context, run, self._run_food(run, context, checked)
        )

    async def scan_label(
        self, context: ScanContext, image: EncodedImage | None
    ) -> ScanResult:
        """Read a label's ingredient text and grade the risk."""
        checked = _require_image(image)
        run = ScanRun(ScanMode.LABEL)
        return await self._execute(
            context, run, self._run_label(run, context, checked)
        )

    async def _execute(
        self, context: ScanContext, run: ScanRun, flow: Awaitable[ScanResult]
    ) -> ScanResult:
        """Run one scan flow under a registry token."""
        token = self.registry.begin(context.session_id)
        try:
            try:
                result = await flow
            except InferenceFailure as exc:
                _logger.exception(
                    "%s scan failed",
                    run.mode,
                    extra={"session_id": context.session_id},
                )
                result = self._failed(run, exc)
            return self._deliver(context, token, run, result)
        finally:
            self.registry.finish(context.session_id, token)

    def cancel(self, session_id: str) -> bool:
        """Discard the result of the session's in-flight scan."""
        cancelled = self.registry.cancel(session_id)
        if cancelled:
            _logger.info("Scan cancelled", extra={"session_id": session_id})
        return cancelled

    async def _run_food(
        self, run: ScanRun, context: ScanContext, image: EncodedImage
    ) -> ScanResult:
        run.advance(ScanState.CLASSIFYING)
        classification = await self._call(self.classifier.classify(image))
        if not classification.is_food:
            run.advance(ScanState.NOT_FOOD)
            run.advance(ScanState.DONE)
            return ScanResult(
                mode=run.mode,
                outcome=ScanOutcome.NOT_FOOD,
                classification=classification,
            )

        run.advance(ScanState.LOOKING_UP_DETAILS)
        ingredients = self._resolve_ingredients(classification)
        if not ingredients:
            run.advance(ScanState.DONE)
            return ScanResult(
                mode=run.mode,
                outcome=ScanOutcome.NO_DETAIL,
                classification=classification,
            )

        run.advance(ScanState.EVALUATING)
        verdict = await self._call(
            self.evaluator.evaluate(list(ingredients), context.profile.allergens)
        )
        run.advance(ScanState.DONE)
        return ScanResult(
            mode=run.mode,
            outcome=ScanOutcome.VERDICT,
            classification=classification,
            ingredients=ingredients,
            verdict=verdict,
        )

    async def _run_label(
        self, run: ScanRun, context: ScanContext, image: EncodedImage
    ) -> ScanResult:
        run.advance(ScanState.EXTRACTING)
        text = await self._call(self.text_extractor.extract_text(image))
        ingredients = split_ingredients(text)
        if not ingredients:
            run.advance(ScanState.DONE)
            return ScanResult(
                mode=run.mode, outcome=ScanOutcome.NO_TEXT, extracted_text=text
            )

        run.advance(ScanState.EVALUATING)
        verdict = await self._call(
            self.evaluator.evaluate(text, context.profile.allergens)
        )
        run.advance(ScanState.DONE)
        return ScanResult(
            mode=run.mode,
            outcome=ScanOutcome.VERDICT,
            ingredients=ingredients,
            extracted_text=text,
            verdict=verdict,
        )

    def _resolve_ingredients(
        self, classification: ClassificationResult
    ) -> tuple[str, ...]:
        """Prefer classifier details, then the reference store."""
        details = classification.food_details
        if details is not None:
            supplied = _clean(details.ingredients)
            if supplied:
                return supplied
        record = self.food_store.lookup(classification.classification)
        if record is None:
            _logger.info("No reference record for %s", classification.classification)
            return ()
        return _clean(record.ingredients)

    async def _call(self, awaitable: Awaitable[_T]) -> _T:
        """Await an adapter call, treating timeout as an inference failure."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise InferenceFailure(
                f"Inference call timed out after {self.timeout_seconds}s"
            ) from exc

    def _failed(self, run: ScanRun, exc: InferenceFailure) -> ScanResult:
        run.advance(ScanState.FAILED)
        message = _FAILURE_MESSAGES[run.mode]
        if self.debug_errors:
            message = f"{message} (debug: {type(exc).__name__}: {exc})"
        return ScanResult.failed(run.mode, message)

    def _deliver(
        self, context: ScanContext, token: UUID, run: ScanRun, result: ScanResult
    ) -> ScanResult:
        if not self.registry.is_current(context.session_id, token):
            _logger.info(
                "Discarding result of a cancelled scan",
                extra={"session_id": context.session_id},
            )
            return ScanResult.cancelled(run.mode)
        return dataclasses.replace(result, states=tuple(run.states))


def split_ingredients(text: str) -> tuple[str, ...]:
    """Split label text into ingredients, keeping parenthesised groups whole."""
    body = text.strip()
    if body.casefold().startswith("ingredients"):
        body = body[len("ingredients") :].lstrip(" :")
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in body:
        if char in "([":
            depth += 1
        elif char in ")]" and depth:
            depth -= 1
        if char in ",;\n" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return _clean(parts)


def _clean(items: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    return tuple(
        cleaned for cleaned in (item.strip().rstrip(".") for item in items) if cleaned
    )


def _require_image(image: EncodedImage | None) -> EncodedImage:
    if image is None:
        raise PreconditionError("No image selected.")
    if not image.data:
        raise PreconditionError("Image is empty.")
    return image
