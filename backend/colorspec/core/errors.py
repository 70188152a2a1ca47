from __future__ import annotations

from uuid import UUID


class MissingReferenceError(LookupError):
    """A color, room or photo id on a record that does not resolve."""

    def __init__(self, kind: str, ref_id: UUID | str | None, annotation_id: UUID | str | None = None) -> None:
        self.kind = kind
        self.ref_id = ref_id
        self.annotation_id = annotation_id
        msg = f"{kind} not found: id={ref_id}"
        if annotation_id is not None:
            msg += f", annotation_id={annotation_id}"
        super().__init__(msg)


class IneligibleAnnotationError(ValueError):
    """Annotation lacks a field required for aggregation. Not a hard error."""

    def __init__(self, annotation_id: UUID | str | None, reason: str) -> None:
        self.annotation_id = annotation_id
        self.reason = reason
        super().__init__(f"annotation {annotation_id} ineligible: {reason}")


class CounterUnderflowError(ValueError):
    """A decrement asked for more references than the color has."""

    def __init__(self, color_id: UUID, requested: int, available: int) -> None:
        self.color_id = color_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"usage_count underflow: color_id={color_id}, requested={requested}, available={available}"
        )


class BatchAccountingPartialFailure(RuntimeError):
    """Some per-color decrements of a batch could not be applied."""

    def __init__(self, failures: dict[UUID, str]) -> None:
        self.failures = dict(failures)
        ids = ", ".join(str(k) for k in self.failures)
        super().__init__(f"batch accounting failed for {len(self.failures)} color(s): {ids}")
