"""Validation of fitted primitives against the polyline they replace."""

from dataclasses import dataclass
from typing import List, Optional

from ..config import POINT_PRECISION
from ..core.models import FitResult, Polyline, PrimitiveKind
from .primitives import arc_endpoints, distance, primitive_deviation

# Absorbs floating round-off when re-measuring deviations
DEVIATION_SLACK = 1e-9


class FitInvariantError(RuntimeError):
    """Raised when a fit result breaks its output invariants."""


@dataclass
class ValidationIssue:
    """Represents a validation issue found in a fit result."""

    primitive_index: int
    issue_type: str
    severity: str  # "error", "warning"
    message: str
    value: Optional[float] = None
    limit: Optional[float] = None


@dataclass
class ValidationResult:
    """Result of fit validation."""

    is_valid: bool
    issues: List[ValidationIssue]
    total_errors: int
    total_warnings: int
    max_deviation: float = 0.0

    def add_issue(self, issue: ValidationIssue) -> None:
        """Add a validation issue."""
        self.issues.append(issue)
        if issue.severity == "error":
            self.total_errors += 1
            self.is_valid = False
        elif issue.severity == "warning":
            self.total_warnings += 1

    def get_summary(self) -> str:
        """Get validation summary."""
        if self.is_valid:
            return f"Validation passed with {self.total_warnings} warnings"
        else:
            return f"Validation failed: {self.total_errors} errors, {self.total_warnings} warnings"


class FitValidator:
    """Re-check a FitResult: coverage, tolerance bound, endpoints, continuity."""

    def __init__(self, tolerance: float) -> None:
        """Initialize fit validator.

        Args:
            tolerance: Maximum allowed deviation used for the fit
        """
        self.tolerance = tolerance

    def validate(self, polyline: Polyline, result: FitResult) -> ValidationResult:
        """Validate a fit result against its source polyline.

        Args:
            polyline: Polyline that was fitted
            result: Result produced for it

        Returns:
            ValidationResult with all issues found
        """
        validation = ValidationResult(
            is_valid=True, issues=[], total_errors=0, total_warnings=0
        )

        if not result.primitives:
            validation.add_issue(
                ValidationIssue(
                    primitive_index=-1,
                    issue_type="empty_result",
                    severity="error",
                    message="Fit result has no primitives",
                )
            )
            return validation

        self._validate_coverage(polyline, result, validation)
        self._validate_endpoints(polyline, result, validation)
        self._validate_deviation(polyline, result, validation)
        self._validate_arc_geometry(result, validation)
        self._validate_connections(result, validation)

        return validation

    def check(self, polyline: Polyline, result: FitResult) -> ValidationResult:
        """Validate and raise FitInvariantError on any error."""
        validation = self.validate(polyline, result)
        if not validation.is_valid:
            messages = "; ".join(
                issue.message for issue in validation.issues if issue.severity == "error"
            )
            raise FitInvariantError(
                f"Invalid fit for polyline {polyline.source_handles or '?'}: {messages}"
            )
        return validation

    def _validate_coverage(
        self, polyline: Polyline, result: FitResult, validation: ValidationResult
    ) -> None:
        """Spans must cover the polyline end to end without gaps."""
        expected_start = 0
        for i, (first, last) in enumerate(result.spans):
            if first != expected_start or last <= first:
                validation.add_issue(
                    ValidationIssue(
                        primitive_index=i,
                        issue_type="span_gap",
                        severity="error",
                        message=f"Primitive {i} covers points {first}-{last}, "
                        f"expected to start at {expected_start}",
                    )
                )
            expected_start = last

        if expected_start != len(polyline) - 1:
            validation.add_issue(
                ValidationIssue(
                    primitive_index=len(result.spans) - 1,
                    issue_type="incomplete_coverage",
                    severity="error",
                    message=f"Primitives end at point {expected_start} of {len(polyline) - 1}",
                )
            )

    def _validate_endpoints(
        self, polyline: Polyline, result: FitResult, validation: ValidationResult
    ) -> None:
        """Fitted path must start and end exactly on the polyline's endpoints."""
        if result.start_point != polyline.points[0]:
            validation.add_issue(
                ValidationIssue(
                    primitive_index=0,
                    issue_type="start_point",
                    severity="error",
                    message=f"Fit starts at {result.start_point}, polyline at {polyline.points[0]}",
                )
            )
        if result.end_point != polyline.points[-1]:
            validation.add_issue(
                ValidationIssue(
                    primitive_index=len(result.primitives) - 1,
                    issue_type="end_point",
                    severity="error",
                    message=f"Fit ends at {result.end_point}, polyline at {polyline.points[-1]}",
                )
            )

    def _validate_deviation(
        self, polyline: Polyline, result: FitResult, validation: ValidationResult
    ) -> None:
        """Every original point must be within tolerance of its primitive."""
        limit = self.tolerance + DEVIATION_SLACK
        for i, (primitive, (first, last)) in enumerate(
            zip(result.primitives, result.spans)
        ):
            for point in polyline.points[first : last + 1]:
                deviation = primitive_deviation(point, primitive)
                validation.max_deviation = max(validation.max_deviation, deviation)
                if deviation > limit:
                    validation.add_issue(
                        ValidationIssue(
                            primitive_index=i,
                            issue_type="tolerance_exceeded",
                            severity="error",
                            message=f"Point {point} deviates {deviation:.6g} from "
                            f"{primitive.kind.value} {i}",
                            value=deviation,
                            limit=self.tolerance,
                        )
                    )

    def _validate_arc_geometry(
        self, result: FitResult, validation: ValidationResult
    ) -> None:
        """Arc center, radius and angles must reproduce its end points."""
        for i, primitive in enumerate(result.primitives):
            if primitive.kind != PrimitiveKind.ARC:
                continue
            start, end = arc_endpoints(primitive)
            for label, drawn, expected in (
                ("starts", start, primitive.start_point),
                ("ends", end, primitive.end_point),
            ):
                gap = distance(drawn, expected)
                if gap > POINT_PRECISION:
                    validation.add_issue(
                        ValidationIssue(
                            primitive_index=i,
                            issue_type="arc_endpoint",
                            severity="error",
                            message=f"Arc {i} {label} at {drawn}, "
                            f"{gap:.6g} away from {expected}",
                            value=gap,
                            limit=POINT_PRECISION,
                        )
                    )

    def _validate_connections(
        self, result: FitResult, validation: ValidationResult
    ) -> None:
        """Consecutive primitives must share their boundary point."""
        for i in range(len(result.primitives) - 1):
            gap = distance(
                result.primitives[i].end_point, result.primitives[i + 1].start_point
            )
            if gap > 0.0:
                validation.add_issue(
                    ValidationIssue(
                        primitive_index=i,
                        issue_type="disconnected_primitives",
                        severity="error",
                        message=f"Gap of {gap:.6g} between primitives {i} and {i + 1}",
                        value=gap,
                        limit=0.0,
                    )
                )
