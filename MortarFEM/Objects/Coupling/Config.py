import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from MortarFEM.Exceptions import MortarConfigurationError


class MortarConstants:
    """Numerical constants of the mortar assembly.

    These can be overridden through MortarConfig where a field exists.
    """
    PROJECTION_TOLERANCE = 1e-10   # Newton step size tolerance for projections
    MAX_PROJECTION_ITERATIONS = 20
    DROP_TOLERANCE = 1e-12         # Entries below this are pruned from A and b
    ZERO_LENGTH = 1e-12            # Segment half-length / nodal tangent considered zero
    MAX_GRAM_CONDITION = 1e12      # Dual basis skipped above this cond(Me)
    TYING_INTEGRATION_ORDER = 3
    CONTACT_INTEGRATION_ORDER = 5


NORMAL_POLICIES = ('midpoint', 'quadrature')


@dataclass(frozen=True)
class MortarConfig:
    """
    Immutable settings passed into every mortar assembly.

    Attributes
    ----------
    rotate_normals : bool
        Reverse all slave normals
    dual_basis : bool
        Use the biorthogonal multiplier basis Φ = Ae·N (identity basis otherwise)
    adjust : bool
        Tying only: add the reference mismatch (X_s - X_m) to remove initial gaps
    gap_sign : float
        ±1, sign applied to n·(x_s - x_m) in the contact gap
    maximum_distance : float
        Skip a pair when the deformed corner midpoints are further apart
    always_inactive : frozenset of int
        Node ids excluded from active set switching
    integration_order : int or None
        Gauss points per segment; None picks the problem default
    normal_evaluation : str or None
        'midpoint' or 'quadrature'; None picks the problem default
    skip_failed_segmentation : bool or None
        master→slave projection failure: True skips the pair, False is fatal;
        None picks the problem default
    skip_failed_gauss_projection : bool
        slave→master projection failure at a Gauss point: True skips the point
    """
    rotate_normals: bool = False
    dual_basis: bool = True
    adjust: bool = False
    gap_sign: float = -1.0
    maximum_distance: float = math.inf
    always_inactive: FrozenSet[int] = field(default_factory=frozenset)
    integration_order: Optional[int] = None
    normal_evaluation: Optional[str] = None
    skip_failed_segmentation: Optional[bool] = None
    skip_failed_gauss_projection: bool = False
    projection_tolerance: float = MortarConstants.PROJECTION_TOLERANCE
    max_projection_iterations: int = MortarConstants.MAX_PROJECTION_ITERATIONS
    drop_tolerance: float = MortarConstants.DROP_TOLERANCE

    def __post_init__(self):
        # accept any iterable of node ids
        object.__setattr__(self, 'always_inactive', frozenset(int(n) for n in self.always_inactive))

    def validate(self) -> 'MortarConfig':
        if self.gap_sign not in (-1.0, 1.0):
            raise MortarConfigurationError(f"gap_sign must be +1 or -1, got {self.gap_sign}")
        if not self.maximum_distance > 0:
            raise MortarConfigurationError(
                f"maximum_distance must be positive, got {self.maximum_distance}")
        if self.integration_order is not None and self.integration_order < 1:
            raise MortarConfigurationError(
                f"integration_order must be positive, got {self.integration_order}")
        if self.normal_evaluation is not None and self.normal_evaluation not in NORMAL_POLICIES:
            raise MortarConfigurationError(
                f"normal_evaluation must be one of {NORMAL_POLICIES}, got '{self.normal_evaluation}'")
        if self.projection_tolerance <= 0:
            raise MortarConfigurationError(
                f"projection_tolerance must be positive, got {self.projection_tolerance}")
        if self.max_projection_iterations < 1:
            raise MortarConfigurationError(
                f"max_projection_iterations must be >= 1, got {self.max_projection_iterations}")
        if self.drop_tolerance < 0:
            raise MortarConfigurationError(
                f"drop_tolerance must be non-negative, got {self.drop_tolerance}")
        return self

    def with_defaults(self, integration_order: int, normal_evaluation: str,
                      skip_failed_segmentation: bool) -> 'MortarConfig':
        """Fill the per-problem defaults left as None."""
        return replace(
            self,
            integration_order=(integration_order if self.integration_order is None
                               else self.integration_order),
            normal_evaluation=(normal_evaluation if self.normal_evaluation is None
                               else self.normal_evaluation),
            skip_failed_segmentation=(skip_failed_segmentation if self.skip_failed_segmentation is None
                                      else self.skip_failed_segmentation),
        )
