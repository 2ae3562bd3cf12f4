"""contools.core - 例外・戻り値型.

例外階層:
  ConstitutiveToolsError (ValueError)
    ShapeMismatchError
    InvalidDomainError
      NegativeJacobianDeterminantError
    SingularMatrixError
"""

from contools.core.errors import (
    ConstitutiveToolsError,
    ErrorKind,
    InvalidDomainError,
    NegativeJacobianDeterminantError,
    ShapeMismatchError,
    SingularMatrixError,
    wrap_errors,
)
from contools.core.results import (
    DeformationRateJacobian,
    EvolveFJacobianResult,
    EvolveFResult,
    JacobianCheckResult,
    MappingJacobianResult,
    MidpointJacobianResult,
    MidpointResult,
    ScalarJacobianResult,
    StrainDecomposition,
    StrainDecompositionJacobian,
    TensorJacobianResult,
    ThermalExpansionResult,
)

__all__ = [
    "ErrorKind",
    "ConstitutiveToolsError",
    "ShapeMismatchError",
    "InvalidDomainError",
    "SingularMatrixError",
    "NegativeJacobianDeterminantError",
    "wrap_errors",
    "ScalarJacobianResult",
    "ThermalExpansionResult",
    "TensorJacobianResult",
    "StrainDecomposition",
    "StrainDecompositionJacobian",
    "DeformationRateJacobian",
    "MappingJacobianResult",
    "MidpointResult",
    "MidpointJacobianResult",
    "EvolveFResult",
    "EvolveFJacobianResult",
    "JacobianCheckResult",
]
