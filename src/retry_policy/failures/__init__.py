"""
Failure taxonomy and retry classification.

Main Components:
    - FailureKind: Classification tag with an explicit parent hierarchy
    - FailureTaxonomy: Maps raised exceptions to kinds
    - FailureClassifier: Protocol deciding retry eligibility
    - KindSetClassifier: Exact and hierarchical match against declared kinds
    - KindedError: Base exception declaring its own kind
"""

from retry_policy.failures.classifier import FailureClassifier, KindSetClassifier
from retry_policy.failures.exceptions import KindedError
from retry_policy.failures.kinds import FailureKind
from retry_policy.failures.taxonomy import FailureTaxonomy, default_taxonomy

__all__ = [
    "FailureKind",
    "FailureTaxonomy",
    "default_taxonomy",
    "FailureClassifier",
    "KindSetClassifier",
    "KindedError",
]
