import pytest

from okinascan.analysis.policy import ClassificationPolicy, StrictApprovalPolicy
from okinascan.core.models import CharacterProbeResult, DiacriticalSupportSummary


def _summary(*supported: bool) -> DiacriticalSupportSummary:
    characters = "āēīōūĀĒĪŌŪ"
    return DiacriticalSupportSummary.from_probes(
        CharacterProbeResult(character=char, supported=flag, width=30.0 if flag else 0.0)
        for char, flag in zip(characters, supported)
    )


@pytest.mark.parametrize(
    ("distinct", "all_supported", "expected"),
    [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, False),
    ],
)
def test_strict_policy_truth_table(distinct: bool, all_supported: bool, expected: bool) -> None:
    flags = [True] * 10 if all_supported else [True] * 9 + [False]
    assert StrictApprovalPolicy().classify(distinct, _summary(*flags)) is expected


def test_policy_satisfies_protocol() -> None:
    assert isinstance(StrictApprovalPolicy(), ClassificationPolicy)


def test_empty_summary_counts_as_fully_supported() -> None:
    summary = DiacriticalSupportSummary.from_probes([])
    assert summary.all_supported is True
    assert summary.percentage_supported == 0.0
    assert StrictApprovalPolicy().classify(True, summary) is True
