"""Session-credit packages granted when a credit-granting service is paid for."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


class CreditType:
    GRAY_MATTER = "gray_matter"
    OPTIMAL_WELLNESS = "optimal_wellness"
    CHALLENGE = "challenge"
    HBOT = "hbot"


CREDIT_TYPE_DISPLAY_NAMES: Dict[str, str] = {
    CreditType.GRAY_MATTER: "Gray Matter Recovery",
    CreditType.OPTIMAL_WELLNESS: "Optimal Wellness",
    CreditType.CHALLENGE: "Challenge Program",
    CreditType.HBOT: "HBOT Session",
}


@dataclass(frozen=True)
class CreditAllocationRule:
    service_id: str
    credit_type: str
    sessions: int
    expiration_days: int
    package_name: str


def _rule(
    service_id: str, credit_type: str, sessions: int, expiration_days: int, package_name: str
) -> tuple[str, CreditAllocationRule]:
    return service_id, CreditAllocationRule(
        service_id=service_id,
        credit_type=credit_type,
        sessions=sessions,
        expiration_days=expiration_days,
        package_name=package_name,
    )


CREDIT_ALLOCATION_RULES: Dict[str, CreditAllocationRule] = dict(
    [
        _rule(
            "gray-matter-recovery-3mo",
            CreditType.GRAY_MATTER,
            12,
            90,
            "Gray Matter Recovery (3-month Commitment)",
        ),
        _rule(
            "gray-matter-recovery-6mo",
            CreditType.GRAY_MATTER,
            16,
            180,
            "Gray Matter Recovery (6-month Commitment)",
        ),
        _rule(
            "gray-matter-recovery-12mo",
            CreditType.GRAY_MATTER,
            48,
            365,
            "Gray Matter Recovery (12-month Commitment)",
        ),
        _rule(
            "optimal-wellness-3mo",
            CreditType.OPTIMAL_WELLNESS,
            12,
            90,
            "Optimal Wellness (3-month Commitment)",
        ),
        _rule(
            "optimal-wellness-6mo",
            CreditType.OPTIMAL_WELLNESS,
            24,
            180,
            "Optimal Wellness (6-month Commitment)",
        ),
        _rule(
            "optimal-wellness-12mo",
            CreditType.OPTIMAL_WELLNESS,
            48,
            365,
            "Optimal Wellness (12-month Commitment)",
        ),
        _rule(
            "revitalize-wellness-3mo",
            CreditType.OPTIMAL_WELLNESS,
            12,
            90,
            "Revitalize Wellness (3-month Commitment)",
        ),
        _rule(
            "revitalize-wellness-6mo",
            CreditType.OPTIMAL_WELLNESS,
            24,
            180,
            "Revitalize Wellness (6-month Commitment)",
        ),
        _rule(
            "revitalize-wellness-12mo",
            CreditType.OPTIMAL_WELLNESS,
            48,
            365,
            "Revitalize Wellness (12-month Commitment)",
        ),
        _rule(
            "morris-12-week",
            CreditType.CHALLENGE,
            12,
            84,  # 12 weeks
            "12 Week Morris Method Challenge",
        ),
    ]
)


def get_credit_allocation_rule(service_id: Optional[str]) -> Optional[CreditAllocationRule]:
    if not service_id:
        return None
    return CREDIT_ALLOCATION_RULES.get(service_id)


def credit_granting_service_ids() -> list[str]:
    return list(CREDIT_ALLOCATION_RULES.keys())
