"""Tier ceilings and remaining-allowance evaluation."""

from dataclasses import dataclass

from coach_shared.config import QuotaSettings
from coach_shared.db.models import UsageLimit

from .entitlement import Tier
from .usage_ledger import ActionType


@dataclass(frozen=True)
class ActionQuota:
    """Usage of one action against its ceiling. ``limit=None`` is unlimited."""

    action: ActionType
    used: int
    limit: int | None

    @property
    def remaining(self) -> int | None:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)

    @property
    def allowed(self) -> bool:
        return self.limit is None or self.used < self.limit


@dataclass(frozen=True)
class QuotaLimits:
    """Daily ceilings keyed by tier, then action."""

    ceilings: dict[Tier, dict[ActionType, int | None]]

    @classmethod
    def from_settings(cls, settings: QuotaSettings) -> "QuotaLimits":
        return cls(
            ceilings={
                Tier.FREE: {
                    ActionType.EMAIL: settings.free_email_generations,
                    ActionType.COACHING: settings.free_coaching_sessions,
                    ActionType.DIFFICULT_CONVERSATION: settings.free_difficult_conversations,
                },
                Tier.PRO: {
                    ActionType.EMAIL: settings.pro_email_generations,
                    ActionType.COACHING: settings.pro_coaching_sessions,
                    ActionType.DIFFICULT_CONVERSATION: settings.pro_difficult_conversations,
                },
            }
        )

    def limit_for(self, tier: Tier, action: ActionType) -> int | None:
        return self.ceilings.get(tier, {}).get(action)


def evaluate_quota(
    record: UsageLimit,
    tier: Tier,
    limits: QuotaLimits,
) -> dict[ActionType, ActionQuota]:
    """Compare today's counters against the tier's ceilings."""
    return {
        action: ActionQuota(
            action=action,
            used=getattr(record, action.counter.key) or 0,
            limit=limits.limit_for(tier, action),
        )
        for action in ActionType
    }
