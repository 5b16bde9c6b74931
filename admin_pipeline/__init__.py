"""Admin pipeline: moderation/stats store and slash-command routing."""
from .moderation_store import ModerationStore, AggregateStats, UserStatsEntry
from .handler import CommandRouterHandler

__all__ = ['ModerationStore', 'AggregateStats', 'UserStatsEntry', 'CommandRouterHandler']
