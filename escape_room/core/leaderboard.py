"""
Leaderboard ranking over persisted attempts

Only teams with a correct final word are ranked. Total score is the raw sum
of every recorded level score (cleared or failed). Sorted by total score
(desc), then by correct final-word submission time (asc).
"""
from typing import Dict, List, Optional

from escape_room.models import FinalWordRecord, LeaderboardEntry, LevelAttemptRecord


DEFAULT_LIMIT = 7


def rank_teams(
    level_records: List[LevelAttemptRecord],
    final_word_records: List[FinalWordRecord],
    limit: int = DEFAULT_LIMIT,
    team_names: Optional[Dict[str, str]] = None,
) -> List[LeaderboardEntry]:
    """
    Compute the leaderboard (pure)

    Args:
        level_records: All persisted level attempt rows
        final_word_records: All persisted final word rows
        limit: Number of entries to return
        team_names: Optional team_id -> display name

    Returns:
        Ranked entries (1-based rank)
    """
    # Earliest correct submission per team
    solved_at: Dict[str, float] = {}
    for record in final_word_records:
        if not record.is_correct:
            continue
        current = solved_at.get(record.team_id)
        if current is None or record.submitted_at < current:
            solved_at[record.team_id] = record.submitted_at

    totals: Dict[str, int] = {team_id: 0 for team_id in solved_at}
    for record in level_records:
        if record.team_id in totals:
            totals[record.team_id] += record.score

    ordered = sorted(totals, key=lambda team_id: (-totals[team_id], solved_at[team_id]))

    names = team_names or {}
    return [
        LeaderboardEntry(
            rank=idx + 1,
            team_id=team_id,
            team_name=names.get(team_id),
            total_score=totals[team_id],
            submitted_at=solved_at[team_id],
        )
        for idx, team_id in enumerate(ordered[:limit])
    ]
