"""
Keyword ranking aggregation
"""
from typing import Dict, List

from models import KeywordRanking


def top_keywords(rankings: List[KeywordRanking], limit: int = 10) -> List[dict]:
    """Collapse rows by keyword (best position, highest volume) and sort by position"""
    collapsed: Dict[str, dict] = {}
    for row in rankings:
        existing = collapsed.get(row.keyword)
        if existing is None:
            collapsed[row.keyword] = {
                "keyword": row.keyword,
                "position": row.position,
                "searchVolume": row.search_volume,
                "url": row.url,
            }
        else:
            existing["position"] = min(existing["position"], row.position)
            existing["searchVolume"] = max(existing["searchVolume"], row.search_volume)

    return sorted(collapsed.values(), key=lambda k: k["position"])[:limit]


def group_by_keyword(rankings: List[KeywordRanking]) -> Dict[str, List[KeywordRanking]]:
    groups: Dict[str, List[KeywordRanking]] = {}
    for row in rankings:
        groups.setdefault(row.keyword, []).append(row)
    return groups


def ranking_changes(rankings: List[KeywordRanking]) -> Dict[str, int]:
    """Compare each keyword's latest observation with the previous one"""
    improved = declined = stable = 0

    for rows in group_by_keyword(rankings).values():
        if len(rows) < 2:
            continue
        # stable sort keeps input order for rows sharing a date
        latest, previous = sorted(rows, key=lambda r: r.date, reverse=True)[:2]

        if latest.position < previous.position:
            improved += 1
        elif latest.position > previous.position:
            declined += 1
        else:
            stable += 1

    return {"improved": improved, "declined": declined, "stable": stable}


def average_position(rankings: List[KeywordRanking]) -> float:
    """Mean position over ranked rows only"""
    ranked = [row.position for row in rankings if row.position > 0]
    return sum(ranked) / len(ranked) if ranked else 0


def keyword_trend(rankings: List[KeywordRanking], keywords: int = 5, points: int = 7) -> List[dict]:
    """Position history for the first few keywords, in input order"""
    groups = list(group_by_keyword(rankings).items())[:keywords]
    return [
        {
            "keyword": keyword,
            "positions": [
                {"date": row.date.isoformat(), "position": row.position}
                for row in rows[:points]
            ],
        }
        for keyword, rows in groups
    ]
