"""
Submission analytics for the form owner's dashboard.

All timestamps are bucketed in UTC. Day-of-week keys follow the 0 = Sunday convention used by the
dashboard charts.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from form_builder_service.logic.values import as_number
from form_builder_service.timeutil import parse_ts, utcnow

TEXT_TYPES = {"text", "textarea", "email", "short-answer", "long-answer"}
NUMBER_TYPES = {"number", "currency", "slider", "star-rating"}
CHOICE_TYPES = {"select", "radio", "checkbox", "checkboxes", "multiple-choice", "choices", "dropdown", "multiselect"}
DATE_TYPES = {"date", "date-picker"}
FILE_TYPES = {"file", "file-uploader"}


def _round(x: float, places: int = 0) -> float:
    # half-up, matching the dashboard's rounding
    m = 10 ** places
    return math.floor(x * m + 0.5) / m


def _answered(v: Any) -> bool:
    return v is not None and v != ""


def _median(sorted_vals: List[float]) -> float:
    n = len(sorted_vals)
    if n % 2 == 0:
        return (sorted_vals[n // 2 - 1] + sorted_vals[n // 2]) / 2
    return sorted_vals[n // 2]


def _peak(counts: Mapping[int, int]) -> Optional[int]:
    if not counts:
        return None
    top = max(counts.values())
    return min(k for k, v in counts.items() if v == top)


def _field_stat(field: Mapping[str, Any], submissions: List[Dict[str, Any]]) -> Dict[str, Any]:
    fid = str(field.get("id"))
    ftype = str(field.get("type") or "")
    total = len(submissions)
    responses = [(s.get("answers") or {}).get(fid) for s in submissions]
    responses = [r for r in responses if _answered(r)]

    stat: Dict[str, Any] = {
        "label": field.get("label"),
        "type": ftype,
        "totalResponses": len(responses),
        "completionRate": (len(responses) / total) * 100 if total else 0,
        "emptyResponses": total - len(responses),
    }

    if ftype in TEXT_TYPES:
        texts = [r for r in responses if isinstance(r, str)]
        lengths = [len(t) for t in texts]
        words = [len(t.split()) for t in texts]
        stat["avgLength"] = sum(lengths) / len(lengths) if lengths else 0
        stat["avgWordCount"] = sum(words) / len(words) if words else 0
        stat["minLength"] = min(lengths) if lengths else 0
        stat["maxLength"] = max(lengths) if lengths else 0
    elif ftype in NUMBER_TYPES:
        nums = sorted(n for n in (as_number(r) for r in responses) if n is not None)
        if nums:
            stat["min"] = nums[0]
            stat["max"] = nums[-1]
            stat["avg"] = sum(nums) / len(nums)
            stat["median"] = _median(nums)
    elif ftype in CHOICE_TYPES:
        dist: Dict[str, int] = {}
        for r in responses:
            key = ", ".join(str(x) for x in r) if isinstance(r, list) else str(r)
            dist[key] = dist.get(key, 0) + 1
        stat["distribution"] = dist
        stat["mostPopular"] = max(dist, key=lambda k: dist[k]) if dist else None
        stat["leastPopular"] = min(dist, key=lambda k: dist[k]) if dist else None
    elif ftype in DATE_TYPES:
        dates = sorted(d for d in (parse_ts(r) for r in responses) if d is not None)
        if dates:
            stat["earliestDate"] = dates[0].isoformat()
            stat["latestDate"] = dates[-1].isoformat()
            months: Dict[str, int] = {}
            for d in dates:
                key = f"{d.year}-{d.month:02d}"
                months[key] = months.get(key, 0) + 1
            stat["monthDistribution"] = months
    elif ftype in FILE_TYPES:
        uploads = [f for s in submissions for f in (s.get("files") or []) if f.get("fieldId") == fid]
        kinds: Dict[str, int] = {}
        total_size = 0
        for f in uploads:
            kind = str(f.get("mimeType") or "").split("/")[0] or "other"
            kinds[kind] = kinds.get(kind, 0) + 1
            total_size += int(f.get("size") or 0)
        stat["totalFiles"] = len(uploads)
        stat["fileTypes"] = kinds
        stat["totalSize"] = total_size
        stat["avgFileSize"] = total_size / len(uploads) if uploads else 0

    return stat


def _quiz_analytics(submissions: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    scored = [s for s in submissions if isinstance(s.get("score"), dict)]
    if not scored:
        return None
    scores = [float(s["score"].get("percentage") or 0) for s in scored]
    passed = sum(1 for s in scored if s["score"].get("passed"))

    buckets = {f"{i}-{i + 10}%": 0 for i in range(0, 100, 10)}
    for sc in scores:
        start = min(int(sc // 10) * 10, 90)
        buckets[f"{start}-{start + 10}%"] += 1

    ordered = sorted(scores)
    return {
        "averageScore": _round(sum(scores) / len(scores)),
        "medianScore": _median(ordered),
        "passRate": _round(passed / len(scored) * 100),
        "topScore": ordered[-1],
        "lowScore": ordered[0],
        "scoreDistribution": buckets,
    }


def compute_analytics(
    fields: List[Dict[str, Any]],
    submissions: List[Dict[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """`submissions` must be ordered oldest first."""
    now = now or utcnow()
    total = len(submissions)
    stamps: List[datetime] = [parse_ts(s.get("createdAt")) or now for s in submissions]

    by_date: Dict[str, int] = {}
    by_hour: Dict[int, int] = {}
    by_weekday: Dict[int, int] = {}
    for ts in stamps:
        day = ts.date().isoformat()
        by_date[day] = by_date.get(day, 0) + 1
        by_hour[ts.hour] = by_hour.get(ts.hour, 0) + 1
        weekday = (ts.weekday() + 1) % 7
        by_weekday[weekday] = by_weekday.get(weekday, 0) + 1

    dates = sorted(by_date)
    avg_per_day = total / len(dates) if dates else 0

    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    month_ago = now - timedelta(days=30)
    recent = sum(1 for ts in stamps if ts >= week_ago)
    previous = sum(1 for ts in stamps if two_weeks_ago <= ts < week_ago)
    last30 = sum(1 for ts in stamps if ts >= month_ago)
    if previous > 0:
        weekly_growth = (recent - previous) / previous * 100
    else:
        weekly_growth = 100.0 if recent > 0 else 0.0

    gaps = [(stamps[i] - stamps[i - 1]).total_seconds() for i in range(1, len(stamps))]
    avg_gap = sum(gaps) / len(gaps) if gaps else 0

    trend = "stable"
    if len(dates) >= 10:
        recent_avg = sum(by_date[d] for d in dates[-5:]) / 5
        previous_avg = sum(by_date[d] for d in dates[-10:-5]) / 5
        if recent_avg > previous_avg * 1.2:
            trend = "growing"
        elif recent_avg < previous_avg * 0.8:
            trend = "declining"

    required = [f for f in fields if f.get("required")]
    expected = len(required) * total
    filled = sum(
        1
        for s in submissions
        for f in required
        if _answered((s.get("answers") or {}).get(str(f.get("id"))))
    )
    completion = (filled / expected) * 100 if expected else 100

    active_hours = (stamps[-1] - stamps[0]).total_seconds() / 3600 if stamps else 0
    velocity = total / active_hours if active_hours > 0 else 0

    return {
        "totalSubmissions": total,
        "submissionsByDate": by_date,
        "avgPerDay": _round(avg_per_day, 1),
        "firstSubmission": submissions[0].get("createdAt") if submissions else None,
        "lastSubmission": submissions[-1].get("createdAt") if submissions else None,
        "timeAnalytics": {
            "submissionsByHour": by_hour,
            "submissionsByDayOfWeek": by_weekday,
            "peakHour": _peak(by_hour),
            "peakDayOfWeek": _peak(by_weekday),
            "avgTimeBetweenSubmissions": _round(avg_gap),
            "last7DaysCount": recent,
            "last30DaysCount": last30,
            "weeklyGrowth": _round(weekly_growth, 1),
            "trendDirection": trend,
        },
        "fieldStats": {str(f.get("id")): _field_stat(f, submissions) for f in fields},
        "engagementMetrics": {
            "overallCompletionRate": _round(completion, 1),
            "responseVelocity": _round(velocity, 2),
            "totalFields": len(fields),
            "requiredFields": len(required),
        },
        "quizAnalytics": _quiz_analytics(submissions),
    }
