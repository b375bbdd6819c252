from datetime import datetime, timezone

from form_builder_service.logic.analytics import compute_analytics

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)

FIELDS = [
    {"id": "name", "label": "Name", "type": "short-answer", "required": True},
    {"id": "age", "label": "Age", "type": "number"},
    {"id": "color", "label": "Colour", "type": "multiple-choice"},
    {"id": "cv", "label": "CV", "type": "file-uploader"},
]


def _sub(sid, created, answers, files=None, score=None):
    return {"id": sid, "createdAt": created, "answers": answers, "files": files or [], "score": score}


SUBMISSIONS = [
    _sub("s1", "2024-03-17T09:00:00Z", {"name": "Ada Lovelace", "age": 36, "color": "Red"}),
    _sub(
        "s2",
        "2024-03-18T10:00:00Z",
        {"name": "Bob", "age": "20", "color": "Blue"},
        files=[{"fieldId": "cv", "mimeType": "application/pdf", "size": 300}],
    ),
    _sub("s3", "2024-03-18T10:30:00Z", {"name": "", "color": "Red"}),
]


def test_totals_and_time_buckets():
    out = compute_analytics(FIELDS, SUBMISSIONS, now=NOW)
    assert out["totalSubmissions"] == 3
    assert out["submissionsByDate"] == {"2024-03-17": 1, "2024-03-18": 2}
    assert out["avgPerDay"] == 1.5
    assert out["firstSubmission"] == "2024-03-17T09:00:00Z"
    assert out["lastSubmission"] == "2024-03-18T10:30:00Z"

    t = out["timeAnalytics"]
    assert t["peakHour"] == 10
    # 2024-03-17 is a Sunday
    assert t["submissionsByDayOfWeek"] == {0: 1, 1: 2}
    assert t["last7DaysCount"] == 3
    assert t["weeklyGrowth"] == 100.0
    assert t["trendDirection"] == "stable"


def test_field_stats():
    stats = compute_analytics(FIELDS, SUBMISSIONS, now=NOW)["fieldStats"]
    assert stats["name"]["totalResponses"] == 2
    assert stats["name"]["emptyResponses"] == 1
    assert stats["name"]["maxLength"] == len("Ada Lovelace")
    assert stats["age"]["min"] == 20
    assert stats["age"]["median"] == 28
    assert stats["color"]["distribution"] == {"Red": 2, "Blue": 1}
    assert stats["color"]["mostPopular"] == "Red"
    assert stats["cv"]["totalFiles"] == 1
    assert stats["cv"]["fileTypes"] == {"application": 1}


def test_engagement_metrics():
    metrics = compute_analytics(FIELDS, SUBMISSIONS, now=NOW)["engagementMetrics"]
    assert metrics["overallCompletionRate"] == 66.7
    assert metrics["requiredFields"] == 1
    assert metrics["totalFields"] == 4


def test_quiz_analytics_only_when_scored():
    assert compute_analytics(FIELDS, SUBMISSIONS, now=NOW)["quizAnalytics"] is None
    scored = [
        _sub("q1", "2024-03-18T10:00:00Z", {}, score={"percentage": 100, "passed": True}),
        _sub("q2", "2024-03-18T11:00:00Z", {}, score={"percentage": 45, "passed": False}),
    ]
    quiz = compute_analytics(FIELDS, scored, now=NOW)["quizAnalytics"]
    assert quiz["passRate"] == 50
    assert quiz["topScore"] == 100
    assert quiz["scoreDistribution"]["90-100%"] == 1
    assert quiz["scoreDistribution"]["40-50%"] == 1


def test_empty_form():
    out = compute_analytics([], [], now=NOW)
    assert out["totalSubmissions"] == 0
    assert out["avgPerDay"] == 0
    assert out["timeAnalytics"]["peakHour"] is None
    assert out["engagementMetrics"]["overallCompletionRate"] == 100
