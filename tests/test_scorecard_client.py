from unittest.mock import MagicMock, patch

import requests

from scorecard_client import find_best_match, get_institution_stats

_RESULT = {
    "school.name": "Example State University",
    "school.city": "Springfield",
    "school.state": "IL",
    "school.ownership": 1,
    "latest.student.size": 18250,
    "latest.student.enrollment.grad_12_month": 4100,
    "latest.admissions.admission_rate.overall": 0.81,
    "latest.cost.tuition.in_state": 9800,
    "latest.cost.tuition.out_of_state": 22400,
}


def test_find_best_match_prefers_exact_name() -> None:
    results = [
        {"school.name": "Example State University Online"},
        {"school.name": "Example State University"},
    ]
    assert find_best_match(results, "example state university") is results[1]


def test_find_best_match_uses_word_overlap() -> None:
    results = [
        {"school.name": "Example Community College"},
        {"school.name": "Example State University Main Campus"},
    ]
    assert find_best_match(results, "Example State University") is results[1]


def test_find_best_match_needs_two_shared_words() -> None:
    assert find_best_match([{"school.name": "Example Institute"}], "Example University") is None


def test_get_institution_stats_maps_fields() -> None:
    response = MagicMock()
    response.json.return_value = {"results": [_RESULT]}

    with patch.dict("os.environ", {}, clear=True), \
         patch("scorecard_client.requests.get", return_value=response) as mock_get:
        stats = get_institution_stats("Example State University")

    assert stats.name == "Example State University"
    assert stats.ownership == "Public"
    assert stats.total_enrollment == 18250
    assert stats.graduate_enrollment == 4100
    assert stats.acceptance_rate == 0.81
    assert stats.tuition_out_of_state == 22400

    kwargs = mock_get.call_args.kwargs
    assert kwargs["params"]["api_key"] == "DEMO_KEY"
    assert kwargs["params"]["per_page"] == 5
    assert kwargs["timeout"] == 8


def test_get_institution_stats_unknown_ownership_and_missing_values() -> None:
    response = MagicMock()
    response.json.return_value = {"results": [{"school.name": "Example College", "school.ownership": 9}]}

    with patch("scorecard_client.requests.get", return_value=response):
        stats = get_institution_stats("Example College")

    assert stats.ownership == "Unknown"
    assert stats.total_enrollment is None
    assert stats.acceptance_rate is None


def test_get_institution_stats_returns_none_on_failure() -> None:
    with patch("scorecard_client.requests.get", side_effect=requests.ConnectionError("down")):
        assert get_institution_stats("Example State University") is None


def test_get_institution_stats_no_results() -> None:
    response = MagicMock()
    response.json.return_value = {"results": []}
    with patch("scorecard_client.requests.get", return_value=response):
        assert get_institution_stats("Nowhere College") is None
