import pytest

from app.agents.answer_evaluator import AnswerEvaluatorAgent
from app.agents.question_generator import QuestionGeneratorAgent
from app.core.app_metrics import get_quiz_metrics
from app.memory.mastery_store import InMemoryMasteryStore
from app.services.leaderboard import build_leaderboard
from app.services.progress import LearnerProgress, next_topic_for, recommend_next, recommendation_message
from app.services.quiz import QuizService


def _service_with(store, override_quiz_service, scripted_provider):
    return override_quiz_service(
        QuizService(
            store,
            question_agent=QuestionGeneratorAgent(scripted_provider(None)),
            evaluator=AnswerEvaluatorAgent(scripted_provider(None)),
        )
    )


def _seeded_store():
    store = InMemoryMasteryStore()
    store.profiles = {"u1": "ada", "u2": "grace", "u3": "alan", "u4": None}
    store.mastery = {
        ("u1", "t1"): {"mastery_level": 0.9, "questions_attempted": 9, "questions_correct": 8},
        ("u1", "t2"): {"mastery_level": 0.5, "questions_attempted": 4, "questions_correct": 2},
        ("u2", "t1"): {"mastery_level": 0.8, "questions_attempted": 5, "questions_correct": 4},
        ("u3", "t1"): {"mastery_level": 0.2, "questions_attempted": 3, "questions_correct": 1},
    }
    return store


@pytest.mark.asyncio
async def test_leaderboard_ranks_by_average_mastery():
    leaders = await build_leaderboard(_seeded_store(), limit=5)
    assert [(l.user_id, l.avg_mastery, l.topics_count) for l in leaders] == [
        ("u2", 0.8, 1),
        ("u1", 0.7, 2),
        ("u3", 0.2, 1),
        ("u4", 0.0, 0),
    ]
    assert leaders[0].username == "grace"


@pytest.mark.asyncio
async def test_leaderboard_respects_limit():
    leaders = await build_leaderboard(_seeded_store(), limit=2)
    assert [l.user_id for l in leaders] == ["u2", "u1"]


def test_mastery_endpoint_reads_store(client, override_quiz_service, scripted_provider):
    _service_with(_seeded_store(), override_quiz_service, scripted_provider)
    body = client.get("/mastery/u1/t1").json()
    assert body == {"user_id": "u1", "topic_id": "t1", "mastery_level": 0.9, "label": "Advanced"}


def test_mastery_endpoint_defaults_to_zero(client, override_quiz_service, scripted_provider):
    _service_with(InMemoryMasteryStore(), override_quiz_service, scripted_provider)
    body = client.get("/mastery/new-learner/t9").json()
    assert body["mastery_level"] == 0.0
    assert body["label"] == "Beginner"


def test_leaderboard_endpoint(client, override_quiz_service, scripted_provider):
    _service_with(_seeded_store(), override_quiz_service, scripted_provider)
    response = client.get("/leaderboard", params={"limit": 3})
    assert response.status_code == 200
    assert [item["username"] for item in response.json()["leaders"]] == ["grace", "ada", "alan"]


def test_leaderboard_endpoint_rejects_bad_limit(client):
    assert client.get("/leaderboard", params={"limit": 0}).status_code == 422


def test_next_topic_follows_progression():
    assert next_topic_for("algebra-basics") == "linear-equations"
    assert next_topic_for("graphing") == "systems"
    assert next_topic_for("unknown-topic") == "functions"


def test_badge_every_third_completed_topic():
    progress = LearnerProgress(completed_topics=["algebra-basics", "linear-equations"])
    assert progress.complete("quadratics") == ["Level 1 Master"]
    # Completing the same topic again does not count twice.
    assert progress.complete("quadratics") == []
    assert progress.completed_topics.count("quadratics") == 1


def test_recommendation_message_grows_with_progress():
    assert recommendation_message("functions", 1).startswith("Great start!")
    assert recommendation_message("functions", 3).startswith("You're making excellent progress!")
    assert recommendation_message("functions", 4).startswith("You're becoming a math expert!")
    assert "Introduction to Functions" in recommendation_message("functions", 1)


def test_recommend_next_combines_topic_message_and_badges():
    recommendation = recommend_next(LearnerProgress(), "algebra-basics")
    assert recommendation.next_topic == "linear-equations"
    assert recommendation.next_topic_title == "Linear Equations"
    assert recommendation.new_badges == []


def test_next_topic_endpoint(client):
    response = client.post(
        "/recommendations/next-topic",
        json={"completedTopicId": "quadratics", "completedTopics": ["algebra-basics", "linear-equations"]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["nextTopic"] == "functions"
    assert body["nextTopicTitle"] == "Introduction to Functions"
    assert body["newBadges"] == ["Level 1 Master"]
    assert body["message"].startswith("You're making excellent progress!")


@pytest.mark.asyncio
async def test_leaderboard_survives_failed_mastery_read():
    store = _seeded_store()

    async def broken():
        raise RuntimeError("user_mastery unavailable")

    store.list_mastery_levels = broken
    leaders = await build_leaderboard(store, limit=5)

    assert [l.user_id for l in leaders] == ["u1", "u2", "u3", "u4"]
    assert all(l.avg_mastery == 0.0 for l in leaders)
    assert get_quiz_metrics()["persistence_warnings"] == 1


def test_leaderboard_endpoint_survives_failed_profiles_read(client, override_quiz_service, scripted_provider):
    store = _seeded_store()

    async def broken():
        raise RuntimeError("profiles unavailable")

    store.list_profiles = broken
    _service_with(store, override_quiz_service, scripted_provider)
    response = client.get("/leaderboard")

    assert response.status_code == 200
    leaders = response.json()["leaders"]
    assert [item["user_id"] for item in leaders] == ["u2", "u1", "u3"]
    assert all(item["username"] is None for item in leaders)
