"""Tests for the redundancy detector."""

import pytest

from survey_scoring.core.config import RedundancyConfig
from survey_scoring.domain.models.questions import AskedQuestion
from survey_scoring.services.scoring.redundancy import RedundancyDetector

CANDIDATE = "What does your current process look like?"


def asked(*embeddings):
    return [
        AskedQuestion(text=f"question {i}", embedding=embedding)
        for i, embedding in enumerate(embeddings)
    ]


@pytest.fixture
def detector(make_embedding_service):
    service = make_embedding_service({CANDIDATE: [1.0, 0.0]})
    return RedundancyDetector(service)


class TestThresholds:
    """Reject at the threshold, linear penalty between 0.6 and 0.85."""

    async def test_identical_question_rejected(self, detector):
        result = await detector.penalty(CANDIDATE, asked([1.0, 0.0]))
        assert result.reject is True
        assert result.penalty == 1.0

    async def test_below_soft_floor_no_penalty(self, detector, vector_at):
        result = await detector.penalty(CANDIDATE, asked(vector_at(0.5)))
        assert result.reject is False
        assert result.penalty == 0.0

    async def test_midpoint_half_penalty(self, detector, vector_at):
        result = await detector.penalty(CANDIDATE, asked(vector_at(0.725)))
        assert result.reject is False
        assert result.penalty == pytest.approx(0.5, abs=1e-6)
        assert result.max_similarity == pytest.approx(0.725, abs=1e-6)

    async def test_uses_maximum_similarity(self, detector, vector_at):
        result = await detector.penalty(
            CANDIDATE, asked(vector_at(0.1), vector_at(0.7), vector_at(0.65))
        )
        assert result.penalty == pytest.approx(0.4, abs=1e-6)

    async def test_custom_threshold(self, detector, vector_at):
        result = await detector.penalty(CANDIDATE, asked(vector_at(0.725)), threshold=0.7)
        assert result.reject is True
        assert result.penalty == 1.0

    async def test_configured_threshold(self, make_embedding_service, vector_at):
        service = make_embedding_service({CANDIDATE: [1.0, 0.0]})
        detector = RedundancyDetector(service, RedundancyConfig(reject_threshold=0.7))
        result = await detector.penalty(CANDIDATE, asked(vector_at(0.725)))
        assert result.reject is True


class TestDegenerateCases:
    """Nothing to compare, or no vector: let the question through."""

    async def test_no_asked_questions_skips_embedding(self, detector):
        result = await detector.penalty(CANDIDATE, [])
        assert (result.reject, result.penalty) == (False, 0.0)
        assert detector.embedding_service.provider.calls == []

    async def test_none_asked_questions(self, detector):
        result = await detector.penalty(CANDIDATE, None)
        assert (result.reject, result.penalty) == (False, 0.0)

    async def test_candidate_embedding_fails(self, detector):
        result = await detector.penalty("unknown prompt", asked([1.0, 0.0]))
        assert (result.reject, result.penalty) == (False, 0.0)

    async def test_asked_questions_without_embeddings_skipped(self, detector):
        questions = [
            AskedQuestion(text="never embedded"),
            AskedQuestion(text="failed embedding", embedding=[]),
        ]
        result = await detector.penalty(CANDIDATE, questions)
        assert (result.reject, result.penalty) == (False, 0.0)
        assert result.max_similarity == 0.0

    async def test_mismatched_dimensions_count_as_dissimilar(self, detector):
        result = await detector.penalty(CANDIDATE, asked([1.0, 0.0, 0.0]))
        assert (result.reject, result.penalty) == (False, 0.0)
