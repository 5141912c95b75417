"""
Test: hybrid orchestration of ML, teacher-feedback and structural segmentation.
"""
import asyncio
import json

import pytest

from hybrid import hybrid_segmentation
from segmentation import enhanced_segmentation


def _ml_reply(*segments):
    return "```json\n" + json.dumps({"segments": list(segments)}) + "\n```"


class TestHybridSegmentation:
    def test_ml_short_circuits(self, make_questions, llm_client, correction_store,
                               make_corrections, marker_script):
        store = correction_store(make_corrections("markers"))
        client = llm_client(reply=_ml_reply("Paris", "Berlin"))

        result = asyncio.run(hybrid_segmentation(
            marker_script, make_questions(2), client=client, teacher_id="t1", store=store,
        ))

        assert result.method == "ml"
        assert result.confidence == pytest.approx(0.95)
        assert store.calls == []

    def test_ml_failure_matches_structural(self, make_questions, llm_client, paragraph_script):
        client = llm_client(error=RuntimeError("quota exceeded"))
        result = asyncio.run(hybrid_segmentation(paragraph_script, make_questions(2), client=client))

        expected = enhanced_segmentation(paragraph_script, 2)
        assert result.method == expected.method
        assert result.confidence == expected.confidence
        assert result.segments == expected.segments

    def test_no_client_uses_structural(self, make_questions, marker_script):
        result = asyncio.run(hybrid_segmentation(marker_script, make_questions(2)))
        assert result.method == "markers"

    def test_teacher_preference_beats_structural(self, make_questions, llm_client,
                                                 correction_store, make_corrections,
                                                 paragraph_script):
        store = correction_store(make_corrections("paragraphs", "paragraphs"))
        client = llm_client(error=TimeoutError())

        result = asyncio.run(hybrid_segmentation(
            paragraph_script, make_questions(2), client=client, teacher_id="t1", store=store,
        ))

        assert result.method == "teacher_paragraphs"
        assert result.confidence == pytest.approx(0.8)

    def test_teacher_wins_confidence_tie(self, make_questions, correction_store,
                                         make_corrections, marker_script):
        store = correction_store(make_corrections("markers"))
        result = asyncio.run(hybrid_segmentation(
            marker_script, make_questions(2), teacher_id="t1", store=store,
        ))
        assert result.method == "teacher_markers"
        assert result.segments == ["Paris", "Berlin"]

    def test_teacher_skipped_without_store(self, make_questions, paragraph_script):
        result = asyncio.run(hybrid_segmentation(paragraph_script, make_questions(2), teacher_id="t1"))
        assert result.method == "paragraphs"

    def test_store_failure_not_fatal(self, make_questions, correction_store, marker_script):
        store = correction_store(error=ConnectionError("down"))
        result = asyncio.run(hybrid_segmentation(
            marker_script, make_questions(2), teacher_id="t1", store=store,
        ))
        assert result.method == "markers"

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_segment_count_invariant(self, make_questions, llm_client, correction_store,
                                     make_corrections, n):
        text = "Question 1\nParis\n\nQuestion 2\nBerlin"
        for client in (None, llm_client(reply=_ml_reply("Paris")), llm_client(reply="not json")):
            result = asyncio.run(hybrid_segmentation(
                text, make_questions(n), client=client,
                teacher_id="t1", store=correction_store(make_corrections("paragraphs")),
            ))
            assert len(result.segments) == n

    def test_paged_script_teacher_candidate_has_clean_answers(self, make_questions,
                                                              correction_store, make_corrections):
        text = "--- PAGE 1 ---\nQ1 Paris\n--- PAGE 2 ---\nQ2 Berlin"
        store = correction_store(make_corrections("markers"))
        result = asyncio.run(hybrid_segmentation(
            text, make_questions(2), teacher_id="t1", store=store,
        ))
        assert result.method == "teacher_markers"
        assert all("PAGE" not in seg for seg in result.segments)
