"""
tests/test_memory_resonance.py — emotion-tagged memories that resurface.

Run: pytest tests/test_memory_resonance.py -v
"""

import pytest

from moodcity.emotions.memory_resonance import (
    RECENCY_WINDOW, MemoryResonanceIndex, calculate_emotional_similarity,
)
from moodcity.emotions.types import EMOTIONS, Emotion


def emotions(**values) -> dict:
    return {e: float(values.get(e.value, 0.0)) for e in EMOTIONS}


@pytest.fixture
def index(store):
    return MemoryResonanceIndex(store)


# ─── Similarity ──────────────────────────────────────────────────────────────

class TestSimilarity:

    def test_identical_states(self):
        state = emotions(joy=40, fear=10, anticipation=75)
        assert calculate_emotional_similarity(state, state) == pytest.approx(1.0)

    def test_two_empty_states_are_identical(self):
        assert calculate_emotional_similarity(emotions(), emotions()) == 1.0

    def test_disjoint_states(self):
        assert calculate_emotional_similarity(emotions(joy=100), emotions(sadness=100)) == pytest.approx(0.0)

    def test_symmetric_and_bounded(self):
        a, b = emotions(joy=70, trust=20), emotions(joy=10, anger=90)
        ab = calculate_emotional_similarity(a, b)
        assert ab == pytest.approx(calculate_emotional_similarity(b, a))
        assert 0 <= ab <= 1


# ─── Tagging & retrieval ─────────────────────────────────────────────────────

class TestResonance:

    def test_tag_memory(self, index, make_profile):
        make_profile("alice")
        memory = index.tag_memory("alice", "Lost the race to Bob", Emotion.SADNESS, 70, -60)
        assert memory.resonance_threshold == 30
        assert memory.times_triggered == 0
        assert memory.world_id == "test-world"
        assert index.get_memory("alice", memory.memory_id) is memory

    def test_tag_memory_clamps(self, index, make_profile):
        make_profile("alice")
        memory = index.tag_memory("alice", "?", "fear", 150, -300)
        assert memory.intensity == 100
        assert memory.valence == -100
        assert memory.resonance_threshold == 0

    def test_matching_feeling_resurfaces(self, index, make_profile):
        make_profile("alice", baseline={}, sadness=70)
        strong = index.tag_memory("alice", "Lost the race", Emotion.SADNESS, 70, -60)
        index.tag_memory("alice", "Saw a nice bird", Emotion.JOY, 10, 20)

        hits = index.find_resonant_memories("alice")
        assert [h.memory.memory_id for h in hits] == [strong.memory_id]
        assert hits[0].similarity == pytest.approx(1.0)
        # similarity * intensity * recency bonus
        assert hits[0].resonance_score == pytest.approx(70 * 1.3)

    def test_old_memories_lose_recency_bonus(self, index, make_profile, clock):
        make_profile("alice", baseline={}, sadness=70, regulation=0)
        index.tag_memory("alice", "Lost the race", Emotion.SADNESS, 70, -60)
        clock.advance(RECENCY_WINDOW * 2)
        current = emotions(sadness=70)
        hits = index.find_resonant_memories("alice", current_state=current)
        assert hits[0].resonance_score == pytest.approx(70)

    def test_results_sorted_and_limited(self, index, make_profile):
        make_profile("alice", baseline={}, fear=90)
        for intensity in (60, 90, 75, 80, 85, 70):
            index.tag_memory("alice", "storm", Emotion.FEAR, intensity, -70)
        hits = index.find_resonant_memories("alice", limit=3)
        scores = [h.resonance_score for h in hits]
        assert len(hits) == 3
        assert scores == sorted(scores, reverse=True)

    def test_no_memories(self, index, make_profile):
        make_profile("alice")
        assert index.find_resonant_memories("alice") == []
        assert index.find_resonant_memories("ghost") == []

    def test_trigger_memory(self, index, make_profile, bus, clock):
        make_profile("alice")
        memory = index.tag_memory("alice", "Won the croquet game", Emotion.JOY, 80, 70)
        clock.advance(10)
        index.trigger_memory_resonance("alice", memory.memory_id)
        index.trigger_memory_resonance("alice", memory.memory_id)
        assert memory.times_triggered == 2
        assert memory.last_triggered == clock()
        events = bus.events_of("memory_resonance")
        assert [e.times_triggered for e in events] == [1, 2]

    def test_trigger_unknown_memory(self, index, make_profile, bus):
        make_profile("alice")
        assert index.trigger_memory_resonance("alice", "nope") is None
        assert bus.events_of("memory_resonance") == []

    def test_triggering_makes_resurfacing_easier(self, index, make_profile):
        make_profile("alice", baseline={}, fear=60)
        memory = index.tag_memory("alice", "dark woods", Emotion.FEAR, 60, -70)
        before = index.find_resonant_memories("alice")[0].resonance_score
        for _ in range(10):
            index.trigger_memory_resonance("alice", memory.memory_id)
        after = index.find_resonant_memories("alice")[0].resonance_score
        assert after == pytest.approx(before * 1.5)


# ─── Patterns & learning ─────────────────────────────────────────────────────

class TestPatterns:

    def test_empty(self, index):
        patterns = index.analyze_emotional_patterns("nobody")
        assert patterns.total_memories == 0
        assert patterns.dominant_emotions == []

    def test_analyze(self, index, make_profile):
        make_profile("alice")
        index.tag_memory("alice", "Lost the race", Emotion.SADNESS, 70, -60)
        index.tag_memory("alice", "Missed the tea party", Emotion.SADNESS, 80, -70)
        index.tag_memory("alice", "Won at croquet", Emotion.JOY, 90, 80)

        patterns = index.analyze_emotional_patterns("alice")
        assert patterns.total_memories == 3
        assert patterns.dominant_emotions[0] == {"emotion": "sadness", "count": 2, "average_intensity": 75}
        assert patterns.average_valence == pytest.approx(-50 / 3)
        assert len(patterns.traumatic_memories) == 2
        assert len(patterns.joyful_memories) == 1

    def test_learning_from_matching_context(self, index, make_profile):
        make_profile("alice")
        index.tag_memory("alice", "Lost the race to Bob", Emotion.SADNESS, 70, -60)
        index.tag_memory("alice", "Tea with the Hatter", Emotion.JOY, 60, 50)

        learning = index.apply_emotional_learning("alice", "another race today")
        assert learning.relevant_memory_count == 1
        assert learning.suggestion == {"emotion": "sadness", "adjustment": pytest.approx(-42)}
        assert learning.confidence == pytest.approx(20)

    def test_learning_without_matches(self, index, make_profile):
        make_profile("alice")
        index.tag_memory("alice", "Lost the race", Emotion.SADNESS, 70, -60)
        learning = index.apply_emotional_learning("alice", "croquet")
        assert learning.suggestion is None
        assert learning.confidence == 0
