from datetime import timedelta
from types import SimpleNamespace

import pytest

from boards.recommendation.engine import (
    DEFAULT_TRUST,
    Candidate,
    ScoringContext,
    ScoringEngine,
    ScoringWeights,
    UserSignals,
    build_reasons,
    resolve_trust,
)
from boards.recommendation.temporal import TimeBucket

SF = (37.7749, -122.4194)
# About 6 km north-east of SF city hall
BERKELEY_ISH = (37.8199, -122.3783)


def make_event(now, **overrides):
    values = {
        'id': 'event',
        'latitude': SF[0],
        'longitude': SF[1],
        'vibe': [],
        'start_time': now + timedelta(days=3),
        'popularity_score': 0.0,
        'trust_score': None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def engine():
    return ScoringEngine(ScoringWeights())


@pytest.fixture
def context(now):
    return ScoringContext(now=now, lat=SF[0], lng=SF[1], radius_km=10.0)


class TestScore:
    def test_breakdown_for_plain_event(self, engine, context, now):
        result = engine.score(Candidate(event=make_event(now)), UserSignals(), context)

        assert result.breakdown == {
            'vibe': 0.0,
            'distance': 1.5,
            'time': 0.48,
            'popularity': 0.0,
            'trust': 0.25,
            'embed': 0.0,
        }
        assert result.score == pytest.approx(2.23)
        assert result.distance_km == 0.0

    def test_excludes_events_beyond_radius(self, engine, now):
        context = ScoringContext(now=now, lat=SF[0], lng=SF[1], radius_km=2.0)
        event = make_event(now, latitude=BERKELEY_ISH[0], longitude=BERKELEY_ISH[1])

        assert engine.score(Candidate(event=event), UserSignals(), context) is None

    def test_unknown_distance_is_kept_with_zero_distance_score(self, engine, context, now):
        event = make_event(now, latitude=None, longitude=None)

        result = engine.score(Candidate(event=event), UserSignals(), context)

        assert result is not None
        assert result.distance_km is None
        assert result.breakdown['distance'] == 0.0

    def test_distance_falls_off_linearly(self, engine, now):
        event = make_event(now, latitude=BERKELEY_ISH[0], longitude=BERKELEY_ISH[1])
        context = ScoringContext(now=now, lat=SF[0], lng=SF[1], radius_km=10.0)

        result = engine.score(Candidate(event=event), UserSignals(), context)

        expected = 1.5 * (1 - result.distance_km / 10.0)
        assert result.breakdown['distance'] == pytest.approx(expected, abs=1e-3)

    def test_vibe_overlap_counts_user_and_request_vibes(self, engine, now):
        event = make_event(now, vibe=['Chill', 'Artsy', 'Loud'])
        context = ScoringContext(now=now, vibes=['Artsy'])
        user = UserSignals(vibe_prefs=['Chill'])

        result = engine.score(Candidate(event=event), user, context)

        assert result.breakdown['vibe'] == 4.0
        assert 'Matches multiple of your vibes' in result.reasons

    def test_popularity_includes_rsvps(self, engine, context, now):
        event = make_event(now, popularity_score=1.5)

        result = engine.score(Candidate(event=event, rsvp_count=6), UserSignals(), context)

        assert result.breakdown['popularity'] == pytest.approx(2.1)
        assert 'Trending with the community' in result.reasons

    def test_embed_component_uses_taste_vector(self, engine, context, now):
        embedding = [1.0, 0, 0, 0, 0, 0, 0, 0]
        user = UserSignals(taste_vector=embedding)

        result = engine.score(Candidate(event=make_event(now), embedding=embedding), user, context)

        assert result.breakdown['embed'] == pytest.approx(1.0)
        assert 'Feels like your taste' in result.reasons

    def test_time_bucket_factor(self, engine, now):
        event = make_event(now, start_time=now + timedelta(hours=1))
        context = ScoringContext(now=now, when='now')

        result = engine.score(Candidate(event=event), UserSignals(), context)

        assert result.time_bucket == TimeBucket.NOW
        assert result.breakdown['time'] == pytest.approx(1.2)
        assert 'Happening right now' in result.reasons

    def test_custom_weights_are_applied(self, context, now):
        engine = ScoringEngine(ScoringWeights(trust=2.0))

        result = engine.score(Candidate(event=make_event(now)), UserSignals(), context)

        assert result.breakdown['trust'] == pytest.approx(1.0)


class TestTrust:
    def test_host_trust_wins(self):
        assert resolve_trust(0.9, 0.1) == 0.9

    def test_falls_back_to_event_trust(self):
        assert resolve_trust(None, 0.3) == 0.3

    def test_defaults_when_both_missing(self):
        assert resolve_trust(None, None) == DEFAULT_TRUST

    def test_zero_trust_is_kept(self):
        assert resolve_trust(0.0, 0.8) == 0.0

    def test_trusted_host_reason(self, engine, context, now):
        result = engine.score(Candidate(event=make_event(now), host_trust=0.75), UserSignals(), context)
        assert 'Trusted host' in result.reasons


class TestReasons:
    def test_single_vibe(self):
        reasons = build_reasons(1, None, None, None, 0.5, 0.0, 0.0)
        assert reasons == ['Matches one of your vibes']

    def test_very_close_uses_one_km_floor(self):
        assert 'Very close to you' in build_reasons(0, 0.9, 2.0, None, 0.5, 0.0, 0.0)
        assert 'Near your location' in build_reasons(0, 1.5, 2.0, None, 0.5, 0.0, 0.0)

    def test_very_close_scales_with_radius(self):
        assert 'Very close to you' in build_reasons(0, 3.9, 10.0, None, 0.5, 0.0, 0.0)
        assert 'Near your location' in build_reasons(0, 4.1, 10.0, None, 0.5, 0.0, 0.0)

    @pytest.mark.parametrize('bucket,reason', [
        (TimeBucket.TONIGHT, 'Hitting tonight'),
        (TimeBucket.WEEKEND, 'Weekend highlight'),
    ])
    def test_time_reasons(self, bucket, reason):
        assert build_reasons(0, None, None, bucket, 0.5, 0.0, 0.0) == [reason]

    def test_later_bucket_has_no_reason(self):
        assert build_reasons(0, None, None, TimeBucket.LATER, 0.5, 0.0, 0.0) == []


class TestRank:
    def test_caps_results_and_sorts_descending(self, engine, now):
        candidates = [
            Candidate(event=make_event(now, id=f"e{i}", popularity_score=float(i % 17)))
            for i in range(80)
        ]
        context = ScoringContext(now=now, lat=SF[0], lng=SF[1], radius_km=10.0, max_results=100)

        ranked = engine.rank(candidates, UserSignals(), context)

        assert len(ranked) == 50
        scores = [item.score for item in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_ties_keep_candidate_order(self, engine, context, now):
        candidates = [Candidate(event=make_event(now, id=f"e{i}")) for i in range(5)]

        ranked = engine.rank(candidates, UserSignals(), context)

        assert [item.event.id for item in ranked] == ['e0', 'e1', 'e2', 'e3', 'e4']

    def test_excluded_candidates_are_dropped(self, engine, now):
        near = make_event(now, id='near')
        far = make_event(now, id='far', latitude=40.7128, longitude=-74.0060)
        context = ScoringContext(now=now, lat=SF[0], lng=SF[1], radius_km=25.0)

        ranked = engine.rank([Candidate(event=far), Candidate(event=near)], UserSignals(), context)

        assert [item.event.id for item in ranked] == ['near']

    def test_respects_smaller_max(self, engine, context, now):
        candidates = [Candidate(event=make_event(now, id=f"e{i}")) for i in range(10)]
        ranked = engine.rank(candidates, UserSignals(), ScoringContext(now=now, max_results=3))
        assert len(ranked) == 3
