from datetime import datetime, timedelta, timezone

import pytest

from boards.models import EventModel, Follow


def soon(hours=3):
    return datetime.now(timezone.utc) + timedelta(hours=hours)


@pytest.fixture
def host(make_user):
    return make_user()


@pytest.fixture
def other(make_user):
    return make_user()


@pytest.fixture
def payload():
    return {
        'title': "Sunset DJ set",
        'description': "Live music on the roof",
        'startTime': soon(24).isoformat(),
        'venueName': "Rooftop",
        'address': "1 Valencia St, San Francisco",
        'neighborhood': "Mission",
        'latitude': 37.7699,
        'longitude': -122.4223,
        'vibe': ['Loud', 'Creative'],
        'eventType': 'Concert',
        'capacity': 120,
        'ageRestriction': '21+',
        'ticketLink': "https://tickets.example.com/sunset",
    }


class TestCreateEvent:
    def test_creates_event_with_embedding(self, client, db, host, payload, auth_headers):
        response = client.post("/api/events", json=payload, headers=auth_headers(host))

        assert response.status_code == 201
        body = response.json()
        assert body['hostId'] == host.id
        assert body['eventType'] == 'concert'
        assert body['rsvpCount'] == 0
        assert body['popularityScore'] == 0.0

        event = db.get(EventModel, body['id'])
        assert len(event.embedding.vector) == 8
        assert event.embedding.version == 'v1'

    def test_requires_acting_user(self, client, payload):
        response = client.post("/api/events", json=payload)

        assert response.status_code == 401
        assert response.json() == {'error': 'Authentication required'}

    def test_rejects_unknown_acting_user(self, client, payload):
        response = client.post("/api/events", json=payload, headers={'X-User-Id': 'ghost'})
        assert response.status_code == 401

    def test_accepts_vibes_as_json_string(self, client, host, payload, auth_headers):
        payload['vibe'] = '["Chill", " ", "Zen"]'

        response = client.post("/api/events", json=payload, headers=auth_headers(host))

        assert response.status_code == 201
        assert response.json()['vibe'] == ['Chill', 'Zen']

    def test_end_before_start_is_rejected(self, client, host, payload, auth_headers):
        payload['endTime'] = soon(1).isoformat()

        response = client.post("/api/events", json=payload, headers=auth_headers(host))

        assert response.status_code == 400
        assert response.json()['details'][0]['message'] == "End time must be after start time"


class TestReadEvents:
    def test_get_event(self, client, host, make_event):
        event = make_event(host, start_time=soon())

        response = client.get(f"/api/events/{event.id}")

        assert response.status_code == 200
        assert response.json()['host']['username'] == host.username

    def test_missing_event(self, client):
        response = client.get("/api/events/missing")

        assert response.status_code == 404
        assert response.json() == {'error': 'Event not found'}

    def test_list_orders_by_start_time(self, client, host, make_event):
        later = make_event(host, title="Later", start_time=soon(48))
        earlier = make_event(host, title="Earlier", start_time=soon(2))

        response = client.get("/api/events")

        assert [event['id'] for event in response.json()] == [earlier.id, later.id]

    def test_list_filters_by_vibe_and_search(self, client, host, make_event):
        chill = make_event(host, title="Tea ceremony", vibe=['Chill'], start_time=soon())
        make_event(host, title="Rave", vibe=['Wild'], start_time=soon())
        park = make_event(host, title="Picnic", neighborhood="Dolores Park", start_time=soon())

        by_vibe = client.get("/api/events", params={'vibes': 'Chill,Zen'}).json()
        by_search = client.get("/api/events", params={'search': 'dolores'}).json()

        assert [event['id'] for event in by_vibe] == [chill.id]
        assert [event['id'] for event in by_search] == [park.id]

    def test_list_near_location_sorts_and_limits(self, client, host, make_event):
        oakland = make_event(host, title="Oakland", latitude=37.8044, longitude=-122.2712, start_time=soon())
        mission = make_event(host, title="Mission", latitude=37.7599, longitude=-122.4148, start_time=soon(5))
        make_event(host, title="Nowhere", latitude=None, longitude=None, start_time=soon())

        default_radius = client.get("/api/events", params={'near': '37.7749,-122.4194'}).json()
        wide = client.get("/api/events", params={'lat': 37.7749, 'lng': -122.4194, 'radiusKm': 20}).json()

        assert [event['id'] for event in default_radius] == [mission.id]
        assert [event['id'] for event in wide] == [mission.id, oakland.id]
        assert wide[0]['distanceKm'] < wide[1]['distanceKm']

    def test_explicit_dates_filter(self, client, host, make_event):
        inside = make_event(host, title="Inside", start_time=soon(30))
        make_event(host, title="Outside", start_time=soon(100))

        response = client.get("/api/events", params={
            'startDate': soon(24).strftime('%Y-%m-%dT%H:%M:%SZ'),
            'endDate': soon(48).strftime('%Y-%m-%dT%H:%M:%SZ'),
        })

        assert [event['id'] for event in response.json()] == [inside.id]

    def test_invalid_when_is_rejected(self, client):
        response = client.get("/api/events", params={'when': 'someday'})
        assert response.status_code == 400

    def test_embedding_explanation(self, client, host, make_event):
        event = make_event(host, vibe=['Foodie'], event_type='food', start_time=soon())

        response = client.get(f"/api/events/{event.id}/embedding")

        assert response.status_code == 200
        body = response.json()
        assert body['eventId'] == event.id
        assert len(body['dimensions']) == 8
        assert body['dimensions'][3]['label'] == 'Food/Culinary focus'


class TestUpdateEvent:
    def test_host_can_edit_and_embedding_is_regenerated(self, client, db, host, make_event, auth_headers):
        event = make_event(host, title="Quiet evening", vibe=['Chill'], start_time=soon())
        before = list(event.embedding.vector)

        response = client.put(
            f"/api/events/{event.id}",
            json={'vibe': ['Wild'], 'eventType': 'party'},
            headers=auth_headers(host),
        )

        assert response.status_code == 200
        assert response.json()['vibe'] == ['Wild']
        db.expire_all()
        assert db.get(EventModel, event.id).embedding.vector != before

    def test_non_descriptive_edit_keeps_embedding(self, client, db, host, make_event, auth_headers):
        event = make_event(host, vibe=['Chill'], start_time=soon())
        before = list(event.embedding.vector)

        response = client.put(
            f"/api/events/{event.id}",
            json={'venueName': "Back room", 'ticketLink': None},
            headers=auth_headers(host),
        )

        assert response.status_code == 200
        assert response.json()['venueName'] == "Back room"
        db.expire_all()
        assert db.get(EventModel, event.id).embedding.vector == before

    def test_null_on_required_column_is_ignored(self, client, host, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        response = client.put(
            f"/api/events/{event.id}",
            json={'title': "Renamed", 'latitude': None},
            headers=auth_headers(host),
        )

        assert response.status_code == 200
        assert response.json()['title'] == "Renamed"
        assert response.json()['latitude'] == pytest.approx(event.latitude)

    def test_null_description_clears_it(self, client, host, make_event, auth_headers):
        event = make_event(host, description="Bring a blanket", start_time=soon())

        response = client.put(
            f"/api/events/{event.id}",
            json={'description': None},
            headers=auth_headers(host),
        )

        assert response.status_code == 200
        assert response.json()['description'] == ""

    def test_other_user_cannot_edit(self, client, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        response = client.put(f"/api/events/{event.id}", json={'title': "Mine now"}, headers=auth_headers(other))

        assert response.status_code == 403

    def test_update_rejects_unknown_fields(self, client, host, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        response = client.put(f"/api/events/{event.id}", json={'hostId': 'x'}, headers=auth_headers(host))

        assert response.status_code == 400

    def test_update_checks_end_against_stored_start(self, client, host, make_event, auth_headers):
        event = make_event(host, start_time=soon(10))

        response = client.put(
            f"/api/events/{event.id}",
            json={'endTime': soon(5).isoformat()},
            headers=auth_headers(host),
        )

        assert response.status_code == 400
        assert response.json()['details'] == [
            {'field': 'endTime', 'message': 'End time must be after start time'}
        ]

    def test_delete(self, client, db, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        forbidden = client.delete(f"/api/events/{event.id}", headers=auth_headers(other))
        deleted = client.delete(f"/api/events/{event.id}", headers=auth_headers(host))

        assert forbidden.status_code == 403
        assert deleted.json() == {'message': 'Event deleted'}
        assert client.get(f"/api/events/{event.id}").status_code == 404


class TestRSVP:
    def test_rsvp_upserts(self, client, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        first = client.post(f"/api/events/{event.id}/rsvp", json={'status': 'interested'}, headers=auth_headers(other))
        second = client.post(f"/api/events/{event.id}/rsvp", json={'status': 'going'}, headers=auth_headers(other))

        assert first.status_code == 200
        assert second.json()['id'] == first.json()['id']
        assert second.json()['status'] == 'going'

        attendees = client.get(f"/api/events/{event.id}/attendees").json()
        assert len(attendees) == 1
        assert attendees[0]['user']['id'] == other.id
        assert client.get(f"/api/events/{event.id}").json()['rsvpCount'] == 1

    def test_rsvp_defaults_to_going(self, client, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        response = client.post(f"/api/events/{event.id}/rsvp", headers=auth_headers(other))

        assert response.json()['status'] == 'going'

    def test_rsvp_rejects_unknown_status(self, client, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())

        response = client.post(f"/api/events/{event.id}/rsvp", json={'status': 'never'}, headers=auth_headers(other))

        assert response.status_code == 400

    def test_cancel_rsvp(self, client, host, other, make_event, auth_headers):
        event = make_event(host, start_time=soon())
        client.post(f"/api/events/{event.id}/rsvp", headers=auth_headers(other))

        removed = client.delete(f"/api/events/{event.id}/rsvp", headers=auth_headers(other))
        missing = client.delete(f"/api/events/{event.id}/rsvp", headers=auth_headers(other))

        assert removed.json() == {'message': 'RSVP removed'}
        assert missing.status_code == 404


class TestUsers:
    def test_profile(self, client, host, make_event):
        make_event(host, start_time=soon())

        response = client.get(f"/api/users/{host.id}")

        assert response.status_code == 200
        body = response.json()
        assert body['displayName'] == host.display_name
        assert body['eventCount'] == 1
        assert body['followerCount'] == 0
        assert body['followingCount'] == 0
        assert 'email' not in body

    def test_profile_follow_counts(self, client, db, host, other, make_user):
        fan = make_user()
        db.add_all([
            Follow(follower_id=other.id, following_id=host.id),
            Follow(follower_id=fan.id, following_id=host.id),
            Follow(follower_id=host.id, following_id=other.id),
        ])
        db.commit()

        body = client.get(f"/api/users/{host.id}").json()

        assert body['followerCount'] == 2
        assert body['followingCount'] == 1

    def test_user_events_newest_first(self, client, host, make_event):
        early = make_event(host, title="Early", start_time=soon(1))
        late = make_event(host, title="Late", start_time=soon(50))

        response = client.get(f"/api/users/{host.id}/events")

        assert [event['id'] for event in response.json()] == [late.id, early.id]

    def test_unknown_user(self, client):
        assert client.get("/api/users/missing").status_code == 404
        assert client.get("/api/users/missing/events").status_code == 404
