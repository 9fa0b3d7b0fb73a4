import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from friend_focus.db import AccountRow
from friend_focus.places import PlaceSuggestion, PlacesClient
from friend_focus.storage import InMemoryPhotoStore
from friend_focus.tests.testing_utils import (
    create_session,
    create_user,
    make_client,
    make_database,
    make_settings,
    session_cookie,
)


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        self.settings = make_settings()
        self.store = InMemoryPhotoStore()
        self.user_id = create_user(self.db)
        self.token = create_session(self.db, self.user_id)
        self.client = make_client(self.db, self.settings, self.store)
        self.client.headers["Authorization"] = f"Bearer {self.token}"

    def anonymous_client(self):
        return make_client(self.db, self.settings, self.store)

    def create_friend(self, name="Alice", **fields):
        response = self.client.post("/api/friends", json={"name": name, **fields})
        self.assertEqual(response.status_code, 201)
        return response.json()

    def create_activity(self, name):
        response = self.client.post("/api/activities", json={"name": name})
        self.assertEqual(response.status_code, 201)
        return response.json()


class SystemRoutesTests(ApiTestCase):
    def test_health_reports_ok_without_session(self):
        response = self.anonymous_client().get("/api/health")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["status"], "ok")
        self.assertIn("T", payload["timestamp"])

    def test_health_reports_database_failure(self):
        error = OperationalError("SELECT 1", {}, Exception("down"))
        with patch.object(self.db, "ping", side_effect=error):
            response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {"status": "error", "message": "Database connection failed"},
        )

    def test_missing_session_redirects_to_login(self):
        response = self.anonymous_client().get("/api/friends", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/login")

    def test_expired_session_redirects_to_login(self):
        expired = create_session(self.db, self.user_id, expires_in=-10)
        response = self.anonymous_client().get(
            "/api/friends",
            headers={"Authorization": f"Bearer {expired}"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 302)

    def test_signed_cookie_authenticates(self):
        cookie = f"{self.settings.session_cookie_name}={session_cookie(self.token)}"
        response = self.anonymous_client().get(
            "/api/friends", headers={"Cookie": cookie}, follow_redirects=False
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_forged_cookie_redirects(self):
        forged = session_cookie(self.token, secret="other-secret")
        cookie = f"{self.settings.session_cookie_name}={forged}"
        response = self.anonymous_client().get(
            "/api/friends", headers={"Cookie": cookie}, follow_redirects=False
        )
        self.assertEqual(response.status_code, 302)

    def test_non_bearer_authorization_falls_back_to_cookie(self):
        cookie = f"{self.settings.session_cookie_name}={session_cookie(self.token)}"
        response = self.anonymous_client().get(
            "/api/friends",
            headers={"Authorization": "Basic abc", "Cookie": cookie},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 200)


class PhotoRoutesTests(ApiTestCase):
    def test_rejects_traversal_filename(self):
        response = self.client.get("/api/photos/..secret.jpg")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid filename")

    def test_missing_photo_is_404(self):
        response = self.client.get("/api/photos/nobody.jpg")
        self.assertEqual(response.status_code, 404)

    def test_upload_serve_and_delete_photo(self):
        friend = self.create_friend()
        upload = self.client.put(
            f"/api/friends/{friend['id']}/photo",
            files={"file": ("me.jpg", b"\xff\xd8jpeg-bytes", "image/jpeg")},
        )
        self.assertEqual(upload.status_code, 200)
        filename = upload.json()["photo"]
        self.assertEqual(filename, f"{friend['id']}.jpg")

        served = self.client.get(f"/api/photos/{filename}")
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"\xff\xd8jpeg-bytes")
        self.assertEqual(served.headers["content-type"], "image/jpeg")
        self.assertEqual(served.headers["cache-control"], "public, max-age=86400")

        self.assertEqual(self.client.delete(f"/api/friends/{friend['id']}").status_code, 200)
        self.assertNotIn(filename, self.store.stored_objects)

    def test_photo_requires_session(self):
        self.store.save("abc", b"data")
        response = self.anonymous_client().get(
            "/api/photos/abc.jpg", follow_redirects=False
        )
        self.assertEqual(response.status_code, 302)


class PlacesRoutesTests(ApiTestCase):
    def test_disabled_without_api_key(self):
        response = self.client.get("/api/places", params={"input": "1 Main"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"suggestions": [], "enabled": False})

    @patch.object(PlacesClient, "autocomplete")
    def test_autocomplete_suggestions(self, mock_autocomplete):
        mock_autocomplete.return_value = [
            PlaceSuggestion(
                place_id="p1",
                description="1 Main St, Springfield",
                main_text="1 Main St",
                secondary_text="Springfield",
            )
        ]
        self.settings.google_maps_api_key = "maps-key"
        response = self.client.get("/api/places", params={"input": "1 Main"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["enabled"])
        self.assertEqual(payload["suggestions"][0]["place_id"], "p1")
        mock_autocomplete.assert_called_once_with("1 Main")


class GoogleRoutesTests(ApiTestCase):
    def test_scope_upgrade_requires_google_config(self):
        response = self.client.get("/api/google-scope-upgrade", follow_redirects=False)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Google not configured")

    def test_scope_upgrade_redirects_to_consent(self):
        self.settings.google_client_id = "client-id"
        self.settings.google_client_secret = "client-secret"
        response = self.client.get(
            "/api/google-scope-upgrade",
            params={"callbackURL": "/events"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 302)
        location = response.headers["location"]
        self.assertTrue(location.startswith("https://accounts.google.com/o/oauth2/v2/auth?"))
        self.assertIn("client_id=client-id", location)
        self.assertIn("prompt=consent", location)

    def test_google_status(self):
        response = self.client.get("/api/google-status")
        self.assertEqual(
            response.json(), {"connected": False, "calendar": False, "contacts": False}
        )

        with self.db.Session() as session:
            session.add(
                AccountRow(
                    account_id="g-1",
                    provider_id="google",
                    user_id=self.user_id,
                    access_token="token",
                    scope="openid https://www.googleapis.com/auth/calendar.events",
                )
            )
            session.commit()

        response = self.client.get("/api/google-status")
        self.assertEqual(
            response.json(), {"connected": True, "calendar": True, "contacts": False}
        )


class ActivityAndTierRoutesTests(ApiTestCase):
    def test_activities_append_and_reorder(self):
        hiking = self.create_activity("Hiking")
        movies = self.create_activity("Movies")
        self.assertEqual((hiking["sort_order"], movies["sort_order"]), (0, 1))

        response = self.client.post(
            "/api/activities/reorder", json={"ordered_ids": [movies["id"], hiking["id"]]}
        )
        self.assertEqual(response.json(), {"status": "ok"})
        names = [a["name"] for a in self.client.get("/api/activities").json()]
        self.assertEqual(names, ["Movies", "Hiking"])

    def test_duplicate_activity_name_conflicts(self):
        self.create_activity("Hiking")
        response = self.client.post("/api/activities", json={"name": "Hiking"})
        self.assertEqual(response.status_code, 409)

    def test_blank_activity_name_is_rejected(self):
        response = self.client.post("/api/activities", json={"name": "   "})
        self.assertEqual(response.status_code, 422)

    def test_tiers_start_at_one_and_count_friends(self):
        inner = self.client.post(
            "/api/closeness-tiers", json={"label": "Inner circle", "color": "#f00"}
        ).json()
        self.assertEqual(inner["sort_order"], 1)
        self.create_friend(closeness_tier_id=inner["id"])

        tiers = self.client.get("/api/closeness-tiers").json()
        self.assertEqual(tiers[0]["friend_count"], 1)

        self.client.delete(f"/api/closeness-tiers/{inner['id']}")
        friends = self.client.get("/api/friends").json()
        self.assertIsNone(friends[0]["closeness_tier_id"])


class FriendRoutesTests(ApiTestCase):
    def test_create_update_and_detail(self):
        friend = self.create_friend(email="", phone="555-0100")
        self.assertIsNone(friend["email"])
        self.assertFalse(friend["care_mode_active"])

        response = self.client.put(
            f"/api/friends/{friend['id']}",
            json={"name": "Alice B", "email": "alice@example.com", "phone": ""},
        )
        self.assertEqual(response.status_code, 200)

        detail = self.client.get(f"/api/friends/{friend['id']}").json()
        self.assertEqual(detail["friend"]["name"], "Alice B")
        self.assertEqual(detail["friend"]["email"], "alice@example.com")
        self.assertIsNone(detail["friend"]["phone"])
        self.assertEqual(detail["activity_ratings"], [])
        self.assertEqual(detail["notes"], [])

    def test_invalid_email_is_rejected(self):
        response = self.client.post(
            "/api/friends", json={"name": "Bob", "email": "not-an-email"}
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_tier_is_404(self):
        response = self.client.post(
            "/api/friends", json={"name": "Bob", "closeness_tier_id": "missing"}
        )
        self.assertEqual(response.status_code, 404)

    def test_search_and_options(self):
        self.create_friend("Charlie")
        self.create_friend("alice")
        self.create_friend("Bob")

        found = self.client.get("/api/friends", params={"search": "li"}).json()
        self.assertEqual(sorted(f["name"] for f in found), ["Charlie", "alice"])

        options = self.client.get("/api/friend-options").json()
        self.assertEqual(len(options), 3)
        self.assertEqual(set(options[0]), {"id", "name"})

    def test_friends_are_scoped_to_owner(self):
        friend = self.create_friend()
        other_user = create_user(self.db, email="other@example.com", name="Other")
        other_token = create_session(self.db, other_user)
        response = self.anonymous_client().get(
            f"/api/friends/{friend['id']}",
            headers={"Authorization": f"Bearer {other_token}"},
        )
        self.assertEqual(response.status_code, 404)

    def test_ratings_bulk_replace(self):
        friend = self.create_friend()
        hiking = self.create_activity("Hiking")
        movies = self.create_activity("Movies")
        url = f"/api/friends/{friend['id']}/activities"

        first = self.client.put(
            url,
            json={
                "ratings": [
                    {"activity_id": hiking["id"], "rating": 1},
                    {"activity_id": movies["id"], "rating": 4},
                ]
            },
        )
        self.assertEqual(first.status_code, 200)
        self.assertEqual(len(first.json()), 2)

        second = self.client.put(
            url, json={"ratings": [{"activity_id": movies["id"], "rating": 2}]}
        ).json()
        self.assertEqual(
            [(r["activity_name"], r["rating"]) for r in second], [("Movies", 2)]
        )

    def test_rating_out_of_range_is_rejected(self):
        friend = self.create_friend()
        hiking = self.create_activity("Hiking")
        response = self.client.put(
            f"/api/friends/{friend['id']}/activities/{hiking['id']}", json={"rating": 6}
        )
        self.assertEqual(response.status_code, 422)

    def test_single_rating_set_and_clear(self):
        friend = self.create_friend()
        hiking = self.create_activity("Hiking")
        url = f"/api/friends/{friend['id']}/activities/{hiking['id']}"

        self.assertEqual(self.client.put(url, json={"rating": 3}).json()["rating"], 3)
        self.assertEqual(self.client.put(url, json={"rating": 1}).json()["rating"], 1)
        self.assertEqual(len(self.client.get(f"/api/friends/{friend['id']}/activities").json()), 1)

        self.client.delete(url)
        self.assertEqual(self.client.get(f"/api/friends/{friend['id']}/activities").json(), [])


class NoteRoutesTests(ApiTestCase):
    def test_notes_crud_and_filters(self):
        friend = self.create_friend()
        friend_note = self.client.post(
            "/api/notes",
            json={"content": "Loves foo fighters", "type": "friend", "friend_id": friend["id"]},
        )
        self.assertEqual(friend_note.status_code, 201)
        self.assertEqual(friend_note.json()["friend_name"], "Alice")
        journal = self.client.post("/api/notes", json={"content": "Quiet week"}).json()
        self.assertEqual(journal["type"], "journal")

        by_type = self.client.get("/api/notes", params={"type": "friend"}).json()
        self.assertEqual([n["id"] for n in by_type], [friend_note.json()["id"]])
        by_search = self.client.get("/api/notes", params={"search": "Quiet"}).json()
        self.assertEqual([n["id"] for n in by_search], [journal["id"]])

        self.client.put(f"/api/notes/{journal['id']}", json={"content": "Busy week"})
        self.assertEqual(
            self.client.get(f"/api/notes/{journal['id']}").json()["content"], "Busy week"
        )

        self.client.delete(f"/api/notes/{journal['id']}")
        self.assertEqual(self.client.get(f"/api/notes/{journal['id']}").status_code, 404)

    def test_note_for_unknown_friend_is_404(self):
        response = self.client.post(
            "/api/notes", json={"content": "hi", "type": "friend", "friend_id": "missing"}
        )
        self.assertEqual(response.status_code, 404)


class EventRoutesTests(ApiTestCase):
    def test_event_invitations_and_calendar_payload(self):
        hiking = self.create_activity("Hiking")
        alice = self.create_friend("Alice")
        bob = self.create_friend("Bob")
        event = self.client.post(
            "/api/events",
            json={
                "name": "Ridge walk",
                "activity_id": hiking["id"],
                "date": "2025-03-01",
                "time": "23:30",
                "location": "Trailhead",
            },
        )
        self.assertEqual(event.status_code, 201)
        event = event.json()
        self.assertEqual(event["status"], "planning")
        self.assertEqual(event["activity_name"], "Hiking")

        url = f"/api/events/{event['id']}/invitations"
        alice_inv = self.client.post(url, json={"friend_id": alice["id"]})
        self.assertEqual(alice_inv.status_code, 201)
        self.assertEqual(alice_inv.json()["status"], "not_invited")
        self.client.post(url, json={"friend_id": bob["id"]})
        self.assertEqual(
            self.client.post(url, json={"friend_id": alice["id"]}).status_code, 409
        )

        update = self.client.put(
            f"/api/invitations/{alice_inv.json()['id']}", json={"status": "attending"}
        )
        self.assertEqual(update.status_code, 200)

        detail = self.client.get(f"/api/events/{event['id']}").json()
        self.assertEqual(len(detail["invitations"]), 2)

        payload = self.client.get(f"/api/events/{event['id']}/calendar-payload").json()
        self.assertEqual(payload["summary"], "Ridge walk")
        self.assertEqual(payload["location"], "Trailhead")
        self.assertEqual(payload["start"], {"dateTime": "2025-03-01T23:30:00"})
        self.assertEqual(payload["end"], {"dateTime": "2025-03-02T00:30:00"})
        self.assertEqual(
            payload["description"], "Activity: Hiking\n\nGuest list (1):\n  - Alice"
        )

    def test_calendar_payload_without_date_is_400(self):
        event = self.client.post("/api/events", json={"name": "Someday"}).json()
        response = self.client.get(f"/api/events/{event['id']}/calendar-payload")
        self.assertEqual(response.status_code, 400)

    def test_invalid_status_is_rejected(self):
        response = self.client.post("/api/events", json={"name": "Party", "status": "maybe"})
        self.assertEqual(response.status_code, 422)

    def test_malformed_date_or_time_is_rejected(self):
        response = self.client.post("/api/events", json={"name": "Late", "time": "25:00"})
        self.assertEqual(response.status_code, 422)
        response = self.client.post("/api/events", json={"name": "Soon", "date": "03/01/2025"})
        self.assertEqual(response.status_code, 422)
        response = self.client.post("/api/events", json={"name": "Open", "date": "", "time": ""})
        self.assertEqual(response.status_code, 201)

    def test_null_invitation_flags_are_rejected(self):
        friend = self.create_friend()
        event = self.client.post("/api/events", json={"name": "Dinner"}).json()
        invitation = self.client.post(
            f"/api/events/{event['id']}/invitations", json={"friend_id": friend["id"]}
        ).json()
        url = f"/api/invitations/{invitation['id']}"

        for field in ("must_invite", "must_exclude", "status"):
            response = self.client.put(url, json={field: None})
            self.assertEqual(response.status_code, 422, field)

        self.assertEqual(self.client.put(url, json={"must_invite": True}).status_code, 200)
        self.assertEqual(self.client.put(url, json={"attended": None}).status_code, 200)
        detail = self.client.get(f"/api/events/{event['id']}").json()
        self.assertTrue(detail["invitations"][0]["must_invite"])
        self.assertFalse(detail["invitations"][0]["must_exclude"])
        self.assertEqual(detail["invitations"][0]["status"], "not_invited")

    def test_other_users_invitation_is_404(self):
        friend = self.create_friend()
        event = self.client.post("/api/events", json={"name": "Dinner"}).json()
        invitation = self.client.post(
            f"/api/events/{event['id']}/invitations", json={"friend_id": friend["id"]}
        ).json()

        other_user = create_user(self.db, email="other@example.com", name="Other")
        other_token = create_session(self.db, other_user)
        response = self.anonymous_client().put(
            f"/api/invitations/{invitation['id']}",
            json={"status": "declined"},
            headers={"Authorization": f"Bearer {other_token}"},
        )
        self.assertEqual(response.status_code, 404)

    def test_filter_events_by_status(self):
        self.client.post("/api/events", json={"name": "A", "status": "completed"})
        self.client.post("/api/events", json={"name": "B"})
        names = [
            e["name"]
            for e in self.client.get("/api/events", params={"status": "completed"}).json()
        ]
        self.assertEqual(names, ["A"])


class GiftIdeaRoutesTests(ApiTestCase):
    def test_gift_idea_lifecycle(self):
        friend = self.create_friend()
        url = f"/api/friends/{friend['id']}/gift-ideas"
        created = self.client.post(
            url, json={"description": "Tea set", "url": "https://example.com/tea", "price": "$30"}
        )
        self.assertEqual(created.status_code, 201)
        gift = created.json()
        self.assertTrue(gift["url"].startswith("https://example.com/tea"))
        self.assertFalse(gift["purchased"])

        toggled = self.client.post(f"/api/gift-ideas/{gift['id']}/toggle-purchased")
        self.assertEqual(toggled.status_code, 200)
        self.assertTrue(toggled.json()["purchased"])
        self.assertIsNotNone(toggled.json()["purchased_at"])

        update = self.client.put(f"/api/gift-ideas/{gift['id']}", json={"description": "Teapot"})
        self.assertEqual(update.status_code, 200)
        self.assertEqual(self.client.get(url).json()[0]["description"], "Teapot")

        self.assertEqual(self.client.delete(f"/api/gift-ideas/{gift['id']}").status_code, 200)
        self.assertEqual(self.client.get(url).json(), [])

    def test_invalid_url_is_rejected(self):
        friend = self.create_friend()
        response = self.client.post(
            f"/api/friends/{friend['id']}/gift-ideas",
            json={"description": "Mug", "url": "not a url"},
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_friend_or_gift_is_404(self):
        response = self.client.post("/api/friends/missing/gift-ideas", json={"description": "Mug"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            self.client.post("/api/gift-ideas/missing/toggle-purchased").status_code, 404
        )
        self.assertEqual(
            self.client.put("/api/gift-ideas/missing", json={"description": "x"}).status_code, 404
        )


class AvailabilityRoutesTests(ApiTestCase):
    def test_create_list_delete(self):
        friend = self.create_friend()
        url = f"/api/friends/{friend['id']}/availability"
        created = self.client.post(
            url, json={"label": "Trip", "start_date": "2025-03-01", "end_date": "2025-03-05"}
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual([a["label"] for a in self.client.get(url).json()], ["Trip"])

        self.client.delete(f"/api/availability/{created.json()['id']}")
        self.assertEqual(self.client.get(url).json(), [])

    def test_dates_must_be_iso(self):
        friend = self.create_friend()
        response = self.client.post(
            f"/api/friends/{friend['id']}/availability",
            json={"label": "Trip", "start_date": "March 1", "end_date": "2025-03-05"},
        )
        self.assertEqual(response.status_code, 422)


class ConnectionRoutesTests(ApiTestCase):
    def test_connect_update_and_graph(self):
        alice = self.create_friend("Alice")
        bob = self.create_friend("Bob")
        created = self.client.post(
            "/api/connections",
            json={"friend_a_id": alice["id"], "friend_b_id": bob["id"], "type": "Coworkers"},
        )
        self.assertEqual(created.status_code, 201)
        conn = created.json()
        self.assertEqual(conn["strength"], 3)

        duplicate = self.client.post(
            "/api/connections", json={"friend_a_id": bob["id"], "friend_b_id": alice["id"]}
        )
        self.assertEqual(duplicate.status_code, 409)

        update = self.client.put(f"/api/connections/{conn['id']}", json={"strength": 5})
        self.assertEqual(update.status_code, 200)
        listed = self.client.get("/api/connections", params={"friend_id": alice["id"]}).json()
        self.assertEqual(listed[0]["strength"], 5)

        graph = self.client.get("/api/connection-graph").json()
        self.assertEqual(len(graph["friends"]), 2)
        self.assertEqual(graph["connections"][0]["strength"], 5)

        self.client.delete(f"/api/connections/{conn['id']}")
        self.assertEqual(self.client.get("/api/connections").json(), [])

    def test_self_connection_is_422(self):
        alice = self.create_friend("Alice")
        response = self.client.post(
            "/api/connections", json={"friend_a_id": alice["id"], "friend_b_id": alice["id"]}
        )
        self.assertEqual(response.status_code, 422)

    def test_strength_out_of_range_is_422(self):
        alice = self.create_friend("Alice")
        bob = self.create_friend("Bob")
        response = self.client.post(
            "/api/connections",
            json={"friend_a_id": alice["id"], "friend_b_id": bob["id"], "strength": 6},
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_friend_is_404(self):
        alice = self.create_friend("Alice")
        response = self.client.post(
            "/api/connections", json={"friend_a_id": alice["id"], "friend_b_id": "missing"}
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            self.client.put("/api/connections/missing", json={"strength": 2}).status_code, 404
        )


class RecommendationRoutesTests(ApiTestCase):
    def test_recommendations_rank_friends(self):
        hiking = self.create_activity("Hiking")
        alice = self.create_friend("Alice")
        bob = self.create_friend("Bob")
        self.client.put(
            f"/api/friends/{alice['id']}/activities/{hiking['id']}", json={"rating": 1}
        )
        self.client.put(f"/api/friends/{bob['id']}/activities/{hiking['id']}", json={"rating": 5})
        event = self.client.post(
            "/api/events",
            json={"name": "Ridge walk", "activity_id": hiking["id"], "vibe": "activity_focused"},
        ).json()
        self.client.post(f"/api/events/{event['id']}/invitations", json={"friend_id": bob["id"]})

        response = self.client.get(f"/api/events/{event['id']}/recommendations")
        self.assertEqual(response.status_code, 200)
        recs = response.json()
        self.assertEqual([r["friend_name"] for r in recs], ["Alice", "Bob"])
        self.assertEqual(recs[0]["interest_rating"], "Loves it")
        self.assertEqual(recs[0]["social_fit"], {"knows": 0, "of": 1, "score": 50})
        self.assertTrue(recs[1]["is_invited"])
        self.assertEqual(recs[1]["invitation_status"], "not_invited")

    def test_unknown_event_is_404(self):
        self.assertEqual(self.client.get("/api/events/missing/recommendations").status_code, 404)


if __name__ == "__main__":
    unittest.main()
