import unittest

from sqlalchemy.exc import IntegrityError

from friend_focus import closeness, connections, friends
from friend_focus.tests.testing_utils import create_user, make_database


class ConnectionTests(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        self.user_id = create_user(self.db)
        self.alice = friends.create_friend(self.db, self.user_id, {"name": "Alice"})
        self.bob = friends.create_friend(self.db, self.user_id, {"name": "Bob"})
        self.cara = friends.create_friend(self.db, self.user_id, {"name": "Cara"})

    def test_pair_is_stored_in_canonical_order(self):
        first, second = sorted([self.alice.id, self.bob.id])
        conn = connections.create_connection(
            self.db, self.user_id, second, first, {"type": "Siblings", "how_they_met": ""}
        )
        self.assertEqual((conn.friend_a_id, conn.friend_b_id), (first, second))
        self.assertEqual(conn.strength, 3)
        self.assertIsNone(conn.how_they_met)

    def test_duplicate_pair_in_either_order_is_rejected(self):
        connections.create_connection(self.db, self.user_id, self.alice.id, self.bob.id)
        with self.assertRaises(IntegrityError):
            connections.create_connection(self.db, self.user_id, self.bob.id, self.alice.id)

    def test_self_connection_is_rejected(self):
        with self.assertRaises(ValueError):
            connections.create_connection(self.db, self.user_id, self.alice.id, self.alice.id)

    def test_both_friends_must_be_owned(self):
        other_user = create_user(self.db, email="other@example.com")
        theirs = friends.create_friend(self.db, other_user, {"name": "Theirs"})
        self.assertIsNone(
            connections.create_connection(self.db, self.user_id, self.alice.id, theirs.id)
        )

    def test_filter_by_friend(self):
        connections.create_connection(self.db, self.user_id, self.alice.id, self.bob.id)
        connections.create_connection(self.db, self.user_id, self.bob.id, self.cara.id)
        self.assertEqual(len(connections.get_connections(self.db, self.user_id)), 2)
        self.assertEqual(
            len(connections.get_connections(self.db, self.user_id, self.alice.id)), 1
        )
        other_user = create_user(self.db, email="other@example.com")
        self.assertEqual(connections.get_connections(self.db, other_user), [])

    def test_update_and_delete_are_owner_scoped(self):
        conn = connections.create_connection(self.db, self.user_id, self.alice.id, self.bob.id)
        other_user = create_user(self.db, email="other@example.com")
        self.assertFalse(connections.update_connection(self.db, conn.id, other_user, {"strength": 1}))
        connections.delete_connection(self.db, conn.id, other_user)

        self.assertTrue(
            connections.update_connection(
                self.db, conn.id, self.user_id, {"strength": 5, "notes": "Roommates in college"}
            )
        )
        updated = connections.get_connection(self.db, conn.id, self.user_id)
        self.assertEqual((updated.strength, updated.notes), (5, "Roommates in college"))

        connections.delete_connection(self.db, conn.id, self.user_id)
        self.assertIsNone(connections.get_connection(self.db, conn.id, self.user_id))

    def test_strength_map_is_symmetric(self):
        connections.create_connection(
            self.db, self.user_id, self.alice.id, self.bob.id, {"strength": 4}
        )
        strengths = connections.get_connection_strengths(self.db, self.user_id)
        self.assertEqual(strengths[self.alice.id][self.bob.id], 4)
        self.assertEqual(strengths[self.bob.id][self.alice.id], 4)

    def test_graph_data(self):
        tier = closeness.create_closeness_tier(
            self.db, self.user_id, label="Inner", color="#ff0000"
        )
        friends.update_friend(self.db, self.alice.id, self.user_id, {"closeness_tier_id": tier.id})
        connections.create_connection(self.db, self.user_id, self.alice.id, self.bob.id)

        graph = connections.get_graph_data(self.db, self.user_id)
        self.assertEqual([n.name for n in graph.friends], ["Alice", "Bob", "Cara"])
        self.assertEqual(graph.friends[0].tier_color, "#ff0000")
        self.assertEqual(len(graph.connections), 1)
        self.assertEqual(graph.connections[0].strength, 3)

    def test_deleting_friend_removes_connections(self):
        connections.create_connection(self.db, self.user_id, self.alice.id, self.bob.id)
        friends.delete_friend(self.db, self.bob.id, self.user_id)
        self.assertEqual(connections.get_connections(self.db, self.user_id), [])


if __name__ == "__main__":
    unittest.main()
