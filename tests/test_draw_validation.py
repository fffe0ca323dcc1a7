import unittest

from secretsanta.draw.validation import follow_cycle, validate_assignments
from secretsanta.errors import AssignmentInvariantError


class FollowCycleTests(unittest.TestCase):
    def test_full_cycle(self):
        pairs = [("a", "b"), ("b", "c"), ("c", "a")]
        self.assertEqual(follow_cycle(pairs, "a"), ["a", "b", "c"])

    def test_stops_at_sub_cycle(self):
        pairs = [("a", "b"), ("b", "a"), ("c", "d"), ("d", "c")]
        self.assertEqual(follow_cycle(pairs, "c"), ["c", "d"])

    def test_stops_when_chain_breaks(self):
        self.assertEqual(follow_cycle([("a", "b")], "a"), ["a", "b"])


class ValidateAssignmentsTests(unittest.TestCase):
    members = ["a", "b", "c", "d"]

    def test_accepts_single_cycle(self):
        validate_assignments(
            self.members, [("a", "c"), ("c", "b"), ("b", "d"), ("d", "a")]
        )

    def test_two_cycles_allowed_only_when_not_required(self):
        pairs = [("a", "b"), ("b", "a"), ("c", "d"), ("d", "c")]
        validate_assignments(self.members, pairs, require_single_cycle=False)
        with self.assertRaises(AssignmentInvariantError):
            validate_assignments(self.members, pairs)

    def test_self_assignment(self):
        with self.assertRaisesRegex(AssignmentInvariantError, "themselves"):
            validate_assignments(
                ["a", "b", "c"],
                [("a", "a"), ("b", "c"), ("c", "b")],
                require_single_cycle=False,
            )

    def test_wrong_count(self):
        with self.assertRaises(AssignmentInvariantError):
            validate_assignments(self.members, [("a", "b"), ("b", "a")])

    def test_repeated_receiver(self):
        with self.assertRaisesRegex(AssignmentInvariantError, "receiver appears"):
            validate_assignments(
                ["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "b")]
            )

    def test_repeated_giver(self):
        with self.assertRaisesRegex(AssignmentInvariantError, "giver appears"):
            validate_assignments(
                ["a", "b", "c"], [("a", "b"), ("a", "c"), ("c", "a")]
            )

    def test_unknown_member(self):
        with self.assertRaisesRegex(AssignmentInvariantError, "unknown receiver"):
            validate_assignments(
                ["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "z")]
            )

    def test_duplicate_member_ids(self):
        with self.assertRaises(AssignmentInvariantError):
            validate_assignments(["a", "a", "b"], [("a", "b"), ("b", "a"), ("a", "b")])


if __name__ == "__main__":
    unittest.main()
