import os
import sys
import unittest

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
)

from network import MalformedNetwork, Network, Street
from log_config import setup_logging

logger = setup_logging("test_network")


class TestNetwork(unittest.TestCase):
    """Unit tests for the Network class.

    The network used in most tests is the four-intersection example of the
    competition statement:

        2 -> 0  rue-de-londres   1
        0 -> 1  rue-d-amsterdam  1
        3 -> 1  rue-d-athenes    1
        2 -> 3  rue-de-rome      2
        1 -> 2  rue-de-moscou    3
    """

    def setUp(self):
        self.network = Network()
        self.network.add_intersections(range(4))
        self.network.add_street(2, 0, "rue-de-londres", 1)
        self.network.add_street(0, 1, "rue-d-amsterdam", 1)
        self.network.add_street(3, 1, "rue-d-athenes", 1)
        self.network.add_street(2, 3, "rue-de-rome", 2)
        self.network.add_street(1, 2, "rue-de-moscou", 3)
        logger.info("Setup complete: Network initialized")

    def test_graph_structure(self):
        """Streets are keyed edges of the multigraph, intersections are nodes."""
        logger.info("Test graph structure")
        try:
            self.assertEqual(self.network.number_of_nodes(), 4)
            self.assertEqual(self.network.number_of_edges(), 5)
            self.assertTrue(self.network.has_edge(1, 2, key="rue-de-moscou"))
            self.assertEqual(
                self.network.edges[1, 2, "rue-de-moscou"]["time_to_travel"], 3
            )
            self.assertEqual(self.network.in_degree(1), 2)
            self.assertEqual(self.network.out_degree(2), 2)
            logger.info("Passed test_graph_structure")
        except AssertionError as e:
            logger.error(f"Failed test_graph_structure: {e}")
            raise

    def test_incoming_and_outgoing_order(self):
        """Incoming and outgoing streets keep their input order."""
        logger.info("Test incoming and outgoing streets")
        try:
            self.assertEqual(
                [street.name for street in self.network.incoming_streets(1)],
                ["rue-d-amsterdam", "rue-d-athenes"],
            )
            self.assertEqual(
                [street.name for street in self.network.outgoing_streets(2)],
                ["rue-de-londres", "rue-de-rome"],
            )
            self.assertEqual(self.network.incoming_streets(3)[0].name, "rue-de-rome")
            self.assertEqual(self.network.outgoing_streets(1)[0].name, "rue-de-moscou")
            logger.info("Passed test_incoming_and_outgoing_order")
        except AssertionError as e:
            logger.error(f"Failed test_incoming_and_outgoing_order: {e}")
            raise

    def test_street_indices(self):
        for index, street in enumerate(self.network.streets):
            self.assertEqual(street.index, index)
            self.assertIs(self.network.get_street(street.name), street)

    def test_duplicate_street(self):
        with self.assertRaises(MalformedNetwork):
            self.network.add_street(0, 1, "rue-de-londres", 4)

    def test_duplicate_intersection(self):
        with self.assertRaises(MalformedNetwork):
            self.network.add_intersection(3)

    def test_unknown_intersection(self):
        with self.assertRaises(MalformedNetwork):
            self.network.add_street(0, 7, "rue-de-nulle-part", 1)

    def test_non_positive_travel_time(self):
        with self.assertRaises(MalformedNetwork):
            self.network.add_street(0, 1, "rue-instantanee", 0)

    def test_unknown_street(self):
        with self.assertRaises(MalformedNetwork) as context:
            self.network.get_street("rue-de-rivoli")
        self.assertIn("rue-de-rivoli", str(context.exception))

    def test_resolve_path(self):
        """A connected route resolves to street indices."""
        logger.info("Test resolve_path")
        path = self.network.resolve_path(
            ["rue-de-londres", "rue-d-amsterdam", "rue-de-moscou", "rue-de-rome"]
        )
        self.assertEqual(path, (0, 1, 4, 3))
        self.assertEqual(self.network.resolve_path([]), ())
        logger.info("Passed test_resolve_path")

    def test_resolve_path_dangling(self):
        with self.assertRaises(MalformedNetwork):
            self.network.resolve_path(["rue-de-londres", "rue-de-rivoli"])

    def test_resolve_path_disconnected(self):
        """rue-de-rome ends at 3, rue-de-moscou starts at 1."""
        with self.assertRaises(MalformedNetwork):
            self.network.resolve_path(["rue-de-rome", "rue-de-moscou"])

    def test_advance_cars(self):
        """Driving cars count down, waiting and skipped cars stay."""
        logger.info("Test advance_cars")
        moscou = self.network.get_street("rue-de-moscou")
        moscou.enter(0, countdown=0)
        moscou.enter(1)
        moscou.enter(2)
        self.network.advance_cars(skip={2})
        try:
            self.assertEqual([list(entry) for entry in moscou.cars], [[0, 0], [1, 2], [2, 3]])
            self.assertEqual(moscou.num_waiting(), 1)
            self.assertEqual(moscou.first_waiting(), [0, 0])
            self.network.clear_cars()
            self.assertEqual(len(moscou.cars), 0)
            logger.info("Passed test_advance_cars")
        except AssertionError as e:
            logger.error(f"Failed test_advance_cars: {e}")
            raise


class TestStreet(unittest.TestCase):
    def setUp(self):
        self.street = Street(index=0, name="rue-de-rome", start=2, end=3, time_to_travel=2)

    def test_enter_defaults_to_travel_time(self):
        self.street.enter(5)
        self.assertEqual(list(self.street.cars), [[5, 2]])

    def test_enter_rejects_out_of_range_countdown(self):
        with self.assertRaises(ValueError):
            self.street.enter(5, countdown=3)

    def test_first_waiting_is_fifo(self):
        self.street.enter(1, countdown=1)
        self.street.enter(2, countdown=0)
        self.street.enter(3, countdown=0)
        self.assertEqual(self.street.first_waiting(), [2, 0])
        self.street.leave(self.street.first_waiting())
        self.assertEqual(self.street.first_waiting(), [3, 0])

    def test_no_waiting_car(self):
        self.street.enter(1)
        self.assertIsNone(self.street.first_waiting())


if __name__ == "__main__":
    unittest.main()
