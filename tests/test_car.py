import os
import unittest
import sys

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
)

from car import AgentArrived, CarAgent, InconsistentPathState
from model import Problem
from log_config import setup_logging

logger = setup_logging("test_car")


class TestCarAgent(unittest.TestCase):
    """Unit tests for the CarAgent class.

    Tests the placement of a new car, moving along the route, the arrival and the
    moves a route does not allow.

    Attributes:
        problem (Problem): Problem with a line of three intersections.
        agent (CarAgent): Car driving both streets of the line.
    """

    def setUp(self):
        self.problem = Problem(amount_of_seconds=10, bonus_points=100)
        self.problem.add_intersections(range(3))
        self.problem.add_street(0, 1, "first", 2)
        self.problem.add_street(1, 2, "second", 3)
        self.agent = self.problem.add_car(["first", "second"])
        self.assertIsInstance(self.agent, CarAgent)
        logger.info(f"Agent {self.agent.car_id} initialized")
        logger.info(f"Agent path: {self.agent.path_to_take}")

    def test_placement(self):
        """A new car waits at the end of its first street."""
        logger.info("Test placement")
        try:
            first = self.problem.grid.get_street("first")
            self.assertEqual(list(first.cars), [[self.agent.car_id, 0]])
            self.assertEqual(self.agent.current_street, first.index)
            self.assertIsNone(self.agent.destination_reached_at)
            self.assertFalse(self.agent.arrived)
            logger.info("Passed test_placement")
        except AssertionError as e:
            logger.error(f"Failed test_placement: {e}")
            raise

    def test_car_ids_follow_input_order(self):
        second = self.problem.add_car(["second"])
        self.assertEqual(self.agent.car_id, 0)
        self.assertEqual(second.car_id, 1)
        self.assertIs(self.problem.get_car(1), second)

    def test_move(self):
        """Leaving a street that is not the last returns the next street."""
        logger.info("Test move")
        first = self.problem.grid.get_street("first")
        second = self.problem.grid.get_street("second")
        self.assertEqual(self.agent.move(time=0, street=first.index), second.index)
        self.assertEqual(self.agent.current_street, second.index)
        self.assertIsNone(self.agent.destination_reached_at)
        logger.info("Passed test_move")

    def test_agent_arrived_exception(self):
        """Leaving the last street records the arrival and raises AgentArrived."""
        logger.info("Test agent_arrived_exception")
        try:
            self.agent.move(time=0, street=self.agent.path_to_take[0])
            with self.assertRaises(AgentArrived):
                self.agent.move(time=4, street=self.agent.path_to_take[1])
            self.assertEqual(self.agent.destination_reached_at, 4)
            self.assertIsNone(self.agent.current_street)
            logger.info("Passed test_agent_arrived_exception")
        except AssertionError as e:
            logger.error(f"Failed test_agent_arrived_exception: {e}")
            raise

    def test_arrival_is_final(self):
        """An arrived car cannot move again and keeps its arrival time."""
        self.agent.move(time=0, street=self.agent.path_to_take[0])
        with self.assertRaises(AgentArrived):
            self.agent.move(time=4, street=self.agent.path_to_take[1])
        with self.assertRaises(InconsistentPathState):
            self.agent.move(time=5, street=self.agent.path_to_take[1])
        self.assertEqual(self.agent.destination_reached_at, 4)

    def test_wrong_street(self):
        with self.assertRaises(InconsistentPathState):
            self.agent.move(time=0, street=self.agent.path_to_take[1])

    def test_reset(self):
        self.agent.move(time=0, street=self.agent.path_to_take[0])
        self.agent.reset()
        self.assertEqual(self.agent.path_position, 0)
        self.assertIsNone(self.agent.destination_reached_at)

    def test_empty_path_arrives_immediately(self):
        """A car without a route arrives at second 0."""
        car = self.problem.add_car([])
        self.assertEqual(car.destination_reached_at, 0)
        self.assertEqual(self.problem.count_cars(), (0, 1, 1))

    def test_empty_path_without_horizon(self):
        problem = Problem(amount_of_seconds=0, bonus_points=100)
        car = problem.add_car([])
        self.assertIsNone(car.destination_reached_at)


def suite():
    suite = unittest.TestSuite()
    suite.addTest(TestCarAgent("test_placement"))
    suite.addTest(TestCarAgent("test_move"))
    suite.addTest(TestCarAgent("test_agent_arrived_exception"))
    suite.addTest(TestCarAgent("test_arrival_is_final"))
    return suite


if __name__ == "__main__":
    runner = unittest.TextTestRunner()
    runner.run(suite())
