"""
model.py

This module defines the `Problem` class, the core Mesa model of a traffic-light
scheduling problem. It owns the road network (`Network`), the cars (`CarAgent`)
and, while a schedule is simulated, one `LightAgent` per intersection.

The module also includes the functions running a schedule (`simulate`) and
scoring the outcome (`score`), and two dataclasses inheriting from `SimData`
that record what happens during a simulation: the arrivals of cars and the
number of driving, waiting and arrived cars per second.

Classes:
    - Problem: The Mesa model of a scheduling problem.
    - Arrivals: Dataclass recording the arrival time and points of each car.
    - TrafficCounts: Dataclass tracking car counts over time.

Functions:
    - simulate: Runs a schedule over the whole horizon of a problem.
    - score: Computes the score of a simulated problem.

Dependencies:
    - logging: Reports the outcome of a simulation.
    - dataclasses: For creating data storage classes.
    - mesa: Core agent-based modeling framework.
    - polars: Column types of the storage classes.
    - tqdm: Optional progress bar while simulating.
    - car.CarAgent: Represents vehicles in the simulation.
    - network.Network: Represents the road network.
    - light.LightAgent, light.Schedule: Traffic lights and their cycles.
    - data.SimData: Abstract base class for data storage classes.
"""

import logging
from dataclasses import dataclass, field

import mesa
import polars as pl
from tqdm import tqdm

from car import CarAgent
from data import SimData
from light import LightAgent, Schedule
from network import MalformedNetwork, Network, Street

logger = logging.getLogger(__name__)


class Problem(mesa.Model):
    """A Mesa model of a traffic-light scheduling problem.

    The problem is the aggregate root of one run: it owns the network, the cars
    and the lights, and nothing outlives it. Cars are placed at the end of the
    first street of their route as soon as they are added, waiting to cross.

    Attributes:
        amount_of_seconds (int): The simulation horizon in seconds.
        bonus_points (int): Points awarded for every car reaching its destination.
        grid (Network): The road network.
        cars (dict[int, CarAgent]): Cars by id, in the order they were added.
        current_second (int): The second the next call to `step()` simulates.
        crossed (set[int]): Ids of the cars that crossed an intersection during
                            the current second.
        arrivals (Arrivals): Arrival times of the cars that reached their destination.
        traffic_counts (TrafficCounts): Car counts after every simulated second.

    Methods:
        step():
            Advances the simulation by one second.
        add_intersection(intersection_id), add_intersections(intersection_ids):
            Add intersections to the network.
        add_street(start, end, name, time_to_travel):
            Adds a street to the network.
        add_car(path, car_id):
            Adds a car and places it on its first street.
        install_schedule(schedule):
            Replaces the lights of all intersections.
        reset():
            Restores the state before the first second.
        count_cars():
            Counts driving, waiting and arrived cars.
    """

    def __init__(self, amount_of_seconds: int, bonus_points: int, seed: int = 42):
        """Initializes an empty problem.

        Args:
            amount_of_seconds (int): The simulation horizon in seconds.
            bonus_points (int): Points for every car reaching its destination.
            seed (int, optional): Seed for Mesa's random number generator. The
                                  simulation itself is deterministic. Defaults to 42.

        Raises:
            ValueError: If the horizon or the bonus is negative.
        """
        super().__init__(seed=seed)

        if amount_of_seconds < 0:
            raise ValueError(f"Horizon must not be negative, got {amount_of_seconds}")
        if bonus_points < 0:
            raise ValueError(f"Bonus points must not be negative, got {bonus_points}")

        self.amount_of_seconds = amount_of_seconds
        self.bonus_points = bonus_points
        self.grid = Network()
        self.cars: dict[int, CarAgent] = {}
        self.current_second = 0
        self.crossed = set()
        self.arrivals = Arrivals()
        self.traffic_counts = TrafficCounts()

    def step(self) -> None:
        """Advances the simulation by one second.

        Executes the following actions in order:
        1. Every `LightAgent` lets at most one waiting car of its green street cross.
        2. Every car still driving on a street, except the cars that just crossed,
           gets one second closer to the end of its street.
        3. Records the car counts using `traffic_counts.update_data()`.
        Increments `current_second`.

        Raises:
            ValueError: If the horizon has already been simulated.
        """
        if self.current_second >= self.amount_of_seconds:
            raise ValueError(
                f"Horizon of {self.amount_of_seconds} seconds already simulated"
            )

        self.crossed = set()
        lights = self.agents_by_type.get(LightAgent)
        if lights:
            lights.do(LightAgent.step, time=self.current_second)

        self.grid.advance_cars(skip=self.crossed)

        self.traffic_counts.update_data(self.current_second, *self.count_cars())
        self.current_second += 1

    @property
    def streets(self) -> list[Street]:
        return self.grid.streets

    @property
    def intersections(self) -> dict:
        return self.grid.intersections

    def add_intersection(self, intersection_id: int) -> None:
        self.grid.add_intersection(intersection_id)

    def add_intersections(self, intersection_ids) -> None:
        self.grid.add_intersections(intersection_ids)

    def add_street(
        self, start: int, end: int, name: str, time_to_travel: int
    ) -> Street:
        return self.grid.add_street(start, end, name, time_to_travel)

    def add_car(self, path: list, car_id: int | None = None) -> CarAgent:
        """Adds a car and places it at the end of the first street of its route.

        Args:
            path (list[str]): Street names of the route, in order.
            car_id (int | None, optional): Id of the car. Defaults to the number of
                                           cars added before.

        Returns:
            CarAgent: The new car.

        Raises:
            MalformedNetwork: If the id is taken, or the route refers to an unknown
                              street or is not connected.
        """
        if car_id is None:
            car_id = len(self.cars)
        if car_id in self.cars:
            raise MalformedNetwork(f"Duplicate car id {car_id}")

        car = CarAgent(self, car_id=car_id, path_to_take=self.grid.resolve_path(path))
        self.cars[car_id] = car
        self.place_car(car)

        return car

    def place_car(self, car: CarAgent) -> None:
        """Puts a car at the start of its route.

        A car with a route is waiting at the end of its first street. A car without
        a route has nowhere to go and arrives at second 0.
        """
        if car.path_to_take:
            self.grid.streets[car.path_to_take[0]].enter(car.car_id, countdown=0)
        elif self.amount_of_seconds > 0:
            car.destination_reached_at = 0
            self.arrivals.update_data(car=car, problem=self)

    def get_car(self, car_id: int) -> CarAgent:
        try:
            return self.cars[car_id]
        except KeyError:
            raise MalformedNetwork(f"Unknown car {car_id}") from None

    def install_schedule(self, schedule: Schedule) -> None:
        """Replaces the lights of all intersections with the given schedule.

        Every intersection with at least one incoming street gets a `LightAgent`.
        An intersection without an entry in the schedule gets an empty cycle and
        never turns green.

        Args:
            schedule (Schedule): The schedule to follow.

        Raises:
            InvalidSchedule: If the schedule does not fit the network.
        """
        schedule.validate(self.grid)

        for light in list(self.agents_by_type.get(LightAgent, [])):
            light.remove()

        for intersection in self.grid.intersections.values():
            if intersection.incoming:
                LightAgent(
                    self,
                    position=intersection.id,
                    cycle=schedule.cycle(intersection.id),
                )

    def reset(self) -> None:
        """Restores the state before the first second: empty data, cars at the start."""
        self.grid.clear_cars()
        self.current_second = 0
        self.crossed = set()
        self.arrivals = Arrivals()
        self.traffic_counts = TrafficCounts()
        for car in self.cars.values():
            car.reset()
            self.place_car(car)

    def count_cars(self) -> tuple[int, int, int]:
        """Counts the cars by state.

        Returns:
            tuple[int, int, int]: Cars driving on a street, cars waiting at the end
                                  of a street, and cars that reached their destination.
        """
        driving = 0
        waiting = 0
        for street in self.grid.streets:
            for _, countdown in street.cars:
                if countdown == 0:
                    waiting += 1
                else:
                    driving += 1
        return driving, waiting, len(self.arrivals)


def simulate(problem: Problem, schedule: Schedule, progress: bool = False) -> Problem:
    """Runs a schedule over the whole horizon of a problem.

    The problem is reset first, so simulating the same schedule twice gives the
    same result. Arrival times and street occupancy are updated in place.

    Args:
        problem (Problem): The problem to simulate.
        schedule (Schedule): The schedule to follow.
        progress (bool, optional): Show a progress bar. Defaults to False.

    Returns:
        Problem: The simulated problem.
    """
    problem.reset()
    problem.install_schedule(schedule)

    for _ in tqdm(
        range(problem.amount_of_seconds),
        desc="Running simulation",
        unit="step",
        disable=not progress,
    ):
        problem.step()

    logger.info(
        "Simulated %d seconds: %d of %d cars arrived",
        problem.amount_of_seconds,
        len(problem.arrivals),
        len(problem.cars),
    )
    return problem


def score(problem: Problem) -> int:
    """Computes the score of a simulated problem.

    Every car that reached its destination at second `t` scores
    `bonus_points + (amount_of_seconds - t)`; other cars score nothing.

    Args:
        problem (Problem): The simulated problem.

    Returns:
        int: The total score.
    """
    return sum(
        problem.bonus_points + (problem.amount_of_seconds - car.destination_reached_at)
        for car in problem.cars.values()
        if car.destination_reached_at is not None
    )


@dataclass
class Arrivals(SimData):
    """Records when each car reached its destination and what it scored.

    Attributes:
        rows (list[tuple]): Recorded rows.
        schema (dict): Columns 'Car_ID' (Int32), 'Arrived_At' (Int32), 'Points' (Int64).
    """

    rows: list = field(default_factory=list)

    def __post_init__(self):
        self.schema = {
            "Car_ID": pl.Int32,
            "Arrived_At": pl.Int32,
            "Points": pl.Int64,
        }

    def update_data(self, car: CarAgent, problem: Problem) -> None:
        """Adds the arrival of `car`.

        Args:
            car (CarAgent): A car whose `destination_reached_at` is set.
            problem (Problem): The problem the car belongs to.
        """
        self.rows.append(
            (
                car.car_id,
                car.destination_reached_at,
                problem.bonus_points
                + problem.amount_of_seconds
                - car.destination_reached_at,
            )
        )


@dataclass
class TrafficCounts(SimData):
    """Tracks the number of cars per state after every simulated second.

    Attributes:
        rows (list[tuple]): Recorded rows.
        schema (dict): Columns 'Time' (Int32), 'Cars_Driving' (Int32),
                       'Cars_Waiting' (Int32), 'Cars_Arrived' (Int32).
    """

    rows: list = field(default_factory=list)

    def __post_init__(self):
        self.schema = {
            "Time": pl.Int32,
            "Cars_Driving": pl.Int32,
            "Cars_Waiting": pl.Int32,
            "Cars_Arrived": pl.Int32,
        }

    def update_data(self, time: int, driving: int, waiting: int, arrived: int) -> None:
        self.rows.append((time, driving, waiting, arrived))
