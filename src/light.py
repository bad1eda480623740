"""
light.py

This module defines the `LightAgent` class, representing the traffic light of an
intersection within a `Problem` simulation. It also includes the `Schedule` that
assigns a repeating green-light cycle to every intersection, the `Cycle` lookup
used by the lights, the optimization strategies that build a schedule
(`Optimizer`, `UniformOptimizer`, `DemandOptimizer`) and a custom exception
(`InvalidSchedule`).

`LightAgent` lets cars cross its intersection: at every second exactly one entry
of its cycle is green, and at most one waiting car of the green street crosses.

Classes:
    - LightAgent: Represents the traffic light of an intersection.
    - Cycle: Maps a second of the simulation to the green street of a cycle.
    - Schedule: Dataclass holding the cycles of all intersections.
    - InvalidSchedule: Custom exception for schedules that do not fit the network.
    - Optimizer (ABC): Abstract base class for schedule building strategies.
    - UniformOptimizer: Every used street is green for one second.
    - DemandOptimizer: Green durations proportional to the number of cars.

Functions:
    - street_demand: Counts how many cars use each street.
    - build_schedule: Builds a schedule for a problem.

Dependencies:
    - abc: For defining abstract base classes.
    - collections.Counter: For counting street usage.
    - dataclasses: For creating data classes.
    - mesa: Core agent-based modeling framework.
    - numpy: Prefix sums for the cycle lookup, demand based durations.
    - car: `AgentArrived` is raised by cars leaving their last street.
    - network: `Network` and `Intersection` are referenced when validating.
"""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field

import mesa
import numpy as np

from car import AgentArrived
from network import Intersection, Network


class LightAgent(mesa.Agent):
    """Represents the traffic light of one intersection.

    Inherits from `mesa.Agent`.

    Attributes:
        position (int): Id of the intersection the light is located at.
        cycle (Cycle): The green-light cycle of the intersection. An empty cycle
                       means no street is ever green.
        open_lane (str | None): Name of the street that was green during the last
                                step, None if no street was green.
        passed_cars (int): Number of cars that crossed the intersection so far.

    ## Methods:
        **step(self, time: int) -> None**:
            Lets the first waiting car of the green street cross.
    """

    def __init__(self, model: mesa.Model, position: int, cycle: "Cycle"):
        """Initializes a LightAgent instance.

        Args:
            model (mesa.Model): The `Problem` instance the agent belongs to.
            position (int): Id of the intersection.
            cycle (Cycle): The green-light cycle to follow.
        """
        super().__init__(model)
        self.position = position
        self.cycle = cycle
        self.open_lane = None
        self.passed_cars = 0

    def step(self, time: int) -> None:
        """Executes the crossing pass of this intersection for one second.

        Looks up the green street for `time`. The first car (in arrival order)
        waiting at the end of that street crosses: it is removed from the street
        and either turns into the next street of its route, with a full countdown,
        or leaves the network. Cars on red streets and further waiting cars stay
        where they are.

        Args:
            time (int): The current second of the simulation.
        """
        self.open_lane = self.cycle.green_street(time)
        if self.open_lane is None:
            return

        street = self.model.grid.get_street(self.open_lane)
        entry = street.first_waiting()
        if entry is None:
            return

        car = self.model.get_car(entry[0])
        street.leave(entry)
        self.passed_cars += 1
        try:
            next_street = car.move(time=time, street=street.index)
        except AgentArrived:
            self.model.arrivals.update_data(car=car, problem=self.model)
            return

        self.model.grid.streets[next_street].enter(car.car_id)
        self.model.crossed.add(car.car_id)


class Cycle:
    """Maps a second of the simulation to the green street of a cycle.

    The cycle repeats indefinitely. The prefix sums of the green durations are
    computed once, so a lookup is a modulo followed by a binary search.

    Attributes:
        entries (list[tuple[str, int]]): `(street_name, green_duration)` pairs.
        length (int): Total duration of one cycle in seconds.
    """

    def __init__(self, entries: list):
        self.entries = list(entries)
        self.streets = [name for name, _ in self.entries]
        self.ends = np.cumsum(
            np.array([duration for _, duration in self.entries], dtype=np.int64)
        )
        self.length = int(self.ends[-1]) if self.entries else 0

    def green_street(self, time: int) -> str | None:
        """Returns the name of the street that is green at `time`.

        Returns:
            str | None: The green street, or None for an empty cycle.
        """
        if not self.length:
            return None
        index = np.searchsorted(self.ends, time % self.length, side="right")
        return self.streets[int(index)]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class Schedule:
    """Holds the green-light cycle of every scheduled intersection.

    Attributes:
        traffic_lights (dict[int, list[tuple[str, int]]]): Maps intersection ids to
            their cycle of `(street_name, green_duration)` pairs.
    """

    traffic_lights: dict = field(default_factory=dict)

    def add(self, intersection_id: int, entries: list) -> None:
        self.traffic_lights[intersection_id] = list(entries)

    def cycle(self, intersection_id: int) -> Cycle:
        """Returns the cycle of an intersection (empty if it has none)."""
        return Cycle(self.traffic_lights.get(intersection_id, []))

    def scheduled_intersections(self) -> list[int]:
        """Ids of the intersections with a non-empty cycle, in ascending order."""
        return sorted(
            intersection_id
            for intersection_id, entries in self.traffic_lights.items()
            if entries
        )

    def validate(self, grid: Network) -> None:
        """Checks that the schedule fits the network.

        Args:
            grid (Network): The network the schedule is meant for.

        Raises:
            InvalidSchedule: If an intersection does not exist, a street is not an
                             incoming street of its intersection, a street appears
                             twice in a cycle, or a duration is below one second.
        """
        for intersection_id, entries in self.traffic_lights.items():
            if intersection_id not in grid.intersections:
                raise InvalidSchedule(f"Unknown intersection {intersection_id}")
            incoming = {
                street.name for street in grid.incoming_streets(intersection_id)
            }
            seen = set()
            for name, duration in entries:
                if name not in incoming:
                    raise InvalidSchedule(
                        f"Street {name} does not end at intersection {intersection_id}"
                    )
                if name in seen:
                    raise InvalidSchedule(
                        f"Street {name} appears twice in the cycle of intersection {intersection_id}"
                    )
                if duration < 1:
                    raise InvalidSchedule(
                        f"Street {name} has a green duration of {duration} at intersection {intersection_id}"
                    )
                seen.add(name)

    def __len__(self) -> int:
        return len(self.scheduled_intersections())


class InvalidSchedule(Exception):
    """Exception raised when a schedule does not fit the network."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.message}"


def street_demand(problem: mesa.Model) -> Counter:
    """Counts, per street name, how many cars use the street.

    Every car's full route is scanned once; a car driving a street twice counts
    twice.

    Args:
        problem (Problem): The problem whose cars are counted.

    Returns:
        Counter: Street names mapped to the number of cars using them.
    """
    demand = Counter()
    for car in problem.cars.values():
        for street in car.path_to_take:
            demand[problem.grid.streets[street].name] += 1
    return demand


class Optimizer(ABC):
    """Abstract base class for schedule building strategies.

    Subclasses decide the cycle of an intersection with two or more incoming
    streets. Streets no car uses are dropped before the subclass is asked.

    Attributes:
        problem (Problem): The problem a schedule is built for.
        demand (Counter): Number of cars using each street.
    """

    def __init__(self, problem: mesa.Model):
        self.problem = problem
        self.demand = street_demand(problem)

    def get_used_lanes(self, intersection: Intersection) -> list[str]:
        """Names of the incoming streets used by at least one car, in input order."""
        return [
            street.name
            for street in self.problem.grid.incoming_streets(intersection.id)
            if self.demand[street.name] > 0
        ]

    @abstractmethod
    def get_cycle(self, intersection: Intersection) -> list:
        """Returns the `(street_name, green_duration)` cycle of an intersection."""
        pass


class UniformOptimizer(Optimizer):
    """Every used incoming street is green for one second, in input order."""

    def get_cycle(self, intersection: Intersection) -> list:
        return [(lane, 1) for lane in self.get_used_lanes(intersection)]


class DemandOptimizer(Optimizer):
    """Gives busier streets longer green phases.

    The green duration of a street is its number of cars divided by the number of
    cars on the least used street of the intersection, rounded and clipped to
    `[1, max_green]`.

    Attributes:
        max_green (int): Upper bound for a single green phase in seconds.
    """

    def __init__(self, problem: mesa.Model, max_green: int = 5):
        super().__init__(problem)
        if max_green < 1:
            raise ValueError("max_green must be at least 1")
        self.max_green = max_green

    def get_cycle(self, intersection: Intersection) -> list:
        lanes = self.get_used_lanes(intersection)
        if not lanes:
            return []
        counts = np.array([self.demand[lane] for lane in lanes], dtype=np.float64)
        durations = np.clip(np.rint(counts / counts.min()), 1, self.max_green)
        return [(lane, int(duration)) for lane, duration in zip(lanes, durations)]


OPTIMIZERS = {"uniform": UniformOptimizer, "demand": DemandOptimizer}


def build_schedule(problem: mesa.Model, optimization_type: str = "uniform") -> Schedule:
    """Builds a green-light schedule for every intersection of a problem.

    - An intersection with a single incoming street gets that street green for
      the whole cycle.
    - An intersection with several incoming streets gets the cycle chosen by the
      optimizer; streets no car uses are left out. If no street is left, the
      intersection gets no entry.
    - An intersection without incoming streets gets no entry.

    Args:
        problem (Problem): The problem to schedule.
        optimization_type (str, optional): One of 'uniform' or 'demand'.
                                           Defaults to "uniform".

    Returns:
        Schedule: The schedule.

    Raises:
        ValueError: If `optimization_type` is not supported.
    """
    if optimization_type not in OPTIMIZERS:
        raise ValueError(
            f"Optimization type '{optimization_type}' not supported. Supported optimizations are: {', '.join(OPTIMIZERS)}."
        )
    optimizer = OPTIMIZERS[optimization_type](problem)

    schedule = Schedule()
    for intersection in problem.grid.intersections.values():
        if len(intersection.incoming) == 0:
            continue
        if len(intersection.incoming) == 1:
            lane = problem.grid.streets[intersection.incoming[0]].name
            schedule.add(intersection.id, [(lane, 1)])
            continue
        cycle = optimizer.get_cycle(intersection)
        if cycle:
            schedule.add(intersection.id, cycle)

    return schedule
