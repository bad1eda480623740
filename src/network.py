"""
network.py

This module provides the Network class, an extension of `networkx.MultiDiGraph`,
designed to represent the road network of a scheduling problem. Intersections are
nodes identified by integer ids, streets are directed edges keyed by their unique
name.

Next to the graph structure the Network owns two arenas that the simulation
mutates: the list of `Street` objects (addressed by a stable integer index) and
the mapping of intersection ids to `Intersection` objects. Every relationship
(car path, incoming and outgoing streets) is stored as a list of street indices.

Classes:
    - Network: Represents the road network as a directed multigraph.
    - Street: A directed, timed edge owning the queue of cars driving on it.
    - Intersection: A junction with ordered incoming and outgoing streets.
    - MalformedNetwork: Raised when the network or a path refers to something
                        that does not exist, or defines something twice.

Dependencies:
    - collections.deque: FIFO queue of cars on a street.
    - networkx: Core graph library.
"""

from collections import deque
from dataclasses import dataclass, field

import networkx as nx


@dataclass
class Street:
    """A directed street between two intersections.

    Attributes:
        index (int): Position of the street in the network's street arena.
        name (str): Unique name of the street.
        start (int): Id of the intersection the street leaves from.
        end (int): Id of the intersection the street leads to.
        time_to_travel (int): Seconds a car needs to drive the whole street.
        cars (deque): FIFO queue of `[car_id, countdown]` entries. The countdown is
                      the number of seconds left before the car reaches the end of
                      the street; 0 means the car waits at the light.
    """

    index: int
    name: str
    start: int
    end: int
    time_to_travel: int
    cars: deque = field(default_factory=deque)

    def enter(self, car_id: int, countdown: int | None = None) -> None:
        """Appends a car to the end of the queue.

        Args:
            car_id (int): Id of the entering car.
            countdown (int | None, optional): Seconds left before the car reaches
                the end of the street. Defaults to `time_to_travel`.
        """
        if countdown is None:
            countdown = self.time_to_travel
        if not 0 <= countdown <= self.time_to_travel:
            raise ValueError(
                f"Countdown {countdown} outside of [0, {self.time_to_travel}] on street {self.name}"
            )
        self.cars.append([car_id, countdown])

    def first_waiting(self) -> list | None:
        """Returns the first queue entry (in FIFO order) whose countdown is 0."""
        for entry in self.cars:
            if entry[1] == 0:
                return entry
        return None

    def leave(self, entry: list) -> None:
        self.cars.remove(entry)

    def advance(self, skip: set | frozenset = frozenset()) -> None:
        """Moves every driving car one second closer to the end of the street.

        Args:
            skip (set): Ids of cars that must not be advanced this second, i.e. the
                        cars that just turned into this street.
        """
        for entry in self.cars:
            if entry[1] > 0 and entry[0] not in skip:
                entry[1] -= 1

    def num_waiting(self) -> int:
        return sum(1 for _, countdown in self.cars if countdown == 0)


@dataclass
class Intersection:
    """A junction of the network.

    Attributes:
        id (int): Unique id of the intersection.
        incoming (list[int]): Indices of the streets ending here, in input order.
        outgoing (list[int]): Indices of the streets starting here, in input order.
    """

    id: int
    incoming: list = field(default_factory=list)
    outgoing: list = field(default_factory=list)


class Network(nx.MultiDiGraph):
    """Represents the road network as a directed multigraph.

    Nodes are intersection ids, edges are streets keyed by their name. Each edge
    carries the street's arena `index` and its `time_to_travel` as attributes.

    Attributes:
        streets (list[Street]): Street arena, addressed by `Street.index`.
        street_index (dict[str, int]): Maps street names to arena indices.
        intersections (dict[int, Intersection]): Maps ids to intersections.

    Methods:
        add_intersection(self, intersection_id: int) -> Intersection:
            Adds a single intersection.
        add_intersections(self, intersection_ids) -> None:
            Adds several intersections.
        add_street(self, start, end, name, time_to_travel) -> Street:
            Adds a directed street between two existing intersections.
        get_street(self, name: str) -> Street:
            Looks up a street by name.
        incoming_streets(self, intersection_id: int) -> list[Street]:
            Streets ending at an intersection.
        outgoing_streets(self, intersection_id: int) -> list[Street]:
            Streets starting at an intersection.
        resolve_path(self, names) -> tuple[int, ...]:
            Validates a route and converts it into street indices.
        clear_cars(self) -> None:
            Empties every street's queue.
        advance_cars(self, skip) -> None:
            Runs the countdown of all driving cars.
    """

    def __init__(self):
        super().__init__()
        self.streets: list[Street] = []
        self.street_index: dict[str, int] = {}
        self.intersections: dict[int, Intersection] = {}

    def add_intersection(self, intersection_id: int) -> Intersection:
        """Adds an intersection node.

        Args:
            intersection_id (int): Unique id of the intersection.

        Returns:
            Intersection: The new intersection.

        Raises:
            MalformedNetwork: If an intersection with this id already exists.
        """
        if intersection_id in self.intersections:
            raise MalformedNetwork(f"Duplicate intersection id {intersection_id}")
        intersection = Intersection(id=intersection_id)
        self.intersections[intersection_id] = intersection
        super().add_node(intersection_id, type="intersection")
        return intersection

    def add_intersections(self, intersection_ids) -> None:
        for intersection_id in intersection_ids:
            self.add_intersection(intersection_id)

    def add_street(
        self, start: int, end: int, name: str, time_to_travel: int
    ) -> Street:
        """Adds a directed street from `start` to `end`.

        Args:
            start (int): Id of the intersection the street leaves from.
            end (int): Id of the intersection the street leads to.
            name (str): Unique street name.
            time_to_travel (int): Positive travel time in seconds.

        Returns:
            Street: The new street.

        Raises:
            MalformedNetwork: If the name is taken, an intersection does not exist,
                              or the travel time is not positive.
        """
        if name in self.street_index:
            raise MalformedNetwork(f"Duplicate street name {name}")
        for intersection_id in (start, end):
            if intersection_id not in self.intersections:
                raise MalformedNetwork(
                    f"Street {name} refers to unknown intersection {intersection_id}"
                )
        if time_to_travel < 1:
            raise MalformedNetwork(
                f"Street {name} has a non-positive travel time ({time_to_travel})"
            )

        street = Street(
            index=len(self.streets),
            name=name,
            start=start,
            end=end,
            time_to_travel=time_to_travel,
        )
        self.streets.append(street)
        self.street_index[name] = street.index
        self.intersections[start].outgoing.append(street.index)
        self.intersections[end].incoming.append(street.index)
        super().add_edge(
            start, end, key=name, index=street.index, time_to_travel=time_to_travel
        )

        return street

    def get_street(self, name: str) -> Street:
        """Looks up a street by its name.

        Raises:
            MalformedNetwork: If no street has this name.
        """
        try:
            return self.streets[self.street_index[name]]
        except KeyError:
            raise MalformedNetwork(f"Unknown street {name}") from None

    def get_intersection(self, intersection_id: int) -> Intersection:
        try:
            return self.intersections[intersection_id]
        except KeyError:
            raise MalformedNetwork(
                f"Unknown intersection {intersection_id}"
            ) from None

    def incoming_streets(self, intersection_id: int) -> list[Street]:
        return [
            self.streets[index]
            for index in self.get_intersection(intersection_id).incoming
        ]

    def outgoing_streets(self, intersection_id: int) -> list[Street]:
        return [
            self.streets[index]
            for index in self.get_intersection(intersection_id).outgoing
        ]

    def resolve_path(self, names) -> tuple[int, ...]:
        """Validates a route and converts it into street indices.

        Every street must exist, and each street must start at the intersection
        where the previous one ends.

        Args:
            names (Iterable[str]): Street names in traversal order.

        Returns:
            tuple[int, ...]: The street indices of the route.

        Raises:
            MalformedNetwork: If a street does not exist or the route is broken.
        """
        path = tuple(self.get_street(name).index for name in names)
        for previous, following in zip(path, path[1:]):
            previous_street = self.streets[previous]
            following_street = self.streets[following]
            if previous_street.end != following_street.start:
                raise MalformedNetwork(
                    f"Street {following_street.name} does not start where "
                    f"{previous_street.name} ends (intersection {previous_street.end})"
                )
        return path

    def clear_cars(self) -> None:
        for street in self.streets:
            street.cars.clear()

    def advance_cars(self, skip: set | frozenset = frozenset()) -> None:
        """Decrements the countdown of every driving car on every street.

        Args:
            skip (set): Ids of cars that crossed an intersection this second.
        """
        for street in self.streets:
            if street.cars:
                street.advance(skip)


class MalformedNetwork(Exception):
    """Exception raised when the network is inconsistent."""

    def __init__(self, message: str):
        """Initializes MalformedNetwork exception.

        Args:
            message (str): Description of the dangling reference or duplicate.
        """
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.message}"
