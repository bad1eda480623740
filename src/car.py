"""
car.py

This module defines the `CarAgent` class, representing vehicles that follow a
fixed route through the road network of a `Problem`. It also includes the
`AgentArrived` exception, raised when a car leaves the last street of its route,
and the `InconsistentPathState` exception for moves that contradict the route.

A car never decides anything by itself: the `LightAgent` of the intersection at
the end of the car's current street lets it cross, and the car then reports the
next street of its route (or that it arrived).

Classes:
    - CarAgent: Represents a car with a fixed route.
    - AgentArrived: Custom exception raised when a `CarAgent` reaches its destination.
    - InconsistentPathState: Custom exception raised when a car is moved off a
                             street that is not its current position.

Dependencies:
    - mesa: Core agent-based modeling framework (`mesa.Agent`, `mesa.Model`).
"""

import mesa


class CarAgent(mesa.Agent):
    """Represents a car driving a fixed route through the network.

    The route is assigned once at creation and never changes. While driving, the
    car itself only tracks where on its route it is; the remaining seconds on the
    current street are kept by the street's queue.

    Inherits from `mesa.Agent`.

    Attributes:
        car_id (int): Id of the car, 0-based in input order.
        path_to_take (tuple[int, ...]): Street indices of the route, in order.
        path_position (int): Index in `path_to_take` of the street the car is on.
        destination_reached_at (int | None): Second at which the car left the last
                                             street of its route, None while driving.

    Methods:
        move(self, time: int, street: int) -> int:
            Crosses the intersection at the end of `street`.
        reset(self) -> None:
            Puts the car back to the start of its route.
    """

    def __init__(self, model: mesa.Model, car_id: int, path_to_take: tuple):
        """Initializes a new CarAgent instance.

        Args:
            model (mesa.Model): The `Problem` instance the agent belongs to.
            car_id (int): Id of the car.
            path_to_take (tuple[int, ...]): Street indices of the route.
        """
        super().__init__(model)
        self.car_id = car_id
        self.path_to_take = tuple(path_to_take)
        self.path_position = 0
        self.destination_reached_at = None

    @property
    def arrived(self) -> bool:
        return self.destination_reached_at is not None

    @property
    def current_street(self) -> int | None:
        """Index of the street the car is on, None once the route is done."""
        if self.arrived or self.path_position >= len(self.path_to_take):
            return None
        return self.path_to_take[self.path_position]

    def move(self, time: int, street: int) -> int:
        """Crosses the intersection at the end of `street`.

        Args:
            time (int): Current second of the simulation.
            street (int): Index of the street the car is leaving.

        Returns:
            int: Index of the next street of the route.

        Raises:
            AgentArrived: If `street` was the last street of the route. The
                          arrival time is recorded before raising.
            InconsistentPathState: If the car already arrived, or `street` is not
                                   the street at the car's position on its route.
        """
        if self.arrived:
            raise InconsistentPathState(
                f"Car {self.car_id} already arrived at {self.destination_reached_at}"
            )
        if self.current_street != street:
            raise InconsistentPathState(
                f"Car {self.car_id} is not on street {street} "
                f"(path position {self.path_position} of {len(self.path_to_take)})"
            )

        self.path_position += 1
        if self.path_position == len(self.path_to_take):
            self.destination_reached_at = time
            raise AgentArrived(message=f"Car {self.car_id} arrived at {time}")

        return self.path_to_take[self.path_position]

    def reset(self) -> None:
        self.path_position = 0
        self.destination_reached_at = None


class AgentArrived(Exception):
    """Exception raised when a car has reached its destination."""

    def __init__(self, message: str):
        """Initializes AgentArrived exception.

        Args:
            message (str): The message to be displayed when the exception is raised.
        """
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.message}"


class InconsistentPathState(Exception):
    """Exception raised when a car is moved in a way its route does not allow."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.message}"
