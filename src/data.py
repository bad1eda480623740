"""
data.py

This module defines the abstract base class `SimData` for managing and structuring
data collected during a simulation run of a `Problem`. It uses the Polars library
for the collected tables.

Subclasses inheriting from `SimData` are expected to implement methods for
initializing the data schema, updating the data during the simulation, and
retrieving the collected data as a Polars DataFrame.

Classes:
    - SimData: An abstract base class defining the interface for simulation data containers.

Dependencies:
    - abc: Used to define the abstract base class and methods.
    - dataclasses: Used for creating data classes (though `SimData` itself is abstract).
    - polars: Used for creating DataFrames from the collected rows.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import polars as pl


@dataclass
class SimData(ABC):
    """Abstract base class for simulation data containers.

    Provides a template for classes designed to store and manage data collected
    while a `Problem` is simulated. Rows are buffered as tuples and turned into a
    Polars DataFrame on request, so recording a row stays cheap even for long
    horizons.
    """

    @abstractmethod
    def __post_init__(self):
        """Initializes the internal data structure (schema and row buffer).

        This method is called automatically after the dataclass is initialized
        and should be used to set up the columns of the resulting DataFrame.
        """
        pass

    @abstractmethod
    def update_data(self) -> None:
        """Updates the stored data with new information.

        This method should be implemented by subclasses to append simulation
        data as it becomes available during the simulation steps.
        """
        pass

    def get_data(self) -> pl.DataFrame:
        """Returns the collected simulation data.

        Returns:
            pl.DataFrame: A Polars DataFrame containing the data collected
                          by the instance, typed with the instance's schema.
        """
        return pl.DataFrame(
            data=self.rows, schema=self.schema, orient="row", strict=False
        )

    def __len__(self) -> int:
        return len(self.rows)
