from __future__ import annotations

from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

# Raw SMART counters are unsigned 64 bit, all ones means "not reported"
SMART_UNASSIGNED = 2**64 - 1
DAYS_IN_YEAR = 365.0
HOURS_IN_DAY = 24
TB_IN_BYTES = 1e12
# Most parity levels a report is generated for
RAID_PARITY_MAX = 6

# SMART attribute ids used for device metadata, not for prediction
SMART_POWER_ON_HOURS = 9
SMART_AIRFLOW_TEMPERATURE = 190
SMART_TEMPERATURE = 194


class ExcludeUnsetModel(BaseModel):
    def model_dump(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump(*args, **kwargs)

    def model_dump_json(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump_json(*args, **kwargs)


def _unassigned_to_none(value: Optional[int]) -> Optional[int]:
    if value is None or value == SMART_UNASSIGNED:
        return None
    if value < 0 or value > SMART_UNASSIGNED:
        raise ValueError(f"SMART raw values are unsigned 64 bit, got {value}")
    return value


###############################################################################
#          Models (structs) for the empirical failure rate curves             #
###############################################################################


class AfrSample(ExcludeUnsetModel):
    """A single point of an empirical AFR curve

    value is the raw SMART counter and afr the Annual Failure Rate observed
    for drives reporting that counter. AFR is a rate (expected failures per
    drive-year) and can exceed 1.
    """

    value: int = Field(ge=0, lt=SMART_UNASSIGNED)
    afr: float = Field(ge=0)
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        # Tables are written compactly as [value, afr] pairs
        if isinstance(data, (list, tuple)):
            value, afr = data
            return {"value": value, "afr": afr}
        return data


class AfrTable(ExcludeUnsetModel):
    """Empirical Annual Failure Rate curve of one predictive SMART attribute

    Samples are ordered by strictly increasing raw value and always start
    with the (0, 0) anchor, the last sample being the highest value that was
    actually observed in the population study.
    """

    attribute: int = Field(ge=0)
    name: str = ""
    samples: Tuple[AfrSample, ...]
    model_config = ConfigDict(frozen=True)

    @field_validator("samples")
    @classmethod
    def _check_samples(cls, samples: Tuple[AfrSample, ...]) -> Tuple[AfrSample, ...]:
        if not samples:
            raise ValueError("AFR table needs at least the (0, 0) anchor")

        anchor = samples[0]
        if anchor.value != 0 or anchor.afr != 0:
            raise ValueError(
                f"AFR table must start with (0, 0), got ({anchor.value}, {anchor.afr})"
            )

        for lower, upper in zip(samples, samples[1:]):
            if upper.value <= lower.value:
                raise ValueError(
                    "AFR table values must be strictly increasing, "
                    f"{upper.value} follows {lower.value}"
                )
        return samples

    @property
    def max_value(self) -> int:
        return self.samples[-1].value

    @property
    def max_afr(self) -> float:
        return self.samples[-1].afr


class ReferenceTables(ExcludeUnsetModel):
    """A versioned set of AFR curves keyed by SMART attribute id"""

    name: str = ""
    source: str = ""
    tables: Dict[int, AfrTable] = {}
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_keys(self) -> ReferenceTables:
        for attribute, table in self.tables.items():
            if attribute != table.attribute:
                raise ValueError(
                    f"Table for attribute {table.attribute} is stored "
                    f"under attribute {attribute}"
                )
        return self

    @property
    def attributes(self) -> List[int]:
        # Sorted so that per-attribute sums always happen in the same order
        return sorted(self.tables)


###############################################################################
#                Models (structs) for how we describe devices                 #
###############################################################################


class DeviceSnapshot(ExcludeUnsetModel):
    """SMART telemetry of one physical device taken during a single pass

    Attributes that the device does not report are None ("unassigned").
    Identity metadata is carried through untouched for reporting.
    """

    attributes: Dict[int, Optional[int]] = {}
    serial: str = ""
    # Path of the physical device, e.g. /dev/sda
    device: str = ""
    # Name of the logical disk of the array this device backs
    name: str = ""
    size_bytes: Optional[int] = None
    error_count: Optional[int] = None
    # Spares and devices outside the array don't count towards array failures
    array_member: bool = False
    model_config = ConfigDict(frozen=True)

    @field_validator("attributes")
    @classmethod
    def _normalize_attributes(
        cls, attributes: Dict[int, Optional[int]]
    ) -> Dict[int, Optional[int]]:
        return {k: _unassigned_to_none(v) for k, v in attributes.items()}

    @field_validator("size_bytes", "error_count")
    @classmethod
    def _normalize_counter(cls, value: Optional[int]) -> Optional[int]:
        return _unassigned_to_none(value)

    def raw(self, attribute: int) -> Optional[int]:
        return self.attributes.get(attribute)

    @property
    def temperature_c(self) -> Optional[int]:
        temperature = self.raw(SMART_TEMPERATURE)
        if temperature is None:
            temperature = self.raw(SMART_AIRFLOW_TEMPERATURE)
        return temperature

    @property
    def power_on_days(self) -> Optional[int]:
        hours = self.raw(SMART_POWER_ON_HOURS)
        if hours is None:
            return None
        return hours // HOURS_IN_DAY

    @property
    def size_tb(self) -> Optional[float]:
        if self.size_bytes is None:
            return None
        return self.size_bytes / TB_IN_BYTES


###############################################################################
#              Models (structs) for how we describe the array                 #
###############################################################################


class RepairCadence(str, Enum):
    """How often the full array is scrubbed and any failed disk repaired"""

    def __str__(self):
        return str(self.value)

    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"

    @property
    def days(self) -> int:
        return _CADENCE_DAYS[self]

    @property
    def repairs_per_year(self) -> float:
        return DAYS_IN_YEAR / self.days

    @property
    def label(self) -> str:
        return _CADENCE_LABELS[self]


_CADENCE_DAYS = {
    RepairCadence.weekly: 7,
    RepairCadence.monthly: 30,
    RepairCadence.quarterly: 90,
}

_CADENCE_LABELS = {
    RepairCadence.weekly: "1 Week",
    RepairCadence.monthly: "1 Month",
    RepairCadence.quarterly: "3 Months",
}


class RaidConfiguration(ExcludeUnsetModel):
    """An n disk array tolerating `redundancy` simultaneous failures

    repair_rate is in repairs per year, so a weekly scrub is 365 / 7.
    """

    disk_count: int = Field(ge=1)
    redundancy: int = Field(ge=1)
    repair_rate: float = Field(gt=0)
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_redundancy(self) -> RaidConfiguration:
        if self.disk_count <= self.redundancy:
            raise ValueError(
                f"An array of {self.disk_count} disks cannot have "
                f"{self.redundancy} levels of redundancy"
            )
        return self

    @classmethod
    def with_cadence(
        cls, disk_count: int, redundancy: int, cadence: RepairCadence
    ) -> RaidConfiguration:
        return cls(
            disk_count=disk_count,
            redundancy=redundancy,
            repair_rate=cadence.repairs_per_year,
        )

    @property
    def mean_time_to_repair(self) -> float:
        return 1.0 / self.repair_rate


###############################################################################
#                 Models (structs) for what we compute                        #
###############################################################################


class Interval(ExcludeUnsetModel):
    low: float
    mid: float
    high: float
    # How much of the probability mass falls between low and high
    confidence: float = 1.0
    model_config = ConfigDict(frozen=True)


class DiskReliability(ExcludeUnsetModel):
    snapshot: DeviceSnapshot
    # Annual Failure Rate, summed over the predictive attributes
    afr: float = Field(ge=0)
    # Annual Failure Probability, 1 - e^-afr
    afp: float = Field(ge=0, le=1)


class DataLossEstimate(ExcludeUnsetModel):
    redundancy: int
    cadence: RepairCadence
    repair_rate: float
    # None when the array is too small for this much redundancy
    probability: Optional[float] = None


class ReliabilityReport(ExcludeUnsetModel):
    disks: List[DiskReliability] = []
    disk_count: int = 0
    array_failure_rate: float = 0
    array_failure_probability: float = 0
    expected_failures: Interval = Interval(low=0, mid=0, high=0)
    data_loss: List[DataLossEstimate] = []

    def data_loss_probability(
        self, redundancy: int, cadence: RepairCadence
    ) -> Optional[float]:
        for estimate in self.data_loss:
            if estimate.redundancy == redundancy and estimate.cadence == cadence:
                return estimate.probability
        raise KeyError(f"No estimate for redundancy={redundancy} cadence={cadence}")

    @property
    def redundancy_levels(self) -> List[int]:
        return sorted({estimate.redundancy for estimate in self.data_loss})
