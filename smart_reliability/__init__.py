from smart_reliability.afr import annual_failure_probability
from smart_reliability.afr import array_afr
from smart_reliability.afr import disk_afr
from smart_reliability.afr import estimate_afr
from smart_reliability.raid import data_loss_probability
from smart_reliability.report import build_report

__all__ = [
    "annual_failure_probability",
    "array_afr",
    "disk_afr",
    "estimate_afr",
    "data_loss_probability",
    "build_report",
]
