import json
import logging
import os
from functools import reduce
from pathlib import Path
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from smart_reliability.interface import AfrTable
from smart_reliability.interface import ReferenceTables

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "backblaze-2014"
PROFILES_PATH = Path(__file__).parent / "profiles"


def load_reference_tables(tables: Dict) -> ReferenceTables:
    return ReferenceTables(**tables)


def merge_reference_tables(
    existing: ReferenceTables, override: ReferenceTables
) -> ReferenceTables:
    """Merge two sets of AFR tables

    Each attribute may only be described by one file, so unlike a profile
    selection this does not override: two sets containing the same attribute
    raise an exception
    """
    duplicates = existing.tables.keys() & override.tables.keys()
    if duplicates:
        raise ValueError(
            f"Duplicate AFR tables for attributes {sorted(duplicates)}! "
            "Only one file should contain an attribute"
        )

    merged: Dict[int, AfrTable] = dict(existing.tables)
    merged.update(override.tables)
    names = [n for n in (existing.name, override.name) if n]
    sources = [s for s in (existing.source, override.source) if s]
    return ReferenceTables(
        name="+".join(names), source=" ".join(sources), tables=merged
    )


def load_tables_from_disk(
    table_paths: Union[List[Path], Optional[str]] = None,
) -> ReferenceTables:
    if table_paths is None:
        table_paths = os.environ.get("AFR_TABLES_PATH")
    if isinstance(table_paths, str):
        table_paths = [Path(p) for p in table_paths.split(os.pathsep) if p]
    if table_paths is None:
        table_paths = []

    table_sets = [ReferenceTables()]
    for path in table_paths:
        logger.debug("Loading AFR tables from: %s", path)
        with open(path, encoding="utf-8") as fd:
            table_sets.append(load_reference_tables(json.load(fd)))

    return reduce(merge_reference_tables, table_sets)


def profile_paths() -> Dict[str, Path]:
    return {p.stem: p for p in sorted(PROFILES_PATH.glob("*.json"))}


def load_profile(profile: str = DEFAULT_PROFILE) -> ReferenceTables:
    paths = profile_paths()
    if profile not in paths:
        raise ValueError(
            f"Unknown AFR table profile {profile}, "
            f"choose one of {', '.join(sorted(paths))}"
        )
    return load_tables_from_disk([paths[profile]])


def default_reference_tables() -> ReferenceTables:
    """Loads the tables this process should forecast with

    AFR_TABLES_PATH (one or more JSON files separated by os.pathsep) wins
    over AFR_TABLES_PROFILE, which names one of the packaged profiles.
    """
    override = os.environ.get("AFR_TABLES_PATH")
    if override:
        logger.info("Loading AFR tables from %s", override)
        return load_tables_from_disk(override)

    profile = os.environ.get("AFR_TABLES_PROFILE", DEFAULT_PROFILE)
    logger.info("Loading AFR table profile=%s from %s", profile, PROFILES_PATH)
    return load_profile(profile)


class AfrTables:
    def __init__(self):
        self._reference: Optional[ReferenceTables] = None

    def load(self, new_reference: ReferenceTables) -> None:
        self._reference = new_reference

    def reset(self) -> None:
        self._reference = None

    @property
    def reference(self) -> ReferenceTables:
        if self._reference is None:
            self._reference = default_reference_tables()
        return self._reference

    @property
    def attributes(self) -> List[int]:
        return self.reference.attributes

    def table(self, attribute: int) -> AfrTable:
        if attribute not in self.reference.tables:
            raise KeyError(f"No AFR table for SMART attribute {attribute}")
        return self.reference.tables[attribute]


tables: AfrTables = AfrTables()
