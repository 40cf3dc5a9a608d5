from unitwatch.system.constants import SettingsKeys, UnitwatchPaths
from unitwatch.system.kv_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)

__all__ = [
    'InMemoryKeyValueStore',
    'JsonFileKeyValueStore',
    'KeyValueStore',
    'SettingsKeys',
    'UnitwatchPaths',
]
