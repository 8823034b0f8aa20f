"""
Engine configuration
Values come from explicit arguments first, then LOCALMR_* environment
variables, then defaults
"""

import os
from dataclasses import dataclass

from localmr.errors import ConfigurationError
from localmr.shuffle import PARTITION_POLICIES

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass
class EngineConfig:
    """Settings for one MapReduce engine"""
    mappers_count: int = 4
    reducers_count: int = 2
    partition_policy: str = 'rollover'
    use_combiner: bool = True

    @classmethod
    def from_env(cls, **overrides) -> 'EngineConfig':
        """Build a config from LOCALMR_* variables; non-None overrides win"""
        values = {}
        if 'LOCALMR_NUM_MAP' in os.environ:
            values['mappers_count'] = _parse_int('LOCALMR_NUM_MAP')
        if 'LOCALMR_NUM_REDUCE' in os.environ:
            values['reducers_count'] = _parse_int('LOCALMR_NUM_REDUCE')
        if 'LOCALMR_PARTITION_POLICY' in os.environ:
            values['partition_policy'] = os.environ['LOCALMR_PARTITION_POLICY']
        if 'LOCALMR_USE_COMBINER' in os.environ:
            values['use_combiner'] = _parse_bool('LOCALMR_USE_COMBINER')

        values.update({name: value for name, value in overrides.items() if value is not None})
        config = cls(**values)
        config.validate()
        return config

    def validate(self):
        if self.mappers_count < 1:
            raise ConfigurationError(f"mappers_count must be positive, got {self.mappers_count}")
        if self.reducers_count < 1:
            raise ConfigurationError(f"reducers_count must be positive, got {self.reducers_count}")
        if self.partition_policy not in PARTITION_POLICIES:
            raise ConfigurationError(
                f"partition_policy must be one of {PARTITION_POLICIES}, got {self.partition_policy!r}")


def _parse_int(name: str) -> int:
    try:
        return int(os.environ[name])
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {os.environ[name]!r}")


def _parse_bool(name: str) -> bool:
    value = os.environ[name].strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {os.environ[name]!r}")
