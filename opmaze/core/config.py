"""
Maze Configuration
==================

Dataclass configuration for maze generation, cropping and trials.

Usage:
    from opmaze.core.config import MazeConfig

    config = MazeConfig(rows=7, cols=7, sparsity=0.3, seed="Maze")
    config = MazeConfig.from_json("settings.json")

    is_valid, errors = config.validate()
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from opmaze.core.definitions import ConfigError
from opmaze.core.node_details import NodeDetails, default_node_details

logger = logging.getLogger(__name__)

Seed = Union[int, str, None]
CropRect = Tuple[int, int, int, int]


@dataclass
class MazeConfig:
    """Configuration for one maze engine."""
    rows: int = 7
    cols: int = 7
    sparsity: float = 0.2  # Edge/node removal probability
    seed: Seed = "Maze"  # None = unseeded
    operation_node_seed: Seed = None
    fully_connected: bool = True
    crop: Optional[CropRect] = None  # (x1, y1, x2, y2), x = column axis
    maze_structure: Optional[List[List[int]]] = None  # 0 = blocked, else open
    max_attempts: int = 100
    max_operation_types: int = 8
    consumable: bool = True
    normalize_progress: bool = True
    node_details: NodeDetails = field(default_factory=default_node_details)

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the configuration.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []

        if self.rows < 1 or self.cols < 1:
            errors.append(f"Grid must be at least 1x1, got {self.rows}x{self.cols}")
        if not 0.0 <= self.sparsity <= 1.0:
            errors.append(f"Sparsity must be in [0, 1], got {self.sparsity}")
        if self.max_attempts < 1:
            errors.append(f"max_attempts must be positive, got {self.max_attempts}")
        if self.max_operation_types < 0:
            errors.append(f"max_operation_types must be >= 0, got {self.max_operation_types}")
        if self.crop is not None and len(self.crop) != 4:
            errors.append(f"Crop rectangle needs 4 integers, got {self.crop!r}")

        if self.maze_structure is not None:
            shape_ok = (
                len(self.maze_structure) == self.rows
                and all(len(row) == self.cols for row in self.maze_structure)
            )
            if not shape_ok:
                errors.append(f"maze_structure does not match {self.rows}x{self.cols}")

        if self.rows >= 1 and self.cols >= 1:
            _, node_errors = self.node_details.validate(self.rows, self.cols)
            errors.extend(node_errors)

        return len(errors) == 0, errors

    def check(self) -> 'MazeConfig':
        """Raise ConfigError if the configuration is invalid."""
        is_valid, errors = self.validate()
        if not is_valid:
            for err in errors:
                logger.error(f"Invalid config: {err}")
            raise ConfigError("; ".join(errors))
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MazeConfig':
        known = {
            'rows', 'cols', 'sparsity', 'seed', 'operation_node_seed',
            'fully_connected', 'crop', 'maze_structure', 'max_attempts',
            'max_operation_types', 'consumable', 'normalize_progress',
            'node_details',
        }
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

        kwargs = {k: v for k, v in data.items() if k in known}
        if 'node_details' in kwargs:
            kwargs['node_details'] = NodeDetails.from_dict(kwargs['node_details'])
        if kwargs.get('crop') is not None:
            kwargs['crop'] = tuple(int(v) for v in kwargs['crop'])
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'MazeConfig':
        with open(path, 'r') as f:
            data = json.load(f)
        logger.info(f"Loaded config from {path}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rows': self.rows,
            'cols': self.cols,
            'sparsity': self.sparsity,
            'seed': self.seed,
            'operation_node_seed': self.operation_node_seed,
            'fully_connected': self.fully_connected,
            'crop': list(self.crop) if self.crop is not None else None,
            'maze_structure': self.maze_structure,
            'max_attempts': self.max_attempts,
            'max_operation_types': self.max_operation_types,
            'consumable': self.consumable,
            'normalize_progress': self.normalize_progress,
            'node_details': self.node_details.to_dict(),
        }
