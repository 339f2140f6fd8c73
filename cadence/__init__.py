"""Cadence core library: checkbox tasks across periodic notes.

Public API re-exports for convenient imports:
    from cadence import parse_tasks, aggregate, toggle_task, rollover, ...
"""

__version__ = "0.1.0"

# Errors
from cadence.errors import (
    CadenceError,
    ConfigError,
    ConfigNotFoundError,
    LineOutOfRangeError,
    NotATaskError,
    VaultNotFoundError,
)

# Models
from cadence.models import (
    KEEP,
    REMOVE,
    AggregatedTasks,
    Keep,
    MetadataUpdates,
    NewTask,
    Remove,
    RolloverResult,
    Set,
    SkippedTask,
    Task,
    TaskMetadata,
    TaskWithSource,
    TasksConfig,
    VaultConfig,
)

# File I/O
from cadence.fileio import LocalFileSystem, read_text, write_text_atomic, write_yaml_atomic

# Configuration
from cadence.config import (
    ConfigCache,
    default_config,
    load_config,
    write_default_config,
)

# Workspace & paths
from cadence.workspace import note_path, period_dates, period_start, today, vault_root

# Parsing
from cadence.checkbox import parse_task_line, parse_tasks

# Aggregation
from cadence.aggregator import aggregate, group_by_source, is_overdue, is_stale, sort_tasks

# Mutation
from cadence.modifier import add_task, apply_updates, toggle_task, update_metadata

# Rollover
from cadence.rollover import preview_rollover, rollover
