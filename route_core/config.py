"""Option value objects for the route editing core and their INI loading."""
from __future__ import annotations

import logging
import sys
from configparser import ConfigParser, Error
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "route_core.ini"
_GRAPH_SECTION = "graph"
_BEND_SECTION = "bend"
_LOOP_SECTION = "loop"
_QUALITY_SECTION = "quality"


class SmoothingMode(Enum):
    PIECEWISE = "piecewise"
    HOLISTIC = "holistic"


@dataclass(frozen=True)
class GraphOptions:
    # Metres a lone interior point may add to the node-to-node distance
    # before it counts as a real corner.
    colinear_slack: float = 2.0


@dataclass(frozen=True)
class BendOptions:
    push_radius: float = 10.0
    pull_disc_width: float = 5.0
    spacing: float = 5.0
    use_pull_radius: bool = False
    smoothing_mode: SmoothingMode = SmoothingMode.HOLISTIC


@dataclass(frozen=True)
class LoopOptions:
    loop_tolerance: float = 1.0
    almost_loop_limit: float = 1000.0
    closing_offset: float = 1.0


@dataclass(frozen=True)
class QualityOptions:
    max_gradient_change: float = 10.0
    max_direction_change_degrees: float = 60.0


@dataclass(frozen=True)
class EditorOptions:
    graph: GraphOptions = field(default_factory=GraphOptions)
    bend: BendOptions = field(default_factory=BendOptions)
    loop: LoopOptions = field(default_factory=LoopOptions)
    quality: QualityOptions = field(default_factory=QualityOptions)


def _config_dir(main_script_path: Optional[Path]) -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    if main_script_path is not None:
        return main_script_path.resolve().parent
    main_module = sys.modules.get("__main__")
    if main_module and getattr(main_module, "__file__", None):
        return Path(main_module.__file__).resolve().parent
    return Path.cwd()


def config_path(main_script_path: Optional[Path]) -> Path:
    return _config_dir(main_script_path) / CONFIG_FILENAME


def _parse_value(raw: str, default: object) -> object:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if isinstance(default, SmoothingMode):
        return SmoothingMode(raw.strip().lower())
    return float(raw)


def _read_section(parser: ConfigParser, section: str, defaults):
    if not parser.has_section(section):
        return defaults
    overrides: dict[str, object] = {}
    for option in fields(defaults):
        raw = parser.get(section, option.name, fallback=None)
        if raw is None:
            continue
        default = getattr(defaults, option.name)
        try:
            overrides[option.name] = _parse_value(raw, default)
        except ValueError:
            logger.warning(
                "Ignoring invalid %s.%s value %r; using %r",
                section,
                option.name,
                raw,
                default,
            )
    return replace(defaults, **overrides)


def load_options(ini_path: Optional[Path]) -> EditorOptions:
    """Read options from ``ini_path``, falling back to defaults key by key."""
    defaults = EditorOptions()
    if ini_path is None or not ini_path.exists():
        return defaults
    parser = ConfigParser()
    try:
        with ini_path.open("r", encoding="utf-8") as handle:
            parser.read_file(handle)
    except (OSError, Error):
        logger.warning("Could not read %s; using default options", ini_path)
        return defaults
    return EditorOptions(
        graph=_read_section(parser, _GRAPH_SECTION, defaults.graph),
        bend=_read_section(parser, _BEND_SECTION, defaults.bend),
        loop=_read_section(parser, _LOOP_SECTION, defaults.loop),
        quality=_read_section(parser, _QUALITY_SECTION, defaults.quality),
    )
