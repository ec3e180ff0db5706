"""Run parameter loading and validation."""

from gcode_art.configs.loader import (
    BaseConfig,
    BaseShape,
    ChangeMode,
    ConfigError,
    FilamentChangePlan,
    GenerationConfig,
    ImageLoadError,
    MaterialModel,
    PathParameters,
    PatternKind,
    PrintArea,
    TemplateLoadError,
    build_config,
    load_config,
)

__all__ = [
    "BaseConfig",
    "BaseShape",
    "ChangeMode",
    "ConfigError",
    "FilamentChangePlan",
    "GenerationConfig",
    "ImageLoadError",
    "MaterialModel",
    "PathParameters",
    "PatternKind",
    "PrintArea",
    "TemplateLoadError",
    "build_config",
    "load_config",
]
