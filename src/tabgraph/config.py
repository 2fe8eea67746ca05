"""
Configuration values for the interchange layer (symbol map, scheme table,
namespaces, output paths).

Everything here is built fresh by a factory and handed to the code that needs
it; nothing is read from module-level mutable state. Provides a lossless
dict/YAML round trip so a pipeline can pin its tables in a file.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from tabgraph.hierarchy import Scheme, Tier, TruncationRule, default_schemes


class ConfigError(ValueError):
    """Raised when configuration input is malformed."""
    pass


def default_symbols() -> Dict[str, str]:
    return {
        "%": "Percent",
        "#": "Number",
        "@": "At",
        "&": "And",
        "+": "Plus",
        "$": "Dollar",
        "€": "Euro",
        "£": "Pound",
        "¥": "Yen",
        "°": "Degree",
    }


def default_namespaces() -> Dict[str, str]:
    return {
        "ONET": "onet.org.ai",
        "APQC": "apqc.org.ai",
        "GS1": "gs1.org.ai",
        "NAICS": "naics.org.ai",
        "BLS": "standards.org.ai",
        "NAPCS": "standards.org.ai",
        "UNSPSC": "standards.org.ai",
        "AdvanceCTE": "standards.org.ai",
        "ISO": "iso.org.ai",
        "UN": "un.org.ai",
        "IANA": "iana.org.ai",
        "EDIFACT": "un.org.ai",
    }


@dataclass(frozen=True)
class NormalizerConfig:
    """
    Symbol table for the identifier normalizer.

    Properties:
        symbols: symbol -> word, applied in insertion order
            Example: {"%": "Percent"} turns "10%" into "10_Percent"
    """

    symbols: Dict[str, str] = field(default_factory=default_symbols)


@dataclass(frozen=True)
class TabgraphConfig:
    """
    Root configuration container.

    Properties:
        normalizer: Symbol table for identifiers
        schemes: Classification schemes keyed by name
        namespaces: Source name -> dotted authority domain
    """

    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    schemes: Dict[str, Scheme] = field(default_factory=default_schemes)
    namespaces: Dict[str, str] = field(default_factory=default_namespaces)

    def scheme(self, name: str) -> Scheme:
        try:
            return self.schemes[name]
        except KeyError:
            raise ConfigError(f"Unknown scheme: {name}")

    def valid_namespaces(self) -> List[str]:
        return sorted(set(self.namespaces.values()))


def default_config() -> TabgraphConfig:
    return TabgraphConfig()


# =========================================================================
# DICT / YAML ROUND TRIP
# =========================================================================

def scheme_to_dict(s: Scheme) -> Dict[str, Any]:
    return {
        "rule": s.rule.value,
        "tiers": [[t.key, t.label] for t in s.tiers],
        "pattern": s.pattern,
        "strip_suffix": s.strip_suffix,
        "separator": s.separator,
        "clamp_deepest": s.clamp_deepest,
        "unknown_label": s.unknown_label,
    }


def scheme_from_dict(name: str, d: Mapping[str, Any]) -> Scheme:
    try:
        rule = TruncationRule(d["rule"])
    except KeyError:
        raise ConfigError(f"Scheme '{name}' is missing 'rule'")
    except ValueError:
        raise ConfigError(f"Scheme '{name}' has unknown rule: {d['rule']}")

    raw_tiers = d.get("tiers") or []
    if not raw_tiers:
        raise ConfigError(f"Scheme '{name}' has no tiers")
    try:
        tiers = tuple(Tier(int(key), str(label)) for key, label in raw_tiers)
    except (TypeError, ValueError):
        raise ConfigError(f"Scheme '{name}' has malformed tiers: {raw_tiers}")

    return Scheme(
        name=name,
        rule=rule,
        tiers=tiers,
        pattern=d.get("pattern"),
        strip_suffix=d.get("strip_suffix"),
        separator=d.get("separator", "."),
        clamp_deepest=bool(d.get("clamp_deepest", False)),
        unknown_label=d.get("unknown_label", "Unknown"),
    )


def config_to_dict(c: TabgraphConfig) -> Dict[str, Any]:
    return {
        "symbols": dict(c.normalizer.symbols),
        "schemes": {name: scheme_to_dict(s) for name, s in c.schemes.items()},
        "namespaces": dict(c.namespaces),
    }


def config_from_dict(d: Optional[Mapping[str, Any]]) -> TabgraphConfig:
    """
    Build a config from a dict; missing sections fall back to the defaults.

    Raises:
        ConfigError: If a section has the wrong shape
    """
    if d is None:
        return default_config()
    if not isinstance(d, Mapping):
        raise ConfigError(f"Configuration must be a mapping, got {type(d).__name__}")

    symbols = d.get("symbols")
    if symbols is None:
        normalizer = NormalizerConfig()
    elif isinstance(symbols, Mapping):
        normalizer = NormalizerConfig(symbols={str(k): str(v) for k, v in symbols.items()})
    else:
        raise ConfigError("'symbols' must be a mapping of symbol to word")

    raw_schemes = d.get("schemes")
    if raw_schemes is None:
        schemes = default_schemes()
    elif isinstance(raw_schemes, Mapping):
        schemes = {name: scheme_from_dict(name, sd) for name, sd in raw_schemes.items()}
    else:
        raise ConfigError("'schemes' must be a mapping of name to scheme")

    namespaces = d.get("namespaces")
    if namespaces is None:
        namespaces = default_namespaces()
    elif not isinstance(namespaces, Mapping):
        raise ConfigError("'namespaces' must be a mapping of source to namespace")

    return TabgraphConfig(normalizer=normalizer, schemes=schemes, namespaces=dict(namespaces))


def config_to_yaml(c: TabgraphConfig) -> str:
    return yaml.safe_dump(config_to_dict(c), allow_unicode=True, sort_keys=False)


def config_from_yaml(s: str) -> TabgraphConfig:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML configuration: {e}")
    return config_from_dict(d)


def load_config(path: str) -> TabgraphConfig:
    with open(path, "r", encoding="utf-8") as f:
        return config_from_yaml(f.read())


# =========================================================================
# OUTPUT LAYOUT
# =========================================================================

def source_path(source: str, root: Optional[str] = None) -> str:
    """Directory holding the raw files for one source: <root>/.source/<source>."""
    return os.path.join(root or os.getcwd(), ".source", source)


def data_path(root: Optional[str] = None) -> str:
    """Entity output directory: <root>/.data."""
    return os.path.join(root or os.getcwd(), ".data")


def relationships_path(root: Optional[str] = None) -> str:
    """Relationship output directory: <root>/.data/relationships."""
    return os.path.join(data_path(root), "relationships")


def ensure_output_dirs(root: Optional[str] = None) -> None:
    os.makedirs(data_path(root), exist_ok=True)
    os.makedirs(relationships_path(root), exist_ok=True)


__all__ = [
    "ConfigError",
    "NormalizerConfig",
    "TabgraphConfig",
    "default_config",
    "default_symbols",
    "default_namespaces",
    "scheme_to_dict",
    "scheme_from_dict",
    "config_to_dict",
    "config_from_dict",
    "config_to_yaml",
    "config_from_yaml",
    "load_config",
    "source_path",
    "data_path",
    "relationships_path",
    "ensure_output_dirs",
]
