"""The EraserConfig document that configures the manager and its components."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any


class ConfigError(ValueError):
    """Raised when a configuration document is malformed."""


class Runtime(str, Enum):
    """The container runtime used on the nodes."""

    CONTAINERD = "containerd"
    DOCKERSHIM = "dockershim"
    CRIO = "crio"

    @classmethod
    def parse(cls, value: Any) -> Runtime:
        """Return the runtime named by ``value``; raise ConfigError otherwise."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ConfigError(f"runtime must be a string, got {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(
                f"cannot determine runtime type: {value}. "
                "valid values are containerd, dockershim, or crio"
            ) from None


_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_MAX_DURATION = 2**63 - 1

_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "\u00b5s": _MICROSECOND,
    "\u03bcs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_NUMBER = re.compile(r"(\d*)(\.(\d*))?")
_UNIT = re.compile(r"[^\d.]*")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"`` or ``"1.5s"``.

    Units are ns, us (or µs), ms, s, m and h; a sign may lead. The result
    keeps microsecond precision.
    """
    if not isinstance(text, str):
        raise ConfigError(f"duration must be a string, got {text!r}")
    invalid = f'time: invalid duration "{text}"'
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ConfigError(invalid)

    total = 0
    while rest:
        number = _NUMBER.match(rest)
        whole, fraction = number.group(1), number.group(3) or ""
        if not whole and not fraction:
            raise ConfigError(invalid)
        rest = rest[number.end():]
        unit = _UNIT.match(rest).group(0)
        if not unit:
            raise ConfigError(f'time: missing unit in duration "{text}"')
        if unit not in _UNITS:
            raise ConfigError(f'time: unknown unit "{unit}" in duration "{text}"')
        rest = rest[len(unit):]
        amount = Fraction(int(whole or "0"))
        if fraction:
            amount += Fraction(int(fraction), 10 ** len(fraction))
        total += int(amount * _UNITS[unit])
        if total > _MAX_DURATION:
            raise ConfigError(invalid)

    micros = total // _MICROSECOND
    return timedelta(microseconds=-micros if negative else micros)


def _with_fraction(amount: int, unit: int) -> str:
    whole, rest = divmod(amount, unit)
    if not rest:
        return str(whole)
    digits = str(rest).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """Render a duration in the form ``parse_duration`` reads, e.g. ``"24h0m0s"``."""
    nanos = (value // timedelta(microseconds=1)) * _MICROSECOND
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < _MICROSECOND:
        return f"{sign}{nanos}ns"
    if nanos < _MILLISECOND:
        return f"{sign}{_with_fraction(nanos, _MICROSECOND)}\u00b5s"
    if nanos < _SECOND:
        return f"{sign}{_with_fraction(nanos, _MILLISECOND)}ms"
    hours, rest = divmod(nanos, _HOUR)
    minutes, rest = divmod(rest, _MINUTE)
    text = f"{_with_fraction(rest, _SECOND)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


_QUANTITY = re.compile(
    r"([+-]?(?:\d+(?:\.\d*)?|\.\d+))([eE][+-]?\d+|[KMGTPE]i|[numkMGTPE])?"
)
_BINARY_POWERS = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL_EXPONENTS = {"n": -9, "u": -6, "m": -3, "k": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18}


@dataclass(frozen=True)
class Quantity:
    """A resource amount such as ``"500Mi"`` or ``"7m"``.

    Quantities compare by value; the text they were written as is kept for
    output.
    """

    value: Decimal = Decimal(0)
    text: str = field(default="0", compare=False)

    @classmethod
    def parse(cls, text: str) -> Quantity:
        """Parse a quantity with an optional SI, binary or exponent suffix."""
        if not isinstance(text, str):
            raise ConfigError(f"quantity must be a string, got {text!r}")
        match = _QUANTITY.fullmatch(text)
        if match is None:
            raise ConfigError(f"invalid quantity: {text!r}")
        number = Decimal(match.group(1))
        suffix = match.group(2) or ""
        if suffix in _BINARY_POWERS:
            number *= Decimal(1024) ** _BINARY_POWERS[suffix]
        elif suffix in _DECIMAL_EXPONENTS:
            number = number.scaleb(_DECIMAL_EXPONENTS[suffix])
        elif suffix:
            number = number.scaleb(int(suffix[1:]))
        return cls(value=number, text=text)

    def is_zero(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return self.text


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"field {key!r} must be a mapping")
    return value


def _string(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"field {key!r} must be a string")
    return value


def _optional_string(data: dict[str, Any], key: str) -> str | None:
    return _string(data, key) if data.get(key) is not None else None


def _boolean(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"field {key!r} must be a boolean")
    return value


def _integer(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"field {key!r} must be an integer")
    return value


def _number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"field {key!r} must be a number")
    return float(value)


def _strings(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"field {key!r} must be a list of strings")
    return list(value)


def _duration(data: dict[str, Any], key: str) -> timedelta:
    value = data.get(key)
    if value is None:
        return timedelta(0)
    if not isinstance(value, str):
        raise ConfigError(f"field {key!r} must be a duration string")
    return parse_duration(value)


def _quantity(data: dict[str, Any], key: str) -> Quantity:
    value = data.get(key)
    if value is None:
        return Quantity()
    if isinstance(value, bool):
        raise ConfigError(f"field {key!r} must be a quantity")
    if isinstance(value, (int, float)):
        return Quantity.parse(str(value))
    return Quantity.parse(value)


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return isinstance(value, (str, list)) and not value


def _omit_empty(entries: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in entries.items() if not _is_empty(value)}


def _duration_out(value: timedelta) -> str | None:
    return format_duration(value) if value else None


@dataclass
class RepoTag:
    """An image repository and tag."""

    repo: str = ""
    tag: str = ""

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> RepoTag:
        return cls(repo=_string(data, "repo"), tag=_string(data, "tag"))

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty({"repo": self.repo, "tag": self.tag})


@dataclass
class ResourceRequirements:
    """Memory and CPU amounts for a container."""

    mem: Quantity = field(default_factory=Quantity)
    cpu: Quantity = field(default_factory=Quantity)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ResourceRequirements:
        return cls(mem=_quantity(data, "mem"), cpu=_quantity(data, "cpu"))

    def _to_dict(self) -> dict[str, Any]:
        return {"mem": str(self.mem), "cpu": str(self.cpu)}


@dataclass
class ContainerConfig:
    """Image, resources and optional configuration text for a component."""

    image: RepoTag = field(default_factory=RepoTag)
    request: ResourceRequirements = field(default_factory=ResourceRequirements)
    limit: ResourceRequirements = field(default_factory=ResourceRequirements)
    config: str | None = None

    @staticmethod
    def _fields_from(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "image": RepoTag._from_dict(_section(data, "image")),
            "request": ResourceRequirements._from_dict(_section(data, "request")),
            "limit": ResourceRequirements._from_dict(_section(data, "limit")),
            "config": _optional_string(data, "config"),
        }

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ContainerConfig:
        return cls(**cls._fields_from(data))

    def _to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "image": self.image._to_dict(),
            "request": self.request._to_dict(),
            "limit": self.limit._to_dict(),
        }
        if self.config is not None:
            result["config"] = self.config
        return result


@dataclass
class OptionalContainerConfig(ContainerConfig):
    """A component that can be switched on or off."""

    enabled: bool = False

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> OptionalContainerConfig:
        return cls(enabled=_boolean(data, "enabled"), **cls._fields_from(data))

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty({"enabled": self.enabled}) | super()._to_dict()


@dataclass
class ScheduleConfig:
    """How often the manager starts a run, and whether it starts at once."""

    repeat_interval: timedelta = timedelta(0)
    begin_immediately: bool = False

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ScheduleConfig:
        return cls(
            repeat_interval=_duration(data, "repeatInterval"),
            begin_immediately=_boolean(data, "beginImmediately"),
        )

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty(
            {
                "repeatInterval": _duration_out(self.repeat_interval),
                "beginImmediately": self.begin_immediately,
            }
        )


@dataclass
class ProfileConfig:
    """Profiling endpoint settings."""

    enabled: bool = False
    port: int = 0

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ProfileConfig:
        return cls(enabled=_boolean(data, "enabled"), port=_integer(data, "port"))

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty({"enabled": self.enabled, "port": self.port})


@dataclass
class ImageJobCleanupConfig:
    """How long finished jobs are kept before deletion."""

    delay_on_success: timedelta = timedelta(0)
    delay_on_failure: timedelta = timedelta(0)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ImageJobCleanupConfig:
        return cls(
            delay_on_success=_duration(data, "delayOnSuccess"),
            delay_on_failure=_duration(data, "delayOnFailure"),
        )

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty(
            {
                "delayOnSuccess": _duration_out(self.delay_on_success),
                "delayOnFailure": _duration_out(self.delay_on_failure),
            }
        )


@dataclass
class ImageJobConfig:
    """Success threshold and cleanup rules for image jobs."""

    success_ratio: float = 0.0
    cleanup: ImageJobCleanupConfig = field(default_factory=ImageJobCleanupConfig)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ImageJobConfig:
        return cls(
            success_ratio=_number(data, "successRatio"),
            cleanup=ImageJobCleanupConfig._from_dict(_section(data, "cleanup")),
        )

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty({"successRatio": self.success_ratio}) | {
            "cleanup": self.cleanup._to_dict()
        }


@dataclass
class NodeFilterConfig:
    """Which nodes a job runs on, by label selector."""

    type: str = ""
    selectors: list[str] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> NodeFilterConfig:
        return cls(type=_string(data, "type"), selectors=_strings(data, "selectors"))

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty({"type": self.type, "selectors": list(self.selectors)})


@dataclass
class ManagerConfig:
    """Settings for the controller manager."""

    runtime: Runtime | None = None
    otlp_endpoint: str = ""
    log_level: str = ""
    scheduling: ScheduleConfig = field(default_factory=ScheduleConfig)
    profile: ProfileConfig = field(default_factory=ProfileConfig)
    image_job: ImageJobConfig = field(default_factory=ImageJobConfig)
    pull_secrets: list[str] = field(default_factory=list)
    node_filter: NodeFilterConfig = field(default_factory=NodeFilterConfig)
    priority_class_name: str = ""

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ManagerConfig:
        raw_runtime = data.get("runtime")
        return cls(
            runtime=Runtime.parse(raw_runtime) if raw_runtime is not None else None,
            otlp_endpoint=_string(data, "otlpEndpoint"),
            log_level=_string(data, "logLevel"),
            scheduling=ScheduleConfig._from_dict(_section(data, "scheduling")),
            profile=ProfileConfig._from_dict(_section(data, "profile")),
            image_job=ImageJobConfig._from_dict(_section(data, "imageJob")),
            pull_secrets=_strings(data, "pullSecrets"),
            node_filter=NodeFilterConfig._from_dict(_section(data, "nodeFilter")),
            priority_class_name=_string(data, "priorityClassName"),
        )

    def _to_dict(self) -> dict[str, Any]:
        result = _omit_empty(
            {
                "runtime": self.runtime.value if self.runtime is not None else None,
                "otlpEndpoint": self.otlp_endpoint,
                "logLevel": self.log_level,
            }
        )
        result["scheduling"] = self.scheduling._to_dict()
        result["profile"] = self.profile._to_dict()
        result["imageJob"] = self.image_job._to_dict()
        if self.pull_secrets:
            result["pullSecrets"] = list(self.pull_secrets)
        result["nodeFilter"] = self.node_filter._to_dict()
        if self.priority_class_name:
            result["priorityClassName"] = self.priority_class_name
        return result


@dataclass
class Components:
    """The collector, scanner and eraser components."""

    collector: OptionalContainerConfig = field(default_factory=OptionalContainerConfig)
    scanner: OptionalContainerConfig = field(default_factory=OptionalContainerConfig)
    eraser: ContainerConfig = field(default_factory=ContainerConfig)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Components:
        return cls(
            collector=OptionalContainerConfig._from_dict(_section(data, "collector")),
            scanner=OptionalContainerConfig._from_dict(_section(data, "scanner")),
            eraser=ContainerConfig._from_dict(_section(data, "eraser")),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "collector": self.collector._to_dict(),
            "scanner": self.scanner._to_dict(),
            "eraser": self.eraser._to_dict(),
        }


_OWN_KEYS = frozenset({"apiVersion", "kind", "manager", "components"})


@dataclass
class EraserConfig:
    """The whole configuration document.

    Top-level keys other than the type fields, ``manager`` and
    ``components`` belong to the controller manager and are kept as given
    in ``controller_manager``.
    """

    manager: ManagerConfig = field(default_factory=ManagerConfig)
    components: Components = field(default_factory=Components)
    controller_manager: dict[str, Any] = field(default_factory=dict)
    api_version: str = ""
    kind: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EraserConfig:
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a mapping")
        return cls(
            manager=ManagerConfig._from_dict(_section(data, "manager")),
            components=Components._from_dict(_section(data, "components")),
            controller_manager={
                key: copy.deepcopy(value) for key, value in data.items() if key not in _OWN_KEYS
            },
            api_version=_string(data, "apiVersion"),
            kind=_string(data, "kind"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = _omit_empty({"apiVersion": self.api_version, "kind": self.kind})
        result.update(copy.deepcopy(self.controller_manager))
        result["manager"] = self.manager._to_dict()
        result["components"] = self.components._to_dict()
        return result