"""The default EraserConfig and a thread-safe holder for the live one."""

from __future__ import annotations

import copy
import dataclasses
import threading
from datetime import timedelta

from imageeraser.eraserconfig import (
    Components,
    ConfigError,
    ContainerConfig,
    EraserConfig,
    ImageJobCleanupConfig,
    ImageJobConfig,
    ManagerConfig,
    NodeFilterConfig,
    OptionalContainerConfig,
    ProfileConfig,
    Quantity,
    RepoTag,
    ResourceRequirements,
    Runtime,
    ScheduleConfig,
)

DEFAULT_SCANNER_CONFIG = """
cacheDir: /var/lib/trivy
dbRepo: ghcr.io/aquasecurity/trivy-db
deleteFailedImages: true
vulnerabilities:
  ignoreUnfixed: true
  types:
    - os
    - library
securityChecks: # need to be documented; determined by trivy, not us
  - vuln
severities:
  - CRITICAL
"""

NO_DELAY = timedelta(0)
ONE_DAY = timedelta(hours=24)


class ConfigManager:
    """Holds the current configuration and guards access to it with a lock."""

    def __init__(self, config: EraserConfig | None) -> None:
        self._lock = threading.Lock()
        self._config = config

    def read(self) -> EraserConfig:
        """Return a copy of the current configuration."""
        with self._lock:
            if self._config is None:
                raise ConfigError("ConfigManager configuration is nil, aborting")
            return copy.deepcopy(self._config)

    def update(self, new_config: EraserConfig | None) -> None:
        """Replace the contents of the held configuration with ``new_config``."""
        with self._lock:
            if self._config is None:
                raise ConfigError("ConfigManager configuration is nil, aborting")
            if new_config is None:
                raise ConfigError("new configuration is nil, aborting")
            for item in dataclasses.fields(self._config):
                setattr(self._config, item.name, copy.deepcopy(getattr(new_config, item.name)))


def repo(basename: str, default_repo: str = "") -> str:
    """Return the image repository for ``basename`` under ``default_repo``."""
    if not default_repo:
        return basename
    return f"{default_repo}/{basename}"


def _resources(mem: str, cpu: str | None) -> ResourceRequirements:
    return ResourceRequirements(
        mem=Quantity.parse(mem),
        cpu=Quantity.parse(cpu) if cpu is not None else Quantity(),
    )


def default_config(build_version: str = "", default_repo: str = "") -> EraserConfig:
    """Return the configuration used when none is supplied."""
    return EraserConfig(
        manager=ManagerConfig(
            runtime=Runtime.CONTAINERD,
            otlp_endpoint="",
            log_level="info",
            scheduling=ScheduleConfig(repeat_interval=ONE_DAY, begin_immediately=True),
            profile=ProfileConfig(enabled=False, port=6060),
            image_job=ImageJobConfig(
                success_ratio=1.0,
                cleanup=ImageJobCleanupConfig(
                    delay_on_success=NO_DELAY,
                    delay_on_failure=ONE_DAY,
                ),
            ),
            pull_secrets=[],
            node_filter=NodeFilterConfig(
                type="exclude",
                selectors=["eraser.sh/cleanup.filter"],
            ),
        ),
        components=Components(
            collector=OptionalContainerConfig(
                enabled=False,
                image=RepoTag(repo=repo("collector", default_repo), tag=build_version),
                request=_resources("25Mi", "7m"),
                limit=_resources("500Mi", None),
                config=None,
            ),
            scanner=OptionalContainerConfig(
                enabled=False,
                image=RepoTag(
                    repo=repo("eraser-trivy-scanner", default_repo), tag=build_version
                ),
                request=_resources("500Mi", "1000m"),
                limit=_resources("2Gi", "1500m"),
                config=DEFAULT_SCANNER_CONFIG,
            ),
            eraser=ContainerConfig(
                image=RepoTag(repo=repo("eraser", default_repo), tag=build_version),
                request=_resources("25Mi", "7m"),
                limit=_resources("30Mi", None),
                config=None,
            ),
        ),
    )