# imageeraser

Typed models for the resources and configuration of a controller that removes
unused or non-compliant container images from the nodes of a cluster. Every
type reads from and writes to plain dictionaries, so documents can be loaded
from JSON or YAML with whatever parser you prefer.

## Modules

- `imageeraser.groupversion` — the `eraser.sh` API group. `GroupVersion` pairs
  a group with a version; `api_version()` gives the `group/version` string and
  `GroupVersion.parse()` reads one back (a string with more than one `/` raises
  `ValueError`). The constants `V1` and `V1ALPHA1` are the served versions, and
  `STORAGE_VERSION` is `V1`.
- `imageeraser.imagejob` — `Image`, `JobPhase` (`Running`, `Completed`,
  `Failed`), `ImageJobStatus`, `ImageJob` and `ImageJobList`, each with
  `to_dict()` and `from_dict()`. `ImageJob.convert_to()` returns a copy in
  another served version and raises `ValueError` for any other version.
  Times such as `deleteAfter` are RFC 3339 strings, written in UTC.
- `imageeraser.imagelist` — `ImageListSpec`, `ImageListStatus`, `ImageList`
  and `ImageListList`, with the same dictionary round trip and
  `ImageList.convert_to()`.
- `imageeraser.eraserconfig` — the configuration schema: `EraserConfig`
  (`from_dict()` / `to_dict()`), `ManagerConfig`, `Components`,
  `ContainerConfig`, `OptionalContainerConfig` and the smaller sections;
  `Runtime` (`containerd`, `dockershim`, `crio`) with `Runtime.parse()`;
  `Quantity.parse()` for amounts such as `500Mi`, `7m` or `2Gi`;
  `parse_duration()` and `format_duration()` for strings such as `1h30m` or
  `24h0m0s`. Invalid input raises `ConfigError`, a subclass of `ValueError`.
  Top-level keys of an `EraserConfig` document other than `apiVersion`,
  `kind`, `manager` and `components` are kept as given in
  `controller_manager`.
- `imageeraser.config` — `default_config(build_version, default_repo)` builds
  the configuration used when none is supplied, `repo()` joins an image name
  to a default repository, and `ConfigManager` holds the active
  configuration behind a lock: `read()` returns a copy, `update()` replaces
  its contents. Both raise `ConfigError` when the manager holds no
  configuration, and `update(None)` raises it too.

## Installing

```
pip install .
```

## Example

```python
from imageeraser.config import ConfigManager, default_config
from imageeraser.eraserconfig import EraserConfig

cfg = default_config("v1.0.0", "ghcr.io/example")
print(cfg.components.eraser.image.repo)      # ghcr.io/example/eraser

loaded = EraserConfig.from_dict({
    "manager": {"runtime": "containerd", "scheduling": {"repeatInterval": "12h"}},
    "components": {},
})

manager = ConfigManager(cfg)
manager.update(loaded)
current = manager.read()
print(current.manager.scheduling.repeat_interval)   # 12:00:00
```

## What this package does not do

It describes the resources and configuration only. It has no controller that
talks to a cluster, no collector, scanner or eraser that inspects or removes
images on nodes, no metrics, and no command-line program.

## Running the tests

```
pip install ".[test]"
pytest
```