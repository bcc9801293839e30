# pcompose

`pcompose` loads, validates and merges process-compose YAML files and
provides the building blocks for supervising a set of interdependent
processes. These include dependency ordering, replica expansion, health probe
settings, in-memory log buffers with subscribers, and a file-backed process
logger. It also provides process state sorting, keyboard shortcut
configuration and a searchable log view model.

## Installation

```
pip install .
```

To run the tests, install the test extra:

```
pip install ".[test]"
pytest
```

## Compose files

If no file names are given, `pcompose.loader.auto_discover_compose_file`
looks in the working directory for these files and takes the first one it
finds:

1. `compose.yml`
2. `compose.yaml`
3. `process-compose.yml`
4. `process-compose.yaml`

It then adds the first override file it finds, in this order:

1. `compose.override.yml`
2. `compose.override.yaml`
3. `process-compose.override.yml`
4. `process-compose.override.yaml`

The working directory is chosen as follows:

- `LoaderOptions.working_dir`, if it is set.
- Otherwise, the directory of the first given file name that is not `-`.
- Otherwise, the current directory.

`$NAME` and `${NAME}` references in a file are replaced with environment
values. Names that are not set become empty. A `.env` file in the current
directory is read first, if one exists.

```yaml
version: "0.5"
log_length: 1000
environment:
  - "GLOBAL=1"
processes:
  db:
    command: "run-db"
    readiness_probe:
      http_get:
        host: 127.0.0.1
        port: 5432
        path: /health
  web:
    command: "run-web"
    replicas: 2
    depends_on:
      db:
        condition: process_healthy
```

```python
from pcompose.loader import LoaderOptions, load

project = load(LoaderOptions(file_names=["process-compose.yaml"]))
print(project.get_dependencies_order_names())  # e.g. ['db', 'web-0', 'web-1']
```

### What `load` does

1. Reads every file.
2. Merges the files in order.
3. Calls `Project.validate_after_merge()`, which:
   - sets the namespace `default` and one replica where none is given;
   - expands replicas into entries such as `web-0` and `web-1`;
   - copies each process's `working_dir` into exec probes that have none;
   - checks for dependency cycles.

### Keys and log level

- Process keys that are not recognised are kept in `ProcessConfig.extensions`.
- Unrecognised keys that do not start with `x-` are reported through logging.
- The project's `log_level` sets the level of the `pcompose` logger.

### Errors

| Condition | Exception |
| --- | --- |
| A file is missing, unreadable or not a YAML mapping | `LoadError` |
| No config file is found during discovery | `LoadError` |
| A dependency cycle is found | `CircularDependencyError` |
| An unknown process is named to `Project.with_processes` | `ProcessNotFoundError` |

## Merging

```python
from pcompose.merger import merge_env

merge_env(["k1=v1", "k2=v2"], ["k1=override", "k3=v3"])
# ['k1=override', 'k2=v2', 'k3=v3']
```

`merge_process`, `merge_processes`, `merge_projects` and `merge` all merge
into their first argument in place. Later values override earlier ones:

- **Scalars:** non-empty values from the override replace the base values.
- **Nested settings:** probes, restart policy and shutdown are merged field by field.
- **`depends_on`:** entries are combined by process name, and the override wins.
- **Environment lists:** combined by key and sorted.
- **Other lists:** appended.

## Health probes

```python
from pcompose.probe import Probe

probe = Probe.from_dict({"http_get": {"host": "example.com", "port": 8080, "path": "/ready"}})
probe.validate_and_set_defaults()
probe.http_get.url().geturl()   # 'http://example.com:8080/ready'
probe.period_seconds            # 10
```

`validate_and_set_defaults` applies these defaults:

| Setting | Default |
| --- | --- |
| period | 10 s |
| timeout | 1 s |
| success threshold | 1 |
| failure threshold | 3 |
| host | `127.0.0.1` |
| scheme | `http` |
| path | `/` |

A port outside 1–65535 is dropped.

## Process logs

```python
from pcompose.log_buffer import ProcessLogBuffer, Connector

buf = ProcessLogBuffer(1000)
buf.write("started")
received = []
conn = Connector(lambda lines: received.extend(lines), lambda line: len(line), 10)
buf.get_logs_and_subscribe(conn)   # received == ['started']
buf.write("ready")                 # passed on to conn as it is written
```

`ProcessLogger` (in `pcompose.logger`):

- appends JSON lines to a file from a background thread;
- each line holds `level`, `process`, `replica` and `message`;
- can be used as a context manager.

`NilLogger` takes the same calls, writes nothing, and counts the messages it
discards.

## Process table, shortcuts and log view

- `pcompose.sorter.sort_processes_state` orders a `ProcessesState` by a
  `ColumnID`. Ties are broken by process name.
- `StateSorter.select` switches the sort column, or flips the direction when
  the same column is chosen again.
- `pcompose.actions.get_default_actions()` returns the default `ShortCuts`.
- `ShortCuts.save_to_file` and `ShortCuts.load_from_file` write and read
  bindings as YAML. An unknown key name falls back to the action's default
  key.
- `pcompose.log_view.LogView` keeps buffered log text. When ANSI colours are
  off, it tints lines that contain "error"; when they are on, it translates
  ANSI colour codes into tags. It supports plain or regex search, with
  numbered match regions and next/previous navigation.

## Release lookup

`pcompose.updater.get_latest_release_name(url)` fetches a JSON release
description and returns its `name` field.

## What this package does not do

This package only models the configuration and logs of a process group. It
has:

- no command-line program;
- no code that starts, stops or restarts processes;
- no runner that executes health probes;
- no HTTP API server;
- no interactive terminal screen.

`LogView`, `ShortCuts` and the sorter hold the state such a screen would
display, but nothing draws it.