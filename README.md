# slurm_exporter

A Prometheus exporter for the Slurm workload manager. On every scrape it
runs the Slurm command-line tools (`sinfo`, `squeue`, `sdiag`, `sshare`
and, optionally, `sacct`), parses their output and serves the results in
the Prometheus text exposition format at `/metrics`.

It has no dependencies beyond the Python standard library (3.10 or later).

## Installation

```
pip install .
```

The Slurm client commands must be on the `PATH` of the user running the
exporter.

## Running

```
slurm-exporter
```

By default the exporter listens on `:8080`, that is on every interface at
port 8080. Options, each accepted with one or two leading dashes:

- `--listen-address ADDRESS`: the `host:port` to listen on for HTTP
  requests (default `:8080`). The host may be empty or an IPv6 address in
  brackets; the port may be a number or a service name.
- `--gpus-acct [BOOL]`: enable GPU accounting, which queries `sinfo` and
  `sacct` for GPU totals and per-user allocations. Given alone it means
  true; it also takes an explicit value such as `true`, `false`, `1` or
  `0`. Off by default.

Example:

```
slurm-exporter --listen-address 127.0.0.1:9341 --gpus-acct
```

Then point Prometheus at `http://<host>:9341/metrics`.

The server answers `GET` and `HEAD` requests. Any path other than
`/metrics` gets a 404. If a Slurm command cannot be started or exits with
a failure status, the scrape is answered with a 500 and the error is
logged; the server keeps running. The command exits with status 1 if the
address is invalid or cannot be bound.

## Exported metrics

| Prefix | Source | Description |
| --- | --- | --- |
| `slurm_cpus_*` | `sinfo -o %C` | Allocated, idle, other and total CPUs |
| `slurm_nodes_*` | `sinfo -o %D,%T` | Node counts by state (alloc, comp, down, drain, err, fail, idle, maint, mix, resv) |
| `slurm_node_*` | `sinfo -N -O ...` | Per-node CPU and memory, labelled by `node` and `status` |
| `slurm_account_*` | `squeue`, `sshare` | Pending, running and suspended jobs, running CPUs and fairshare per account |
| `slurm_user_*` | `squeue` | Pending, running and suspended jobs and running CPUs per user |
| `slurm_partition_*` | `sinfo`, `squeue` | CPU states and pending jobs per partition |
| `slurm_queue_*` | `squeue --states=all` | Job counts by state |
| `slurm_scheduler_*` | `sdiag` | Scheduler threads, queue sizes, cycle times and backfill statistics |
| `slurm_gpus_*`, `slurm_user_gpus_running` | `sinfo`, `sacct` | GPU totals, allocation and utilisation (with `--gpus-acct`) |

For the per-account, per-user and per-partition metrics, a sample is only
emitted when its value is greater than zero. All metrics are gauges.

## Using the collectors from Python

Every collector takes the function that produces the command output, so
it can be fed recorded text:

```python
from slurm_exporter.exposition import Registry
from slurm_exporter.cpus import CPUsCollector

registry = Registry()
registry.register(CPUsCollector(lambda: "12/20/0/32\n"))
print(registry.render())
```

`Registry.register` raises `ValueError` when a collector describes a
metric name that is already registered. `slurm_exporter.server.build_registry`
returns a registry with every collector registered, and
`slurm_exporter.server.create_server` binds an HTTP server for a registry.

The parsing functions, such as `slurm_exporter.cpus.parse_cpus_metrics`,
`slurm_exporter.node.parse_node_metrics` or
`slurm_exporter.queue.parse_queue_metrics`, can also be used on their
own. Commands are run through `slurm_exporter.command.run`, which raises
`slurm_exporter.command.CommandError` on failure.