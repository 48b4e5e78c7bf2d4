# ooopipe

A small trace-driven toolkit for studying processor pipelines. It reads
gzip-compressed binary instruction traces and offers two tools:

- **An instruction mix analyzer** (`ooopipe.analyzer`) that counts
  instructions by operation type (ALU, load, store, conditional branch,
  other), estimates cycles with a fixed per-type latency (ALU 1, load 2,
  store 2, conditional branch 3, other 1), reports CPI and counts unique
  program counters.
- **An out-of-order pipeline simulator** (`ooopipe.pipeline`, driven by
  `ooopipe.sim`) with fetch, decode, rename, schedule, execute, broadcast and
  commit stages, built from a register alias table (`RAT`), a reorder buffer
  (`ROB`), a reservation station (`ReservationStation`) and an execution
  queue for multi-cycle loads (`ExecutionQueue`).

The package has no dependencies beyond the Python standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Command-line use

### Instruction mix analysis

```
ooopipe-analyze trace.gz
```

The trace holds `OpRecord`s (instruction address and opcode). The command
prints the number of instructions and cycles, the CPI, the number of unique
program counters, and the count and percentage of each operation type.
A record with an unknown opcode prints `Opcode not qualified`; it counts as
an instruction but adds no cycles. If no trace file is given, or the file
cannot be read, an error message is printed and the exit status is 1.

### Pipeline simulation

```
ooopipe-sim [options] trace.gz
```

The trace holds full `TraceRecord`s. Options:

| Option | Meaning | Default |
| --- | --- | --- |
| `-pipewidth <num>` | Width of the pipeline (1 to 8) | 1 |
| `-schedpolicy <num>` | Scheduling policy: 0 in order, 1 out of order | 1 |
| `-loadlatency <num>` | Cycles a load takes to execute (at least 1) | 4 |
| `-h`, `-help` | Show usage | |

Unknown options are ignored, and the last argument that is not an option
names the trace file. An out-of-range value is reported as an error.

While running, the simulator prints a progress dot every 10,000 cycles, a
progress line with instruction count, cycle count and CPI every 500,000
cycles, and stops with an error if no instruction commits within a
10,000-cycle window. At the end it reports the retired instruction count,
the cycle count and the CPI.

## Library use

```python
from ooopipe.trace import open_trace, read_op_records
from ooopipe.analyzer import analyze

with open_trace("trace.gz") as stream:
    stats = analyze(read_op_records(stream))
print(stats.format_report())
```

```python
from ooopipe.pipeline import PipelineConfig, SchedPolicy
from ooopipe.sim import simulate, format_stats

config = PipelineConfig(pipe_width=2, sched_policy=SchedPolicy.OUT_OF_ORDER)
pipeline = simulate("trace.gz", config)
print(format_stats(pipeline))
```

A `Pipeline` can also be fed any iterable of `TraceRecord`s and run
directly, cycle by cycle with `cycle()` or to completion with `run()`:

```python
from ooopipe.pipeline import Pipeline
from ooopipe.trace import TraceRecord

records = [
    TraceRecord(op_type=1, dest=3, dest_needed=1),
    TraceRecord(op_type=0, src1_reg=3, src1_needed=1),
]
pipeline = Pipeline(records)
pipeline.run()
print(pipeline.retired_inst, pipeline.num_cycle)
```

`PipelineConfig` also sets the reservation-station and reorder-buffer sizes
(`num_rest_entries` and `num_rob_entries`, 32 each by default); these are
not exposed as command-line options.

`TraceRecord` and `OpRecord` pack and unpack the little-endian binary record
layouts (48 and 16 bytes), `read_trace_records` and `read_op_records` yield
records from a binary stream and ignore a trailing partial record, `InstInfo`
carries an instruction through the pipeline, and each structure offers a
`format_state()` method for inspecting its contents while debugging.

## What it does not do

The simulator models timing only. It does not compute data values, model
memory or caches, or predict branches: the memory address, condition code
and branch fields of a `TraceRecord` are read but not used. Traces must be
gzip-compressed; there is no tool here for recording or creating traces.