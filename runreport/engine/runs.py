r"""Program run-meta records and their on-disk partitions.

Run-meta records are grouped per namespace into JSON-lines partitions::

    {meta_base}/{namespace}/{earliest_event_seconds}.json

A partition is named after the earliest event time it holds, which lets
report jobs skip partitions by name alone. Each line is one
:class:`RunMetaRecord`; a program run is described by several records, one
per status change, which :func:`summarize_runs` folds into one report row
keyed by catalogue field names.
"""

from __future__ import annotations

import typing as typ
import uuid

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from runreport.jobs.location import Location

PARTITION_SUFFIX = ".json"
STARTING = "STARTING"
RUNNING = "RUNNING"
TERMINAL_STATUSES = frozenset({"COMPLETED", "FAILED", "KILLED"})


class StartInfo(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Details recorded when a program run starts.

    Attributes
    ----------
    user : str
        User who started the run.
    runtime_arguments : dict[str, str]
        Arguments the run was started with.
    start_method : str, optional
        How the run was started, e.g. ``MANUAL`` or ``SCHEDULED``.

    """

    user: str
    runtime_arguments: dict[str, str] = msgspec.field(default_factory=dict)
    start_method: str | None = None


class RunMetaRecord(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """One status change of a program run.

    Attributes
    ----------
    namespace : str
        Namespace of the program.
    program : str
        Program name.
    run : str
        Run id shared by every record of the same run.
    status : str
        Status entered at ``time``.
    time : int
        Event time in epoch seconds.
    application : str, optional
        Application containing the program.
    program_type : str, optional
        Program type, e.g. ``Workflow``.
    start_info : StartInfo, optional
        Present on the record that starts the run.

    """

    namespace: str
    program: str
    run: str
    status: str
    time: int
    application: str | None = None
    program_type: str | None = None
    start_info: StartInfo | None = None


type RunRow = dict[str, typ.Any]

_ENCODER = msgspec.json.Encoder()
_DECODER = msgspec.json.Decoder(RunMetaRecord)


def partition_time(partition: Location) -> int | None:
    """Return the earliest event time encoded in a partition's name.

    Returns ``None`` for files that are not run-meta partitions.
    """
    name = partition.name
    if not name.endswith(PARTITION_SUFFIX):
        return None
    stem = name.removesuffix(PARTITION_SUFFIX)
    if not stem.isdigit():
        return None
    return int(stem)


def read_records(partition: Location) -> cabc.Iterator[RunMetaRecord]:
    """Yield every record of a partition, skipping blank lines."""
    for line in partition.read_lines():
        if line.strip():
            yield _DECODER.decode(line)


def write_partition(
    namespace_dir: Location, records: cabc.Sequence[RunMetaRecord]
) -> Location | None:
    """Write *records* as a new partition named after their earliest time.

    Returns the partition, or ``None`` if it already existed.
    """
    earliest = min(record.time for record in records)
    partition = namespace_dir.append(f"{earliest}{PARTITION_SUFFIX}")
    content = b"".join(_ENCODER.encode(record) + b"\n" for record in records)
    return partition if partition.create_new(content) else None


def summarize_runs(records: cabc.Iterable[RunMetaRecord]) -> list[RunRow]:
    """Fold status-change records into one row per run.

    Rows are keyed by catalogue field names. Fields the records do not
    describe are absent.
    """
    by_run: dict[str, list[RunMetaRecord]] = {}
    for record in records:
        by_run.setdefault(record.run, []).append(record)
    return [_summarize(run_records) for run_records in by_run.values()]


def _summarize(records: list[RunMetaRecord]) -> RunRow:
    ordered = sorted(records, key=lambda record: record.time)
    first, last = ordered[0], ordered[-1]
    times = {record.status: record.time for record in ordered}
    start = times.get(STARTING, first.time)
    end = next(
        (r.time for r in reversed(ordered) if r.status in TERMINAL_STATUSES), None
    )
    start_info = next((r.start_info for r in ordered if r.start_info), None)

    row: RunRow = {
        "namespace": first.namespace,
        "program": first.program,
        "run": first.run,
        "status": last.status,
        "start": start,
        "running": times.get(RUNNING),
        "end": end,
        "duration": None if end is None else end - start,
        "application.name": first.application,
        "type": first.program_type,
    }
    if start_info is not None:
        row["user"] = start_info.user
        row["startMethod"] = start_info.start_method
        row["runtimeArgs"] = dict(start_info.runtime_arguments)
    return {key: value for key, value in row.items() if value is not None}


SAMPLE_NAMESPACES = ("default", "ns1", "ns2")
SAMPLE_START = 1520808000
SAMPLE_PARTITIONS = 5
SAMPLE_PARTITION_SPACING = 1000
SAMPLE_DELAY = 300


def _sample_records(namespace: str, time: int) -> list[RunMetaRecord]:
    program = "SmartWorkflow"
    failed_run = str(uuid.uuid4())
    completed_run = str(uuid.uuid4())
    start_info = StartInfo(user="user", runtime_arguments={"k1": "v1", "k2": "v2"})
    return [
        RunMetaRecord(
            namespace=namespace,
            program=program,
            run=failed_run,
            status=STARTING,
            time=time,
            start_info=start_info,
        ),
        RunMetaRecord(
            namespace=namespace,
            program=program,
            run=failed_run,
            status="FAILED",
            time=time + SAMPLE_DELAY,
        ),
        RunMetaRecord(
            namespace=namespace,
            program=f"{program}_1",
            run=completed_run,
            status=STARTING,
            time=time + SAMPLE_DELAY,
        ),
        RunMetaRecord(
            namespace=namespace,
            program=f"{program}_1",
            run=completed_run,
            status=RUNNING,
            time=time + 2 * SAMPLE_DELAY,
        ),
        RunMetaRecord(
            namespace=namespace,
            program=f"{program}_1",
            run=completed_run,
            status="COMPLETED",
            time=time + 4 * SAMPLE_DELAY,
        ),
    ]


def populate_meta_files(meta_base: Location) -> list[Location]:
    """Write the sample run-meta corpus beneath *meta_base*.

    Each namespace in :data:`SAMPLE_NAMESPACES` receives
    :data:`SAMPLE_PARTITIONS` partitions spaced
    :data:`SAMPLE_PARTITION_SPACING` seconds apart from
    :data:`SAMPLE_START`. Every partition holds one run that fails after
    five minutes and one that completes fifteen minutes after starting.
    Existing partitions are left untouched.

    Returns
    -------
    list[Location]
        The partitions created by this call.

    """
    created: list[Location] = []
    for namespace in SAMPLE_NAMESPACES:
        namespace_dir = meta_base.append(namespace)
        namespace_dir.mkdirs()
        for index in range(SAMPLE_PARTITIONS):
            time = SAMPLE_START + SAMPLE_PARTITION_SPACING * index
            partition = write_partition(namespace_dir, _sample_records(namespace, time))
            if partition is not None:
                created.append(partition)
    return created


__all__ = [
    "PARTITION_SUFFIX",
    "RunMetaRecord",
    "RunRow",
    "StartInfo",
    "partition_time",
    "populate_meta_files",
    "read_records",
    "summarize_runs",
    "write_partition",
]
