#!/usr/bin/env python3
"""
Benchmark parallel skew computation vs sequential computation.

Reads every genome in DATA_DIR (``<name>.txt`` FASTA files), computes the
skew arrays serially and then through the BatchDispatcher thread pool,
reports both timings and writes one plot per genome to PLOTS_DIR.

Usage:
    python benchmark_parallel_skew.py [data_dir] [plots_dir]
"""

import logging
import sys
import time
from pathlib import Path
from typing import Dict, List

# Add parent directory to path
sys.path.insert(0, '.')

from SkewFinder import BatchDispatcher, GenomeRecord, SequenceSource, summarize_batch
from SkewFinder.batch_dispatcher import split_results

logger = logging.getLogger(__name__)

DATA_DIR = "data"
PLOTS_DIR = "plots"
GENOME_NAMES = [
    "bacillus_anthracis",
    "deinococcus_deserti",
    "escherichia_coli",
    "legionella_pneumophila",
    "porphyromonas_gingivalis",
    "rickettsia_prowazekii",
    "staphylococcus_aureus",
    "streptococcus_pneumoniae",
    "thermotoga_petrophila",
]


def format_time(seconds: float) -> str:
    """Format seconds as human-readable string."""
    if seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def collect_records(data_dir: Path) -> List[GenomeRecord]:
    """Known genomes present in ``data_dir``, falling back to every *.txt file."""
    records = [
        GenomeRecord(name, str(data_dir / f"{name}.txt"))
        for name in GENOME_NAMES
        if (data_dir / f"{name}.txt").is_file()
    ]
    if not records:
        records = [GenomeRecord(p.stem, str(p)) for p in sorted(data_dir.glob("*.txt"))]
    return records


def timed(label: str, fn, records) -> Dict:
    start = time.perf_counter()
    results = fn(records)
    elapsed = time.perf_counter() - start
    logger.info(f"running {label} took {format_time(elapsed)}")
    return results


def main(argv: List[str]) -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    data_dir = Path(argv[1]) if len(argv) > 1 else Path(DATA_DIR)
    plots_dir = Path(argv[2]) if len(argv) > 2 else Path(PLOTS_DIR)

    records = collect_records(data_dir)
    if not records:
        print(f"No genomes found in {data_dir}")
        return 1

    # Whole genomes: no line cap
    source = SequenceSource(max_lines=None)

    print("=" * 80)
    print("PARALLEL SKEW BENCHMARK")
    print("=" * 80)
    print(f"Genomes: {len(records)} from {data_dir}")
    print()

    compute_only = BatchDispatcher(source, max_workers=len(records), task_timeout=None)
    serial = timed("serially", compute_only.run_serial, records)
    parallel = timed("in parallel", compute_only.submit, records)

    mismatched = [name for name in serial if serial[name] != parallel.get(name)]
    if mismatched:
        print(f"WARNING: serial and parallel results differ for: {', '.join(sorted(mismatched))}")

    print()
    print("Generating plots:")
    plotter = BatchDispatcher(source, max_workers=len(records), task_timeout=None, render_dir=plots_dir)
    rendered = plotter.submit(records)

    successes, failures = split_results(rendered)
    order = {record.name: i for i, record in enumerate(records)}
    print()
    print(summarize_batch(rendered, order=order).to_string(index=False))
    print()
    print(f"{len(successes)} plot(s) written to {plots_dir}, {len(failures)} failure(s)")
    return 0 if not failures else 2


if __name__ == "__main__":
    sys.exit(main(sys.argv))
