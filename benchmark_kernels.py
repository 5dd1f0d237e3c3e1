"""
Benchmark string kernels on a text corpus.

Builds the Gram matrix of every selected metric, once sequentially with a
single cached engine and once with the parallel helper, and reports timings,
metric evaluations and cache hits.

Usage:
    uv run python benchmark_kernels.py --file data/sms.tsv
    uv run python benchmark_kernels.py --hf-dataset sms_spam --text-column sms --label-column label
    uv run python benchmark_kernels.py --file data/sms.tsv --metrics levenshtein ratcliff_obershelp --limit 200
"""

import argparse
import logging
import time
from pathlib import Path

import numpy as np
from datasets import load_dataset

from string_kernels import Corpus, KernelConfig, KernelEngine, available_metrics, get_metric
from string_kernels.kernel_utils import gram_matrix, parallel_gram_matrix

logger = logging.getLogger("benchmark_kernels")


def load_text_file(path: Path, limit: int | None) -> Corpus:
    """One record per line; ``label<TAB>text`` lines carry a class label."""
    texts, labels = [], []
    with path.open(encoding="utf-8") as handle:
        for line in handle:
            line = line.rstrip("\n")
            if not line:
                continue
            label, sep, text = line.partition("\t")
            if sep:
                labels.append(label)
                texts.append(text)
            else:
                texts.append(line)
            if limit is not None and len(texts) >= limit:
                break
    if labels and len(labels) != len(texts):
        raise SystemExit(f"{path}: mixed labelled and unlabelled lines")
    return Corpus.from_texts(texts, labels or None)


def load_hf_corpus(name: str, split: str, text_column: str, label_column: str | None, limit: int | None) -> Corpus:
    dataset = load_dataset(name, split=split)
    if limit is not None:
        dataset = dataset.select(range(min(limit, len(dataset))))
    return Corpus.from_huggingface_dataset(dataset, text_column=text_column, label_column=label_column)


def benchmark_metric(name: str, corpus: Corpus, config: KernelConfig) -> dict:
    """Time sequential and parallel Gram matrix construction for one metric."""
    engine = KernelEngine.from_name(name, corpus, config)

    start = time.perf_counter()
    sequential = gram_matrix(engine, show_progress=config.show_progress)
    sequential_time = time.perf_counter() - start

    # Second pass is served from the cache apart from collisions
    start = time.perf_counter()
    gram_matrix(engine)
    cached_time = time.perf_counter() - start

    start = time.perf_counter()
    parallel = parallel_gram_matrix(get_metric(name), corpus, config=config)
    parallel_time = time.perf_counter() - start

    return {
        "metric": name,
        "sequential_s": sequential_time,
        "cached_s": cached_time,
        "parallel_s": parallel_time,
        "evaluations": engine.evaluation_count,
        "cache_hits": engine.cache_hits,
        "identical": bool(np.array_equal(sequential, parallel)),
        "diag_mean": float(np.mean(np.diag(sequential))) if len(corpus) else 0.0,
    }


def main():
    parser = argparse.ArgumentParser(description="Benchmark string kernels")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Text file, one record per line (optionally label<TAB>text)")
    source.add_argument("--hf-dataset", help="Hugging Face dataset name")
    parser.add_argument("--split", default="train", help="Dataset split (with --hf-dataset)")
    parser.add_argument("--text-column", default="text")
    parser.add_argument("--label-column", default=None)
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of records")
    parser.add_argument(
        "--metrics",
        nargs="+",
        choices=available_metrics(),
        default=available_metrics(),
    )
    parser.add_argument("--num-workers", type=int, default=None)
    parser.add_argument("--progress", action="store_true", help="Show progress bars")
    args = parser.parse_args()

    config = KernelConfig.from_env()
    if args.num_workers is not None:
        config.num_workers = args.num_workers
    if args.progress:
        config.show_progress = True
    config.validate()
    logging.basicConfig(level=config.log_level, format=config.log_format)

    if args.file is not None:
        corpus = load_text_file(args.file, args.limit)
    else:
        corpus = load_hf_corpus(args.hf_dataset, args.split, args.text_column, args.label_column, args.limit)
    logger.info("Loaded %d records", len(corpus))

    print(f"\n{'Metric':<20} {'Seq (s)':>9} {'Cached (s)':>11} {'Par (s)':>9} {'Evals':>9} {'Hits':>9} {'Diag':>9}")
    print("-" * 82)
    for name in args.metrics:
        result = benchmark_metric(name, corpus, config)
        print(
            f"{result['metric']:<20} {result['sequential_s']:>9.3f} {result['cached_s']:>11.3f} "
            f"{result['parallel_s']:>9.3f} {result['evaluations']:>9,} {result['cache_hits']:>9,} "
            f"{result['diag_mean']:>9.3f}"
        )
        if not result["identical"]:
            print(f"  WARNING: parallel matrix differs from sequential for {name}")


if __name__ == "__main__":
    main()
