import argparse
import random
import time

from adaptmem.config import RecallConfig
from adaptmem.memory.store import MemoryStore
from adaptmem.retrieval.context import build_recall_context
from adaptmem.retrieval.retriever import MemoryRetriever
from adaptmem.storage import InMemoryStorage

PROJECTS = ["Alpha", "Beta", "Gamma", "Delta"]
TYPES = ["fact", "task", "config", "deadline", "insight", "preference"]
WORDS = ["database", "deployment", "frontend", "api", "schedule", "bug", "cache", "release", "review"]

SAMPLE_QUERIES = [
    "What is the Alpha deadline?",
    "The Beta api is broken",
    "Explain the Gamma cache design",
]


def _seed(store: MemoryStore, count: int, rng: random.Random) -> None:
    for i in range(count):
        words = " ".join(rng.sample(WORDS, 3))
        store.store(f"note {i} about {words}", rng.choice(TYPES), {"project": rng.choice(PROJECTS)})


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark adaptmem recall latency")
    parser.add_argument("--memories", type=int, default=2000)
    parser.add_argument("--candidate-limit", type=int, default=500)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--runs", type=int, default=3)
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args()

    store = MemoryStore(storage=InMemoryStorage())
    start = time.perf_counter()
    _seed(store, args.memories, random.Random(args.seed))
    print(f"Stored {len(store)} memories in {time.perf_counter() - start:.2f}s")

    retriever = MemoryRetriever(store, RecallConfig(candidate_limit=args.candidate_limit))
    contexts = [build_recall_context(query) for query in SAMPLE_QUERIES]

    for _ in range(args.warmup):
        for context in contexts:
            retriever.recall(context)

    total = 0.0
    for _ in range(args.runs):
        start = time.perf_counter()
        for context in contexts:
            retriever.recall(context)
        total += time.perf_counter() - start

    avg = total / max(args.runs, 1)
    print(f"Average batch latency: {avg * 1000:.1f}ms for {len(contexts)} queries")


if __name__ == "__main__":
    main()
