import argparse

from adaptmem.memory.pipeline import MemoryPipeline
from adaptmem.memory.store import MemoryStore
from adaptmem.settings import build_config
from adaptmem.storage import build_storage

SAMPLE_MEMORIES = [
    ("Deploy deadline is March 5", "deadline", "Alpha"),
    ("Use Redis for caching", "config", "Alpha"),
    ("Migrate the database schema before the release", "task", "Beta"),
    ("Tune database indexes for the reporting queries", "task", "Beta"),
    ("I prefer short answers with code examples", "preference", None),
]

SAMPLE_TURNS = [
    (
        "The login page is broken again after the deploy",
        "The error is caused by a stale session cookie. Remember to clear the cache after deploys.",
        "Alpha",
    ),
    (
        "What does the staging config look like?",
        "config: STAGING_URL=https://staging.example.com\ntodo: rotate the staging API keys",
        "Beta",
    ),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed adaptmem with demo memories")
    parser.add_argument("--config", help="Path to YAML config file")
    args = parser.parse_args()

    config = build_config(args.config)
    store = MemoryStore(storage=build_storage(config.storage))
    for content, memory_type, project in SAMPLE_MEMORIES:
        store.store(content, memory_type, {"project": project})

    pipeline = MemoryPipeline(store)
    for user_text, assistant_text, project in SAMPLE_TURNS:
        pipeline.ingest_turn(user_text, assistant_text, project=project)
    print(f"Seeded {len(store)} memories")


if __name__ == "__main__":
    main()
