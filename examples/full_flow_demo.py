import argparse
import os

from dotenv import load_dotenv

from adaptmem.llm.client import LLMClient
from adaptmem.logging_config import setup_logging
from adaptmem.memory.store import MemoryStore
from adaptmem.processor import MemoryAwareProcessor
from adaptmem.settings import build_config
from adaptmem.storage import build_storage

SAMPLE_TURNS = [
    "We are building the Alpha app and the deploy deadline is March 5",
    "For Alpha we decided to use Redis for caching",
]
SAMPLE_QUESTION = "What should I prioritize this week for the Alpha app?"


def _check_env():
    if not os.getenv("OPENAI_API_KEY"):
        raise SystemExit("Missing env vars: OPENAI_API_KEY")


def main() -> None:
    parser = argparse.ArgumentParser(description="adaptmem full-flow demo")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--question", default=SAMPLE_QUESTION, help="Question to ask after seeding")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(args.log_level)
    _check_env()
    config = build_config(args.config)

    store = MemoryStore(storage=build_storage(config.storage))
    processor = MemoryAwareProcessor(store, llm=LLMClient(config.llm), config=config.recall)

    print("Remembering...")
    for turn in SAMPLE_TURNS:
        answer = processor.respond(turn, project="Alpha")
        print(f"> {turn}\n{answer}\n")

    print("Recalling...")
    processed = processor.process_message(args.question, project="Alpha")
    print(processed.memory_context or "(no memories recalled)")
    print(f"Reasoning: {processed.recall.reasoning}")
    print(f"Confidence: {processed.recall.confidence:.2f}")

    print("Answer:", processor.respond(args.question, project="Alpha"))


if __name__ == "__main__":
    main()
